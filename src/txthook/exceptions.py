"""Hook exceptions."""

from collections.abc import Mapping
from typing import Any


class HookError(Exception):
    """Base exception for hook failures.

    Every HookError makes the hook exit with a non-zero status.
    """

    exit_code = 1


class UsageError(HookError):
    """The hook was invoked with malformed arguments."""

    exit_code = 2


class ConfigurationError(HookError):
    """Required settings are missing or invalid."""

    pass


class ProviderConnectionError(HookError):
    """The Linode API could not be reached."""

    pass


class DomainNotFoundError(HookError):
    """No zone in the Linode account contains the domain."""

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"No zone found for domain: {domain}")


class RecordNotFoundError(HookError):
    """No TXT record matched the challenge being cleaned."""

    def __init__(self, record_name: str, value: str):
        self.record_name = record_name
        self.value = value
        super().__init__(f"TXT record not found: {record_name} = {value}")


class PropagationTimeoutError(HookError):
    """Deployed TXT records did not become visible before the deadline."""

    def __init__(self, missing: list[str], timeout: float):
        self.missing = missing
        self.timeout = timeout
        super().__init__(
            f"TXT records not visible after {timeout:g}s: {', '.join(missing)}"
        )


class LinodeApiError(HookError):
    """Error returned by the Linode API.

    Linode reports errors as ``{"errors": [{"reason": ..., "field": ...}]}``.
    """

    def __init__(
        self,
        status_code: int,
        reasons: list[str],
        retry_after: int | None = None,
    ):
        self.status_code = status_code
        self.reasons = reasons
        self.retry_after = retry_after
        super().__init__(f"Linode API error ({status_code}): {self.detail}")

    @property
    def detail(self) -> str:
        """All error reasons joined into one line."""
        return "; ".join(self.reasons) if self.reasons else "Unknown error"

    @classmethod
    def from_response(
        cls,
        status_code: int,
        data: Any,
        headers: Mapping[str, str] | None = None,
    ) -> "LinodeApiError":
        """Create a LinodeApiError from an error response.

        Routes to appropriate subclass based on status code.

        Args:
            status_code: HTTP status code.
            data: Parsed JSON error body (or raw text if not JSON).
            headers: Response headers (for Retry-After extraction).

        Returns:
            LinodeApiError instance (or appropriate subclass).
        """
        retry_after = cls._parse_retry_after(headers.get("Retry-After")) if headers else None
        reasons = cls._parse_reasons(data)

        if status_code in (401, 403):
            return AuthenticationError(status_code, reasons, retry_after)
        elif status_code == 404:
            return NotFoundError(status_code, reasons, retry_after)
        elif status_code == 429:
            return RateLimitError(status_code, reasons, retry_after)

        return cls(status_code, reasons, retry_after)

    @staticmethod
    def _parse_reasons(data: Any) -> list[str]:
        if isinstance(data, dict):
            reasons = []
            for error in data.get("errors") or []:
                if not isinstance(error, dict) or not error.get("reason"):
                    continue
                if error.get("field"):
                    reasons.append(f"{error['field']}: {error['reason']}")
                else:
                    reasons.append(error["reason"])
            return reasons
        if isinstance(data, str) and data.strip():
            return [data.strip()]
        return []

    @staticmethod
    def _parse_retry_after(value: str | None) -> int | None:
        """Parse Retry-After header (seconds or HTTP-date).

        Args:
            value: Retry-After header value.

        Returns:
            Seconds to wait, or None if not parseable.
        """
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            from datetime import datetime, timezone
            from email.utils import parsedate_to_datetime

            try:
                dt = parsedate_to_datetime(value)
                return max(0, int((dt - datetime.now(timezone.utc)).total_seconds()))
            except (TypeError, ValueError):
                return None


class AuthenticationError(LinodeApiError):
    """The API token was rejected (401) or lacks the domains scope (403)."""

    pass


class NotFoundError(LinodeApiError):
    """The requested API resource does not exist (404)."""

    pass


class RateLimitError(LinodeApiError):
    """Too many requests (429)."""

    pass
