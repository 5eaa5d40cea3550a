"""Linode DNS API client for ACME DNS-01 challenge records."""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from txthook._logging import get_domain_extra, get_logger
from txthook.config import DEFAULT_API_URL, Settings
from txthook.exceptions import (
    DomainNotFoundError,
    LinodeApiError,
    ProviderConnectionError,
    RecordNotFoundError,
)
from txthook.models import (
    ACME_CHALLENGE_LABEL,
    Domain,
    DomainPage,
    DomainRecord,
    RecordPage,
    RecordType,
    TxtRecordCreate,
    ZoneMatch,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class LinodeClient:
    """Client for the Linode DNS API (v4).

    Manages the ``_acme-challenge`` TXT records used for DNS-01 challenges
    in the zones of a Linode account.

    Args:
        api_token: Personal access token with the domains scope.
        api_url: Base URL of the API (default: https://api.linode.com/v4).
        timeout: HTTP request timeout in seconds (default: 30).
        ttl: ttl_sec for created records, or None for the zone default.
    """

    # Largest page size the API accepts
    PAGE_SIZE = 500

    def __init__(
        self,
        api_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30,
        ttl: int | None = 300,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.ttl = ttl
        self._http = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Accept": "application/json",
            },
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "LinodeClient":
        """Create a client from hook settings."""
        return cls(
            api_token=settings.api_token,
            api_url=settings.api_url,
            timeout=settings.timeout,
            ttl=settings.ttl,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "LinodeClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and raise for error responses.

        Raises:
            ProviderConnectionError: If the request could not be sent.
            LinodeApiError: If the API returned an error status.
        """
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "Linode API request failed",
                extra={"detail": str(e), **get_domain_extra()},
            )
            raise ProviderConnectionError(f"{method} {path} failed: {e}") from e

        self._handle_response(response)
        return response

    def _handle_response(self, response: httpx.Response) -> None:
        """Handle Linode API response status codes.

        Args:
            response: The httpx Response object.

        Raises:
            LinodeApiError: For API errors (or the matching subclass).
        """
        if response.is_success:
            logger.debug(
                "Linode API request successful",
                extra={"status_code": response.status_code},
            )
            return

        # Try to extract error detail from response body
        try:
            data: Any = response.json()
        except ValueError:
            data = response.text

        error = LinodeApiError.from_response(response.status_code, data, response.headers)
        logger.error(
            "Linode API error",
            extra={"status_code": response.status_code, "detail": error.detail},
        )
        raise error

    def _parse(self, response: httpx.Response, model: type[ModelT]) -> ModelT:
        """Validate a successful response body against a model.

        Raises:
            LinodeApiError: If the body is not JSON or has an unexpected shape.
        """
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            detail = f"Unexpected response body for {model.__name__}: {e}"
            logger.error(
                "Linode API returned malformed body",
                extra={"status_code": response.status_code, "detail": detail},
            )
            raise LinodeApiError(response.status_code, [detail]) from e

    def _get_all(self, path: str, page_model: type[DomainPage] | type[RecordPage]) -> list[Any]:
        """Collect ``data`` from every page of a list endpoint."""
        items: list[Any] = []
        page_number = 1
        while True:
            response = self._request(
                "GET", path, params={"page": page_number, "page_size": self.PAGE_SIZE}
            )
            page = self._parse(response, page_model)
            items.extend(page.data)
            # Stop when the server does not advance the page
            if page.page >= page.pages or page.page < page_number:
                return items
            page_number = page.page + 1

    # -------------------------------------------------------------------------
    # Zones and records
    # -------------------------------------------------------------------------

    def list_domains(self) -> list[Domain]:
        """List all domains (zones) in the account."""
        return self._get_all("/domains", DomainPage)

    def list_records(self, zone_id: int) -> list[DomainRecord]:
        """List all records of a zone."""
        return self._get_all(f"/domains/{zone_id}/records", RecordPage)

    def find_zone(self, domain: str) -> ZoneMatch:
        """Find the zone that manages the given domain.

        When several zones contain the domain the most specific one wins,
        so ``a.b.example.com`` resolves to ``b.example.com`` rather than
        ``example.com`` if both are in the account.

        Args:
            domain: The full domain name to find the zone for.

        Returns:
            The zone and the subdomain part relative to it.

        Raises:
            DomainNotFoundError: If no zone contains the domain.
        """
        name = domain.rstrip(".").lower()

        best: Domain | None = None
        for zone in self.list_domains():
            zone_name = zone.domain.rstrip(".").lower()
            if name != zone_name and not name.endswith(f".{zone_name}"):
                continue
            if best is None or len(zone_name) > len(best.domain.rstrip(".")):
                best = zone

        if best is None:
            raise DomainNotFoundError(domain)

        zone_name = best.domain.rstrip(".").lower()
        subdomain = name[: -len(zone_name)].rstrip(".")
        logger.debug(
            "Zone found",
            extra={"domain": domain, "zone": best.domain},
        )
        return ZoneMatch(zone=best, subdomain=subdomain)

    def _find_txt_records(self, match: ZoneMatch, value: str) -> list[DomainRecord]:
        record_name = match.challenge_record_name
        return [
            record
            for record in self.list_records(match.zone.id)
            if record.type.upper() == RecordType.TXT
            and record.name.lower() == record_name
            and record.target == value
        ]

    def find_txt_records(self, domain: str, value: str) -> list[DomainRecord]:
        """Find challenge TXT records carrying the given value.

        Args:
            domain: The domain name (without _acme-challenge prefix).
            value: The challenge value.

        Returns:
            Matching records (empty if none).
        """
        return self._find_txt_records(self.find_zone(domain), value)

    def create_txt_record(self, domain: str, value: str) -> int:
        """Create the challenge TXT record for a domain.

        Creates a TXT record at _acme-challenge.{domain} with the
        provided value.

        Args:
            domain: The domain name (without _acme-challenge prefix).
            value: The challenge value to publish.

        Returns:
            The id of the new record.

        Raises:
            DomainNotFoundError: If no zone contains the domain.
            LinodeApiError: If the API rejects the request.
        """
        match = self.find_zone(domain)
        body = TxtRecordCreate(
            name=match.challenge_record_name,
            target=value,
            ttl_sec=self.ttl,
        )

        response = self._request(
            "POST",
            f"/domains/{match.zone.id}/records",
            json=body.model_dump(mode="json", exclude_none=True),
        )
        record = self._parse(response, DomainRecord)
        logger.info(
            "TXT record created",
            extra={
                "domain": domain,
                "zone": match.zone.domain,
                "record_name": f"{ACME_CHALLENGE_LABEL}.{domain.rstrip('.')}",
                "record_id": record.id,
            },
        )
        return record.id

    def delete_txt_record(self, domain: str, value: str) -> list[int]:
        """Delete the challenge TXT records for a domain.

        Removes every TXT record at _acme-challenge.{domain} whose value
        matches, so a repeated deploy leaves nothing behind.

        Args:
            domain: The domain name (without _acme-challenge prefix).
            value: The challenge value that was published.

        Returns:
            Ids of the deleted records.

        Raises:
            DomainNotFoundError: If no zone contains the domain.
            RecordNotFoundError: If no matching record exists.
            LinodeApiError: If the API rejects the request.
        """
        match = self.find_zone(domain)
        records = self._find_txt_records(match, value)
        if not records:
            raise RecordNotFoundError(f"{ACME_CHALLENGE_LABEL}.{domain.rstrip('.')}", value)

        deleted = []
        for record in records:
            self._request("DELETE", f"/domains/{match.zone.id}/records/{record.id}")
            deleted.append(record.id)
            logger.info(
                "TXT record deleted",
                extra={
                    "domain": domain,
                    "zone": match.zone.domain,
                    "record_name": f"{ACME_CHALLENGE_LABEL}.{domain.rstrip('.')}",
                    "record_id": record.id,
                },
            )
        return deleted
