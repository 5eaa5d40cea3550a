"""Dispatcher for ACME client hook operations."""

from collections.abc import Callable, Sequence

from txthook._logging import get_domain_extra, get_logger, reset_domains, set_domains
from txthook.config import Settings
from txthook.exceptions import HookError, UsageError
from txthook.linode import LinodeClient
from txthook.models import Challenge, HookOperation
from txthook.propagation import PropagationChecker

logger = get_logger(__name__)

USAGE = "usage: txthook <operation> [args...]"


def parse_challenges(operation: str, args: Sequence[str]) -> list[Challenge]:
    """Split hook arguments into (domain, token_filename, token_value) triples.

    Raises:
        UsageError: If the arguments are not a non-empty list of triples.
    """
    if not args or len(args) % 3 != 0:
        raise UsageError(
            f"{operation} expects <domain> <token_filename> <token_value> "
            f"repeated, got {len(args)} argument(s)"
        )
    return [
        Challenge(domain=args[i], token_filename=args[i + 1], token_value=args[i + 2])
        for i in range(0, len(args), 3)
    ]


def _arg(args: Sequence[str], index: int) -> str | None:
    return args[index] if len(args) > index else None


def _default_checker(settings: Settings) -> PropagationChecker:
    return PropagationChecker.for_nameserver(
        settings.nameserver,
        timeout=settings.propagation_timeout,
        interval=settings.propagation_interval,
    )


class HookDispatcher:
    """Maps hook operations to Linode API calls.

    Only the challenge operations touch the API, and settings are loaded
    lazily so every other operation works without a token.

    Args:
        settings_loader: Returns the hook settings (default: from environment).
        client_factory: Builds a Linode client from settings.
        checker_factory: Builds a propagation checker from settings.
    """

    def __init__(
        self,
        settings_loader: Callable[[], Settings] = Settings.from_env,
        client_factory: Callable[[Settings], LinodeClient] = LinodeClient.from_settings,
        checker_factory: Callable[[Settings], PropagationChecker] = _default_checker,
    ):
        self.settings_loader = settings_loader
        self.client_factory = client_factory
        self.checker_factory = checker_factory

        self._handlers: dict[str, Callable[[Sequence[str]], None]] = {
            HookOperation.DEPLOY_CHALLENGE: self.deploy_challenge,
            HookOperation.CLEAN_CHALLENGE: self.clean_challenge,
            HookOperation.DEPLOY_CERT: self.deploy_cert,
            HookOperation.UNCHANGED_CERT: self.unchanged_cert,
            HookOperation.INVALID_CHALLENGE: self.invalid_challenge,
            HookOperation.REQUEST_FAILURE: self.request_failure,
            HookOperation.EXIT_HOOK: self.exit_hook,
        }

    def dispatch(self, argv: Sequence[str]) -> None:
        """Run the operation named by argv[0] with the remaining arguments.

        Unknown operations are ignored, as the hook protocol requires.

        Raises:
            UsageError: If no operation is given or its arguments are malformed.
            HookError: If the operation fails.
        """
        if not argv:
            raise UsageError(USAGE)

        operation, args = argv[0], argv[1:]
        handler = self._handlers.get(operation)
        if handler is None:
            return
        handler(args)

    def deploy_challenge(self, args: Sequence[str]) -> None:
        """Publish challenge TXT records and wait until they resolve."""
        challenges = parse_challenges(HookOperation.DEPLOY_CHALLENGE, args)
        settings = self.settings_loader()

        token = set_domains([c.domain for c in challenges])
        try:
            with self.client_factory(settings) as client:
                for challenge in challenges:
                    client.create_txt_record(challenge.domain, challenge.token_value)

            if not settings.wait_for_propagation:
                return

            logger.info("Waiting for TXT records to propagate", extra={**get_domain_extra()})
            checker = self.checker_factory(settings)
            checker.wait([(c.fqdn, c.token_value) for c in challenges])
        finally:
            reset_domains(token)

    def clean_challenge(self, args: Sequence[str]) -> None:
        """Remove challenge TXT records.

        Every challenge is attempted before failures are raised.
        """
        challenges = parse_challenges(HookOperation.CLEAN_CHALLENGE, args)
        settings = self.settings_loader()

        errors: list[HookError] = []
        token = set_domains([c.domain for c in challenges])
        try:
            with self.client_factory(settings) as client:
                for challenge in challenges:
                    try:
                        client.delete_txt_record(challenge.domain, challenge.token_value)
                    except HookError as e:
                        errors.append(e)
        finally:
            reset_domains(token)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise HookError(
                f"{len(errors)} challenge cleanups failed: " + "; ".join(str(e) for e in errors)
            )

    def deploy_cert(self, args: Sequence[str]) -> None:
        logger.info(
            "Certificate created",
            extra={"domain": _arg(args, 0), "certfile": _arg(args, 2)},
        )

    def unchanged_cert(self, args: Sequence[str]) -> None:
        logger.info(
            "Certificate is still valid",
            extra={"domain": _arg(args, 0), "certfile": _arg(args, 2)},
        )

    def invalid_challenge(self, args: Sequence[str]) -> None:
        logger.error(
            "Challenge failed",
            extra={"domain": _arg(args, 0), "response": _arg(args, 1)},
        )

    def request_failure(self, args: Sequence[str]) -> None:
        logger.error(
            "ACME request failed",
            extra={"status_code": _arg(args, 0), "detail": _arg(args, 1)},
        )

    def exit_hook(self, args: Sequence[str]) -> None:
        error = _arg(args, 0)
        if error:
            logger.error("ACME client exited with errors", extra={"error": error})
