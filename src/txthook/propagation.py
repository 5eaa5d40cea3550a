"""DNS propagation checks for deployed challenge records."""

import time
from collections.abc import Callable, Iterable

import dns.exception
import dns.resolver

from txthook._logging import Timer, get_domain_extra, get_logger
from txthook.exceptions import PropagationTimeoutError

logger = get_logger(__name__)

# Per-query resolver lifetime in seconds
QUERY_LIFETIME = 10.0


def make_resolver(nameserver: str) -> dns.resolver.Resolver:
    """Create a resolver that only queries the given nameserver."""
    resolver = dns.resolver.Resolver(configure=False)
    resolver.nameservers = [nameserver]
    resolver.lifetime = QUERY_LIFETIME
    return resolver


def txt_values(resolver: dns.resolver.Resolver, name: str) -> set[str]:
    """Resolve the name and return its TXT values.

    Lookup failures are treated as "nothing published yet".
    """
    try:
        answer = resolver.resolve(name, "TXT")
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return set()
    except dns.exception.DNSException as e:
        logger.debug("TXT lookup failed", extra={"record_name": name, "detail": str(e)})
        return set()

    return {b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer}


class PropagationChecker:
    """Polls a nameserver until expected TXT values are visible.

    Args:
        resolver: Resolver used for lookups.
        timeout: Maximum total wait in seconds.
        interval: Delay between rounds of lookups in seconds.
    """

    def __init__(
        self,
        resolver: dns.resolver.Resolver,
        timeout: float = 1200,
        interval: float = 15,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.timeout = timeout
        self.interval = interval
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def for_nameserver(
        cls, nameserver: str, timeout: float = 1200, interval: float = 15
    ) -> "PropagationChecker":
        return cls(make_resolver(nameserver), timeout=timeout, interval=interval)

    def pending(self, records: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
        """Return the (name, value) pairs not yet visible."""
        missing = []
        cache: dict[str, set[str]] = {}
        for name, value in records:
            if name not in cache:
                cache[name] = txt_values(self.resolver, name)
            if value not in cache[name]:
                missing.append((name, value))
        return missing

    def wait(self, records: Iterable[tuple[str, str]]) -> None:
        """Block until every (name, value) pair resolves.

        Args:
            records: Fully qualified TXT names and the values expected there.

        Raises:
            PropagationTimeoutError: If values are still missing at the deadline.
        """
        remaining = list(records)
        deadline = self._clock() + self.timeout

        with Timer() as t:
            while True:
                remaining = self.pending(remaining)
                if not remaining:
                    break

                now = self._clock()
                if now >= deadline:
                    missing = [f"{name} = {value}" for name, value in remaining]
                    logger.error(
                        "TXT records did not propagate",
                        extra={"missing": missing, **get_domain_extra()},
                    )
                    raise PropagationTimeoutError(missing, self.timeout)

                logger.debug(
                    "Waiting for TXT records",
                    extra={"missing": len(remaining), **get_domain_extra()},
                )
                self._sleep(min(self.interval, deadline - now))

        logger.info(
            "TXT records visible",
            extra={"elapsed_ms": round(t.elapsed_ms), **get_domain_extra()},
        )
