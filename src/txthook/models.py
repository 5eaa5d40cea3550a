"""Pydantic models for Linode DNS resources and hook arguments."""

from enum import StrEnum

from pydantic import BaseModel, Field

ACME_CHALLENGE_LABEL = "_acme-challenge"

# =============================================================================
# Hook Enums
# =============================================================================


class HookOperation(StrEnum):
    """Every operation name of the dehydrated hook protocol.

    Only some have handlers; the rest are listed so the full protocol is known.
    """

    DEPLOY_CHALLENGE = "deploy_challenge"
    CLEAN_CHALLENGE = "clean_challenge"
    SYNC_CERT = "sync_cert"
    DEPLOY_CERT = "deploy_cert"
    DEPLOY_OCSP = "deploy_ocsp"
    UNCHANGED_CERT = "unchanged_cert"
    INVALID_CHALLENGE = "invalid_challenge"
    REQUEST_FAILURE = "request_failure"
    GENERATE_CSR = "generate_csr"
    STARTUP_HOOK = "startup_hook"
    EXIT_HOOK = "exit_hook"


class RecordType(StrEnum):
    """DNS record types used by the hook."""

    TXT = "TXT"


# =============================================================================
# Pydantic Models
# =============================================================================


class Domain(BaseModel):
    """Linode domain (zone) resource."""

    id: int
    domain: str


class DomainRecord(BaseModel):
    """Linode domain record resource."""

    id: int
    type: str
    name: str
    target: str
    ttl_sec: int | None = None


class Page(BaseModel):
    """Pagination envelope shared by Linode list endpoints."""

    page: int = 1
    pages: int = 1
    results: int = 0


class DomainPage(Page):
    """Page of GET /domains."""

    data: list[Domain] = Field(default_factory=list)


class RecordPage(Page):
    """Page of GET /domains/{id}/records."""

    data: list[DomainRecord] = Field(default_factory=list)


class TxtRecordCreate(BaseModel):
    """Request body for POST /domains/{id}/records."""

    type: RecordType = RecordType.TXT
    name: str
    target: str
    ttl_sec: int | None = None


class ZoneMatch(BaseModel):
    """A domain resolved to the zone that manages it.

    ``subdomain`` is the part of the domain left of the zone name, empty
    when the domain is the zone apex.
    """

    zone: Domain
    subdomain: str

    @property
    def challenge_record_name(self) -> str:
        """Record name of the challenge TXT record, relative to the zone."""
        if not self.subdomain:
            return ACME_CHALLENGE_LABEL
        return f"{ACME_CHALLENGE_LABEL}.{self.subdomain}"


class Challenge(BaseModel):
    """One (domain, token_filename, token_value) triple from the hook arguments."""

    domain: str
    token_filename: str
    token_value: str

    @property
    def fqdn(self) -> str:
        """Fully qualified name of the challenge TXT record."""
        return f"{ACME_CHALLENGE_LABEL}.{self.domain.rstrip('.')}"
