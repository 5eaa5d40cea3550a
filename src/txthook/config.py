"""Hook settings loaded from the process environment."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from txthook.exceptions import ConfigurationError

DEFAULT_API_URL = "https://api.linode.com/v4"
DEFAULT_NAMESERVER = "92.123.94.2"

# Token variables, in lookup order
TOKEN_VARIABLES = ("LINODE_API_TOKEN", "API_KEY")

# Field name -> environment variable
ENV_VARIABLES = {
    "api_url": "TXTHOOK_API_URL",
    "timeout": "TXTHOOK_TIMEOUT",
    "ttl": "TXTHOOK_TTL",
    "wait_for_propagation": "TXTHOOK_WAIT",
    "nameserver": "TXTHOOK_NAMESERVER",
    "propagation_timeout": "TXTHOOK_PROPAGATION_TIMEOUT",
    "propagation_interval": "TXTHOOK_PROPAGATION_INTERVAL",
}


class Settings(BaseModel):
    """Settings for talking to the Linode API and checking propagation."""

    api_token: str = Field(min_length=1, repr=False)
    api_url: str = DEFAULT_API_URL
    timeout: float = Field(default=30, gt=0)
    ttl: int | None = Field(default=300, ge=0)
    wait_for_propagation: bool = True
    nameserver: str = DEFAULT_NAMESERVER
    propagation_timeout: float = Field(default=1200, ge=0)
    propagation_interval: float = Field(default=15, gt=0)

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ).

        Returns:
            Validated settings.

        Raises:
            ConfigurationError: If the API token is missing or a value is invalid.
        """
        if environ is None:
            environ = os.environ

        token = next((environ[name] for name in TOKEN_VARIABLES if environ.get(name)), None)
        if token is None:
            raise ConfigurationError(
                f"API token not configured: set {' or '.join(TOKEN_VARIABLES)}"
            )

        values: dict[str, str] = {"api_token": token}
        for field, variable in ENV_VARIABLES.items():
            if environ.get(variable):
                values[field] = environ[variable]

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{ENV_VARIABLES.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e
