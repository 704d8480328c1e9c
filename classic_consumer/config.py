# config.py
"""Module to provide configuration support."""

import dataclasses
from typing import Any, Dict

from wipac_dev_tools import from_environment_as_dataclass

# configuration values that should never be displayed or logged in the clear
SECRET_KEYS = {"PRIVATE_KEY"}
SECRET_MASK = "[秘密]"


@dataclasses.dataclass(frozen=True)
class ConsumerEnv:
    """Typed environment configuration for a ClassicConsumer."""

    # Required
    ISSUER: str
    PRIVATE_KEY: str
    PUBLIC_KEY: str
    CLASSIC_OAUTH_CLIENT_KEY: str
    ACCESS_TOKEN_URL: str
    USER_AGENT: str

    # Optional
    ASSERTION_ALGORITHM: str = "RS256"
    ASSERTION_EXPIRE_SECONDS: int = 60
    COMPONENT_NAME: str = "classic-consumer"
    HTTP_TIMEOUT_SECONDS: float = 30.0
    LOG_LEVEL: str = "INFO"
    TOKEN_REPLICATION_DELAY_SECONDS: float = 0.5

    @property
    def access_token_endpoint(self) -> str:
        """Return the full URL of the access token endpoint."""
        return f"https://{self.ACCESS_TOKEN_URL}"


def from_environment() -> ConsumerEnv:
    """
    Obtain the ClassicConsumer configuration from the OS environment.

    Raises an error if any of the required values are missing.
    """
    return from_environment_as_dataclass(ConsumerEnv)


def as_display_dict(config: ConsumerEnv) -> Dict[str, Any]:
    """Return the configuration as a dictionary, with secret values masked."""
    result = dataclasses.asdict(config)
    for key in SECRET_KEYS:
        if result.get(key):
            result[key] = SECRET_MASK
    return result
