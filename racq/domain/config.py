"""
Client configuration.

ClientConfig is a frozen value built once per client instance. Changing a
setting means building a new value with with_changes(); instances are never
shared and mutated between clients.
"""

import uuid
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AUTH_URL = "https://identity.api.rackspacecloud.com/v2.0/tokens"
DEFAULT_QUEUE_URL_TEMPLATE = "https://{region}.queues.api.rackspacecloud.com/v1/queues"


class Region(str, Enum):
    """Regions in which the queue service is deployed."""

    IAD = "iad"
    ORD = "ord"
    DFW = "dfw"
    HKG = "hkg"
    LON = "lon"
    SYD = "syd"


class ClientConfig(BaseModel):
    """
    Settings for a RacQClient.

    user_name / api_key  — credentials; may instead be passed to authenticate()
    region               — queue service region (default dfw)
    client_id            — identifies this producer/consumer to the service;
                           a fresh UUID unless supplied
    persisted_token_path — local file where the token is cached between runs
    auth_url             — identity endpoint
    queue_url_template   — queue endpoint, "{region}" is substituted
    timeout              — per-request transport timeout in seconds
    """

    model_config = ConfigDict(frozen=True)

    user_name: str | None = None
    api_key: str | None = Field(default=None, repr=False)
    region: Region = Region.DFW
    client_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    persisted_token_path: Path | None = None
    auth_url: str = DEFAULT_AUTH_URL
    queue_url_template: str = DEFAULT_QUEUE_URL_TEMPLATE
    timeout: float = 30.0

    @property
    def queue_url(self) -> str:
        return self.queue_url_template.format(region=self.region.value)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "ClientConfig":
        """Build a config from a plain mapping; camelCase keys are accepted."""
        aliases = {
            "userName": "user_name",
            "apiKey": "api_key",
            "clientId": "client_id",
            "persistedTokenPath": "persisted_token_path",
        }
        return cls(**{aliases.get(k, k): v for k, v in config_dict.items()})

    def with_changes(self, **changes: Any) -> "ClientConfig":
        """Return a new config with the given fields replaced (re-validated)."""
        return self.model_validate({**self.model_dump(), **changes})
