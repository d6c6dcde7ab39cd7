"""Client configuration."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from address_graph.errors import ConfigError

DEFAULT_HISTORY_URL = "https://blockchain.info/rawaddr"
DEFAULT_RPC_URL = "http://localhost:8332/"
DEFAULT_PAGE_LIMIT = 50
DEFAULT_PAGE_BUFFER = 3

ENV_PREFIX = "ADDRESS_GRAPH_"


class ClientConfig(BaseSettings):
    """Settings for one client session, overridable by ``ADDRESS_GRAPH_*`` variables."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    history_url: str = DEFAULT_HISTORY_URL
    page_limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)
    page_buffer: int = Field(default=DEFAULT_PAGE_BUFFER, ge=0)
    max_pages: Optional[int] = Field(default=None, ge=1)
    # Disabling TLS verification is a compatibility knob for old endpoints.
    verify_tls: bool = True
    http_timeout: float = Field(default=30.0, gt=0)

    rpc_url: str = DEFAULT_RPC_URL
    rpc_username: str = ""
    rpc_password: str = ""
    rpc_retries: int = Field(default=3, ge=0)

    @model_validator(mode="after")
    def _check_buffer(self) -> "ClientConfig":
        # A buffer as large as the page would never advance the offset.
        if self.page_buffer >= self.page_limit:
            raise ValueError(
                f"page_buffer ({self.page_buffer}) must be smaller than "
                f"page_limit ({self.page_limit})"
            )
        return self

    @classmethod
    def load(cls, **values) -> "ClientConfig":
        """Build a config, raising ConfigError instead of a pydantic error."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Load settings from the environment.

        Keyword overrides win over the environment; ``None`` means unset.
        """
        return cls.load(**{k: v for k, v in overrides.items() if v is not None})
