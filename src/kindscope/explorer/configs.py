"""Explorer configuration models.

Loaded from YAML by the CLI's ``--config`` option; every field has a default,
so an empty file (or no file) yields a working configuration.

Examples:
    ```yaml
    timeout: 15
    relays:
      - wss://relay.damus.io
      - wss://nos.lol
    kind_names:
      1111: Comment
    lookup:
      enabled: true
    logging:
      level: DEBUG
    ```

See Also:
    [load_yaml()][kindscope.core.yaml.load_yaml]: Safe YAML parsing used by
        [ExplorerConfig.from_yaml()][kindscope.explorer.configs.ExplorerConfig.from_yaml].
"""

from __future__ import annotations

import os
from typing import Any, Literal, Self

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator, model_validator

from kindscope.core.exceptions import ConfigurationError
from kindscope.core.yaml import load_yaml
from kindscope.models.constants import DEFAULT_RELAYS, EVENT_KIND_MAX
from kindscope.models.relay import has_relay_scheme
from kindscope.utils.transport import DEFAULT_TIMEOUT


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class KindLookupConfig(BaseModel):
    """Remote kind-name lookup against the NIPs repository.

    See Also:
        [KindNameResolver][kindscope.explorer.kinds.KindNameResolver]: The
            consumer of this configuration.
    """

    enabled: bool = Field(default=False, description="Search GitHub for unknown kind names")
    api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")
    repo: str = Field(default="nostr-protocol/nips", description="Repository to search")
    timeout: float = Field(default=10.0, ge=0.1, le=120.0, description="Request timeout")
    max_response_size: int = Field(
        default=5_242_880,
        ge=1024,
        le=52_428_800,
        description="Maximum response body size in bytes",
    )

    token_env: str = Field(
        default="GITHUB_TOKEN",
        min_length=1,
        description="Environment variable holding an optional GitHub API token",
    )
    token: SecretStr | None = Field(
        default=None, description="GitHub API token (loaded from token_env)"
    )

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="before")
    @classmethod
    def resolve_token(cls, data: Any) -> Any:
        """Read the API token from the environment variable, if set."""
        if isinstance(data, dict) and data.get("token") is None:
            value = os.getenv(data.get("token_env", "GITHUB_TOKEN"))
            if value:
                data = {**data, "token": SecretStr(value)}
        return data


class LoggingConfig(BaseModel):
    """Log level and output format for the CLI."""

    level: LogLevel = Field(default="WARNING", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON log records")


class ExplorerConfig(BaseModel):
    """Top-level explorer configuration.

    Attributes:
        relays: Relays queried when the user gives none.
        timeout: Per-relay deadline in seconds.
        kind_names: Extra or replacement kind names merged over the curated
            table at startup.
        lookup: Remote kind-name lookup settings.
        logging: Log level and format.
    """

    relays: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS), min_length=1)
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=1.0, le=120.0)
    kind_names: dict[int, str] = Field(default_factory=dict)
    lookup: KindLookupConfig = Field(default_factory=KindLookupConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("relays")
    @classmethod
    def _check_relays(cls, v: list[str]) -> list[str]:
        relays = [url.strip() for url in v]
        invalid = [url for url in relays if not has_relay_scheme(url)]
        if invalid:
            raise ValueError(f"relay URLs must start with ws:// or wss://: {', '.join(invalid)}")
        return relays

    @field_validator("kind_names")
    @classmethod
    def _check_kind_range(cls, v: dict[int, str]) -> dict[int, str]:
        out_of_range = [kind for kind in v if not 0 <= kind <= EVENT_KIND_MAX]
        if out_of_range:
            raise ValueError(f"kind numbers out of range (0-{EVENT_KIND_MAX}): {out_of_range}")
        return v

    @classmethod
    def from_yaml(cls, config_path: str) -> Self:
        """Load and validate a YAML configuration file.

        Raises:
            ConfigurationError: If the file is missing, not valid YAML, not a
                mapping, or fails validation.
        """
        try:
            data = load_yaml(config_path)
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
        except (yaml.YAMLError, TypeError) as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate a configuration mapping.

        Raises:
            ConfigurationError: If validation fails.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
