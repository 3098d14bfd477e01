"""Configuration management.

Loads from a TOML config file + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .enums import BusBackend, LogFormat


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class Topics(BaseModel):
    inbound: str = "firewall.delete.aws"
    done: str = "firewall.delete.aws.done"
    error: str = "firewall.delete.aws.error"


class AWSConfig(BaseModel):
    endpoint_url: str | None = None  # e.g. a local EC2 emulator
    dry_run: bool = False  # Log requests, delete nothing


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.JSON


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level connector settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    bus_backend: BusBackend = BusBackend.REDIS
    redis_url: str = "redis://localhost:6379/0"
    consumer_group: str = "firewall-deleter-aws"

    # Redis Streams tuning
    max_stream_length: int = 10_000
    block_ms: int = 1000
    batch_size: int = 10

    # Sub-configs
    topics: Topics = Field(default_factory=Topics)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = SettingsConfigDict(
        env_prefix="FIREWALL_", env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment outranks the TOML file; explicit kwargs outrank both.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def validate_service_mode(self) -> None:
        """A long-running worker needs a shared transport."""
        from .errors import ConfigError

        if self.bus_backend != BusBackend.REDIS:
            raise ConfigError(
                f"The worker service requires the redis bus backend, "
                f"got {self.bus_backend.value!r}."
            )


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Precedence, highest first: ``overrides``, ``FIREWALL_*`` environment
    variables, the TOML file, field defaults.  Nested tables are merged
    key by key, so ``overrides={"aws": {"dry_run": True}}`` keeps the
    file's ``aws.endpoint_url``.

    Args:
        config_path: Path to TOML config file (optional, may be absent).
        overrides: Dict of overrides to apply on top.
    """
    toml_file = Path(config_path) if config_path else None

    class _FileSettings(Settings):
        model_config = SettingsConfigDict(toml_file=toml_file)

    return _FileSettings(**(overrides or {}))
