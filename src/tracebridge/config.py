"""SDK options using pydantic-settings with YAML support."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from tracebridge.dsn import Dsn


class Options(BaseSettings):
    """Root configuration for the tracebridge SDK."""

    model_config = SettingsConfigDict(
        env_prefix="TRACEBRIDGE_",
        env_nested_delimiter="__",
    )

    dsn: str = ""
    environment: str = ""
    release: str = ""
    server_name: str = ""

    max_breadcrumbs: int = Field(default=100, ge=0)
    capture_unhandled_exceptions: bool = Field(
        default=False,
        description="Install a sys.excepthook that reports unhandled exceptions",
    )
    auto_instrument_httpx: bool = False

    timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    debug: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values loaded from YAML.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator("dsn")
    @classmethod
    def _check_dsn(cls, value: str) -> str:
        if value:
            Dsn.parse(value)
        return value

    def parsed_dsn(self) -> Dsn | None:
        return Dsn.parse(self.dsn) if self.dsn else None

    def event_defaults(self) -> dict[str, Any]:
        """Attributes copied onto every event the capture library builds."""
        defaults: dict[str, Any] = {}
        if self.environment:
            defaults["environment"] = self.environment
        if self.release:
            defaults["release"] = self.release
        if self.server_name:
            defaults["server_name"] = self.server_name
        return defaults


def load_options(config_path: str | Path | None = None) -> Options:
    """Load options from a YAML file and environment variables.

    Environment variables override YAML values. YAML overrides defaults.
    """
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        for candidate in (Path("tracebridge.yaml"), Path("tracebridge.yml")):
            if candidate.exists():
                config_path = candidate
                break

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    return Options(**yaml_data)
