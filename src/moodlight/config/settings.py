"""Configuration management for moodlight.

Loads settings from a YAML configuration file with environment variable
overrides (``MOODLIGHT_`` prefix). Supports .env files.

With no file and no environment the relay talks to COM3 at 9600 8N1 and
listens on port 3000.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/moodlight.yaml")


class SerialConfig(BaseModel):
    port: str = Field(default="COM3", description="Serial device path or URL")
    baudrate: int = Field(default=9600, gt=0)
    bytesize: int = Field(default=8, ge=5, le=8)
    parity: Literal["N", "E", "O", "M", "S"] = Field(default="N")
    stopbits: float = Field(default=1)
    delimiter: str = Field(default="\r\n", min_length=1, description="Incoming line delimiter")
    encoding: str = Field(default="utf-8")

    @field_validator("stopbits")
    @classmethod
    def _check_stopbits(cls, v: float) -> float:
        if v not in (1, 1.5, 2):
            raise ValueError(f"stopbits must be 1, 1.5 or 2, got {v}")
        return v


class WebConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    index_path: str | None = Field(default=None, description="Override for the control page")
    cors_allowed_origins: str | list[str] = Field(default="*")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the moodlight relay.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "MOODLIGHT_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    serial: SerialConfig = Field(default_factory=SerialConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Constructor values come from the YAML file and rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
