"""
Application configuration management.

Settings are read, lowest priority first, from a TOML file, a ``.env`` file,
the process environment and explicit keyword arguments.
"""

import os
from functools import lru_cache
from typing import Annotated, List, Literal, Optional, Tuple, Type

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

CONFIG_FILE_ENV = "AUDITOR_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.toml"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Repository
    repository_path: str = Field(
        validation_alias=AliasChoices("repo_path", "repository_path")
    )
    excluded_prefixes: Annotated[List[str], NoDecode] = []
    allowed_file_extensions: Annotated[List[str], NoDecode] = Field(
        default=[],
        validation_alias=AliasChoices("allowed_extensions", "allowed_file_extensions"),
    )

    # Storage
    db_path: str
    storage_backend: Literal["file", "redis"] = "file"
    redis_url: Optional[str] = None

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # Application
    log_level: str = "INFO"

    @field_validator("excluded_prefixes", "allowed_file_extensions", mode="before")
    @classmethod
    def _split_comma_separated(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("allowed_file_extensions")
    @classmethod
    def _strip_leading_dots(cls, value: List[str]) -> List[str]:
        return [ext.lstrip(".") for ext in value]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        toml_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
