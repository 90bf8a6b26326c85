"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (JUMPSTART_CACHE__CACHE__MAX_S3_CACHE_ITEMS=50)
  3. jumpstart-cache.yaml   (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional. The content bucket can additionally be forced
with ``AWS_JUMPSTART_CONTENT_BUCKET_OVERRIDE``, which is honoured whenever no
explicit ``s3_bucket_name`` is configured.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, PositiveFloat, PositiveInt
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from jumpstart_cache.constants import (
    JUMPSTART_DEFAULT_MANIFEST_FILE_S3_KEY,
    JUMPSTART_DEFAULT_MAX_S3_CACHE_ITEMS,
    JUMPSTART_DEFAULT_MAX_SEMANTIC_VERSION_CACHE_ITEMS,
)

_APP_NAME = "jumpstart-cache"
_CONFIG_FILE_NAME = "jumpstart-cache.yaml"
_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir(_APP_NAME)


def _find_config_file() -> str | None:
    """Return the path of the first jumpstart-cache.yaml found, or None."""
    candidates = [
        Path(_CONFIG_FILE_NAME),
        Path(_DEFAULT_CONFIG_DIR) / _CONFIG_FILE_NAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_s3_cache_items: PositiveInt = JUMPSTART_DEFAULT_MAX_S3_CACHE_ITEMS
    s3_cache_expiration_hours: PositiveFloat = 6
    max_semantic_version_cache_items: PositiveInt = (
        JUMPSTART_DEFAULT_MAX_SEMANTIC_VERSION_CACHE_ITEMS
    )
    semantic_version_cache_expiration_hours: PositiveFloat = 6

    @property
    def s3_cache_expiration_horizon(self) -> timedelta:
        return timedelta(hours=self.s3_cache_expiration_hours)

    @property
    def semantic_version_cache_expiration_horizon(self) -> timedelta:
        return timedelta(hours=self.semantic_version_cache_expiration_hours)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: JUMPSTART_CACHE__LOGGING__LEVEL=DEBUG
        env_prefix="JUMPSTART_CACHE__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    region: str | None = None  # None -> boto3 session region, then us-west-2
    manifest_file_s3_key: str = JUMPSTART_DEFAULT_MANIFEST_FILE_S3_KEY
    s3_bucket_name: str | None = None
    sagemaker_version: str | None = None  # None -> installed sagemaker distribution

    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
        )

    def cache_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``ModelsCache``, excluding the region."""
        kwargs: dict[str, Any] = {
            "max_s3_cache_items": self.cache.max_s3_cache_items,
            "s3_cache_expiration_horizon": self.cache.s3_cache_expiration_horizon,
            "max_semantic_version_cache_items": self.cache.max_semantic_version_cache_items,
            "semantic_version_cache_expiration_horizon": (
                self.cache.semantic_version_cache_expiration_horizon
            ),
            "manifest_file_s3_key": self.manifest_file_s3_key,
        }
        if self.s3_bucket_name is not None:
            kwargs["s3_bucket_name"] = self.s3_bucket_name
        return kwargs
