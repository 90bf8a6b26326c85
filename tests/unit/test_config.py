"""Unit tests for configuration loading and defaults."""

from __future__ import annotations

from datetime import timedelta

import platformdirs
import pytest
from pydantic import ValidationError

from jumpstart_cache.config import _DEFAULT_CONFIG_DIR, CacheSettings, LoggingSettings, Settings


class TestDefaults:
    """Defaults mirror the JumpStart constants."""

    def test_default_config_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_config_dir("jumpstart-cache") == _DEFAULT_CONFIG_DIR

    def test_cache_defaults(self) -> None:
        settings = CacheSettings()
        assert settings.max_s3_cache_items == 20
        assert settings.max_semantic_version_cache_items == 20
        assert settings.s3_cache_expiration_horizon == timedelta(hours=6)
        assert settings.semantic_version_cache_expiration_horizon == timedelta(hours=6)

    def test_top_level_defaults(self) -> None:
        settings = Settings()
        assert settings.region is None
        assert settings.s3_bucket_name is None
        assert settings.manifest_file_s3_key == "models_manifest.json"
        assert settings.logging == LoggingSettings()

    def test_cache_kwargs_omit_unset_bucket(self) -> None:
        kwargs = Settings().cache_kwargs()
        assert "s3_bucket_name" not in kwargs
        assert "region" not in kwargs
        assert kwargs["s3_cache_expiration_horizon"] == timedelta(hours=6)

    def test_cache_kwargs_include_explicit_bucket(self) -> None:
        assert Settings(s3_bucket_name="b").cache_kwargs()["s3_bucket_name"] == "b"


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JUMPSTART_CACHE__CACHE__MAX_S3_CACHE_ITEMS", "50")
        monkeypatch.setenv("JUMPSTART_CACHE__LOGGING__LEVEL", "DEBUG")
        settings = Settings()
        assert settings.cache.max_s3_cache_items == 50
        assert settings.logging.level == "DEBUG"

    def test_top_level_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JUMPSTART_CACHE__REGION", "eu-west-1")
        assert Settings().region == "eu-west-1"

    def test_constructor_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JUMPSTART_CACHE__REGION", "eu-west-1")
        assert Settings(region="us-east-1").region == "us-east-1"


class TestConfigValidation:
    def test_non_positive_capacity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(max_s3_cache_items=0)

    def test_wrong_type_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(cache={"s3_cache_expiration_hours": "soon"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        """A YAML typo at the top level (e.g. 'cach:' instead of 'cache:') is caught."""
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(max_s3_items=5)  # type: ignore[call-arg]

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(level="VERBOSE")  # type: ignore[arg-type]
