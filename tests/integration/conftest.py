"""Integration test fixtures.

Provides a fully wired AppState whose accessor builds caches over the shared
in-memory object store and manual clock (see tests/conftest.py).
"""

from __future__ import annotations

import functools

import pytest
from fakes import BUCKET, REGION, SAGEMAKER_VERSION, FakeClock, FakeObjectStore

from jumpstart_cache.cache import ModelsCache
from jumpstart_cache.config import LoggingSettings, Settings
from jumpstart_cache.state import AppState, build_app_state


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        region=REGION,
        s3_bucket_name=BUCKET,
        sagemaker_version=SAGEMAKER_VERSION,
        cache={"s3_cache_expiration_hours": 1},
        logging=LoggingSettings(level="INFO", format="json"),
    )


@pytest.fixture()
def app_state(settings: Settings, object_store: FakeObjectStore, clock: FakeClock) -> AppState:
    """Full AppState wired for integration tests."""
    factory = functools.partial(ModelsCache, object_store=object_store, clock=clock)
    return build_app_state(settings, cache_factory=factory)

