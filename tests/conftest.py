"""Shared fixtures. Fakes and sample metadata live in tests/fakes.py."""

from __future__ import annotations

import functools
import os
from datetime import timedelta

import pytest
import structlog
from fakes import (
    BUCKET,
    MANIFEST_ROWS,
    REGION,
    SAGEMAKER_VERSION,
    FakeClock,
    FakeObjectStore,
    publish,
)

from jumpstart_cache.accessors import ModelsAccessor
from jumpstart_cache.cache import ModelsCache
from jumpstart_cache.config import Settings
from jumpstart_cache.constants import ENV_VARIABLE_JUMPSTART_CONTENT_BUCKET_OVERRIDE


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep host configuration and global logging state out of every test."""
    monkeypatch.delenv(ENV_VARIABLE_JUMPSTART_CONTENT_BUCKET_OVERRIDE, raising=False)
    for name in list(os.environ):
        if name.startswith("JUMPSTART_CACHE__"):
            monkeypatch.delenv(name)
    yield
    structlog.reset_defaults()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def object_store() -> FakeObjectStore:
    store = FakeObjectStore()
    publish(store, MANIFEST_ROWS)
    return store


@pytest.fixture()
def models_cache(object_store: FakeObjectStore, clock: FakeClock) -> ModelsCache:
    """ModelsCache whose S3 content expires before its version resolutions do."""
    return ModelsCache(
        region=REGION,
        s3_bucket_name=BUCKET,
        object_store=object_store,
        sagemaker_version=SAGEMAKER_VERSION,
        s3_cache_expiration_horizon=timedelta(hours=1),
        semantic_version_cache_expiration_horizon=timedelta(hours=6),
        clock=clock,
    )


@pytest.fixture()
def models_accessor(object_store: FakeObjectStore, clock: FakeClock) -> ModelsAccessor:
    """ModelsAccessor whose caches read the in-memory object store."""
    settings = Settings(region=REGION, s3_bucket_name=BUCKET, sagemaker_version=SAGEMAKER_VERSION)
    factory = functools.partial(ModelsCache, object_store=object_store, clock=clock)
    return ModelsAccessor(settings=settings, cache_factory=factory)
