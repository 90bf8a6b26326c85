"""Application state wiring.

``AppState`` holds the long-lived objects a host application needs. There is
no module-level singleton: build one with :func:`build_app_state` at startup
and hand it (or its accessor) to whatever needs model metadata.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from jumpstart_cache.accessors import ModelsAccessor
from jumpstart_cache.cache import ModelsCache
from jumpstart_cache.config import Settings
from jumpstart_cache.logging_config import setup_logging

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    accessor: ModelsAccessor


def build_app_state(
    settings: Settings | None = None,
    cache_factory: Callable[..., ModelsCache] = ModelsCache,
) -> AppState:
    """Load settings, configure logging and create the models accessor."""
    if settings is None:
        settings = Settings()
    setup_logging(settings.logging)
    accessor = ModelsAccessor(settings=settings, cache_factory=cache_factory)
    log.info(
        "app_state_ready",
        region=settings.region,
        manifest_file_s3_key=settings.manifest_file_s3_key,
    )
    return AppState(settings=settings, accessor=accessor)
