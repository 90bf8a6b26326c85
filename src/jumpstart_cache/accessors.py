"""Region-aware front door over a :class:`ModelsCache`.

``ModelsAccessor`` owns one cache at a time and rebuilds it when a lookup asks
for a different region. It is an ordinary object: the host application creates
one (see :func:`jumpstart_cache.state.build_app_state`) and passes it to the
components that need model metadata.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from jumpstart_cache.cache import ModelsCache
from jumpstart_cache.config import Settings
from jumpstart_cache.constants import JUMPSTART_DEFAULT_REGION_NAME
from jumpstart_cache.errors import ConfigurationError
from jumpstart_cache.models.manifest import ModelHeader
from jumpstart_cache.models.specs import ModelSpecs
from jumpstart_cache.utils import parse_sagemaker_version, validate_version_string

log = structlog.get_logger()


class ModelsAccessor:
    """Serves model headers and specs for any region from a managed cache."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache_factory: Callable[..., ModelsCache] = ModelsCache,
    ) -> None:
        self._settings = settings if settings is not None else Settings()
        self._cache_factory = cache_factory
        self._cache_kwargs: dict[str, Any] = self._settings.cache_kwargs()
        self._curr_region = self._settings.region or JUMPSTART_DEFAULT_REGION_NAME
        self._cache: ModelsCache | None = None
        self._sagemaker_version: str | None = None
        if self._settings.sagemaker_version is not None:
            self.set_sagemaker_version(self._settings.sagemaker_version)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # SageMaker library version
    # ------------------------------------------------------------------

    def set_sagemaker_version(self, version: str) -> None:
        validate_version_string(version)
        self._sagemaker_version = version

    def get_sagemaker_version(self) -> str:
        """Return the SageMaker version, parsing the installed one on first use."""
        if self._sagemaker_version is None:
            self._sagemaker_version = parse_sagemaker_version()
        return self._sagemaker_version

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_model_header(self, region: str | None, model_id: str, version: str) -> ModelHeader:
        cache = self._cache_for_region(region)
        return cache.get_header(model_id=model_id, semantic_version_str=version)

    def get_model_specs(self, region: str | None, model_id: str, version: str) -> ModelSpecs:
        cache = self._cache_for_region(region)
        return cache.get_specs(model_id=model_id, semantic_version_str=version)

    def get_bucket(self, region: str | None = None) -> str:
        """Return the content bucket that lookups in ``region`` read from."""
        return self._cache_for_region(region).get_bucket()

    def get_manifest(
        self, cache_kwargs: Mapping[str, Any] | None = None, region: str | None = None
    ) -> list[ModelHeader]:
        """Return the entire models manifest, rebuilding the cache first."""
        return self.set_cache_kwargs(cache_kwargs or {}, region).get_manifest()

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def set_cache_kwargs(
        self, cache_kwargs: Mapping[str, Any], region: str | None = None
    ) -> ModelsCache:
        """Replace the cache with one built from settings plus ``cache_kwargs``.

        Returns the new cache. The previous one stays in place if building fails.

        Raises:
            ConfigurationError: ``cache_kwargs["region"]`` conflicts with ``region``.
        """
        kwargs = self._validate_and_mutate_region_cache_kwargs(cache_kwargs, region)
        if region is None:
            region = kwargs.pop("region", self._curr_region)
        with self._lock:
            merged = {**self._settings.cache_kwargs(), **kwargs}
            cache = self._build_cache(region, merged)
            self._cache_kwargs = merged
            self._curr_region = region
            self._cache = cache
            return cache

    def reset_cache(
        self, cache_kwargs: Mapping[str, Any] | None = None, region: str | None = None
    ) -> None:
        self.set_cache_kwargs(cache_kwargs or {}, region)

    def _validate_and_mutate_region_cache_kwargs(
        self, cache_kwargs: Mapping[str, Any] | None, region: str | None
    ) -> dict[str, Any]:
        """Return a copy of ``cache_kwargs`` without a region that matches ``region``."""
        kwargs = dict(cache_kwargs or {})
        if region is not None and "region" in kwargs:
            if region != kwargs["region"]:
                raise ConfigurationError(
                    f"Inconsistent region definitions: {region}, {kwargs['region']}"
                )
            del kwargs["region"]
        return kwargs

    def _cache_for_region(self, region: str | None) -> ModelsCache:
        region = region or self._curr_region
        with self._lock:
            if self._cache is None or region != self._curr_region:
                log.debug("models_cache_created", region=region)
                self._cache = self._build_cache(region, self._cache_kwargs)
                self._curr_region = region
            return self._cache

    def _build_cache(self, region: str, cache_kwargs: Mapping[str, Any]) -> ModelsCache:
        kwargs = {"sagemaker_version": self.get_sagemaker_version, **cache_kwargs}
        return self._cache_factory(region=region, **kwargs)
