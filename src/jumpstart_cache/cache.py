"""Two-level cache for JumpStart model manifests and specs.

``ModelsCache`` composes two :class:`~jumpstart_cache.lru.LRUCache` instances:

* the S3 cache maps a :class:`CachedS3ContentKey` to parsed S3 content (the
  formatted manifest, or one model's specs);
* the semantic version cache maps a requested ``(model_id, constraint)`` to the
  concrete :class:`VersionedModelId` chosen from the manifest.

The semantic version cache reads the manifest through the S3 cache, never the
other way around. The manifest is re-downloaded only when its ETag changes.
Both caches are cleared together whenever region, bucket or manifest key
change, so one lookup never mixes content fetched under different settings.
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from difflib import get_close_matches
from typing import TYPE_CHECKING

import structlog
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from jumpstart_cache.constants import (
    JUMPSTART_DEFAULT_MANIFEST_FILE_S3_KEY,
    JUMPSTART_DEFAULT_MAX_S3_CACHE_ITEMS,
    JUMPSTART_DEFAULT_MAX_SEMANTIC_VERSION_CACHE_ITEMS,
    JUMPSTART_DEFAULT_REGION_NAME,
    JUMPSTART_DEFAULT_S3_CACHE_EXPIRATION_HORIZON,
    JUMPSTART_DEFAULT_SEMANTIC_VERSION_CACHE_EXPIRATION_HORIZON,
    MODEL_ID_LIST_WEB_URL,
)
from jumpstart_cache.enums import S3FileType
from jumpstart_cache.errors import DataIntegrityError, ModelNotFoundError
from jumpstart_cache.lru import LRUCache
from jumpstart_cache.models.cache import CachedS3ContentKey, CachedS3ContentValue
from jumpstart_cache.models.manifest import ModelHeader, VersionedModelId
from jumpstart_cache.models.specs import ModelSpecs
from jumpstart_cache.storage import S3ObjectStore
from jumpstart_cache.utils import (
    get_formatted_manifest,
    get_jumpstart_content_bucket,
    parse_sagemaker_version,
    validate_version_string,
)

if TYPE_CHECKING:
    from datetime import timedelta

    from jumpstart_cache.storage import ObjectStore

log = structlog.get_logger()

SageMakerVersionProvider = Callable[[], str]


def select_version(
    semantic_version_str: str, available_versions: list[Version]
) -> Version | None:
    """Return the best version in ``available_versions`` for a constraint.

    ``"*"`` selects the greatest version. Any other string is matched as a
    ``==`` specifier, so ``"1.0"`` matches ``1.0.0`` and ``"1.*"`` matches
    every ``1.x`` release (the greatest match wins).

    Raises:
        ModelNotFoundError: ``semantic_version_str`` is not a valid version.
    """
    if semantic_version_str == "*":
        return max(available_versions, default=None)
    try:
        spec = SpecifierSet(f"=={semantic_version_str}")
    except InvalidSpecifier:
        raise ModelNotFoundError(f"Bad semantic version: {semantic_version_str}") from None
    matching = [v for v in available_versions if spec.contains(v, prereleases=True)]
    return max(matching, default=None)


def _single_header(headers: list[ModelHeader], version: Version) -> ModelHeader:
    matches = [h for h in headers if Version(h.version) == version]
    if len(matches) != 1:
        raise DataIntegrityError(
            f"Found {len(matches)} manifest entries for model "
            f"'{headers[0].model_id}' with version '{version}'.",
            suggestion="The upstream models manifest is corrupt.",
        )
    return matches[0]


class ModelsCache:
    """Cache for JumpStart model manifests and specs.

    Not tied to any global state: construct one per region (or let
    :class:`~jumpstart_cache.accessors.ModelsAccessor` manage it) and pass it
    to the components that need model metadata. A single re-entrant lock
    guards every public operation, so an instance may be shared by threads.
    """

    def __init__(
        self,
        region: str = JUMPSTART_DEFAULT_REGION_NAME,
        max_s3_cache_items: int = JUMPSTART_DEFAULT_MAX_S3_CACHE_ITEMS,
        s3_cache_expiration_horizon: timedelta = JUMPSTART_DEFAULT_S3_CACHE_EXPIRATION_HORIZON,
        max_semantic_version_cache_items: int = JUMPSTART_DEFAULT_MAX_SEMANTIC_VERSION_CACHE_ITEMS,
        semantic_version_cache_expiration_horizon: timedelta = (
            JUMPSTART_DEFAULT_SEMANTIC_VERSION_CACHE_EXPIRATION_HORIZON
        ),
        manifest_file_s3_key: str = JUMPSTART_DEFAULT_MANIFEST_FILE_S3_KEY,
        s3_bucket_name: str | None = None,
        object_store: ObjectStore | None = None,
        sagemaker_version: str | SageMakerVersionProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            region: AWS region whose content bucket is read.
            max_s3_cache_items: Capacity of the S3 content cache.
            s3_cache_expiration_horizon: Lifetime of S3 content cache entries.
            max_semantic_version_cache_items: Capacity of the version cache.
            semantic_version_cache_expiration_horizon: Lifetime of version
                cache entries.
            manifest_file_s3_key: S3 key of the models manifest.
            s3_bucket_name: Content bucket. Defaults to the override env var,
                then the region's JumpStart bucket; a defaulted bucket follows
                later region changes.
            object_store: Storage backend. Defaults to an S3 store for
                ``region`` that is rebuilt when the region changes.
            sagemaker_version: SageMaker library version (or a callable
                returning it) used as upper bound for ``min_version``.
                Defaults to the installed ``sagemaker`` distribution.
            clock: Monotonic clock in seconds, injectable for tests.
        """
        self._lock = threading.RLock()
        self._region = region
        self._manifest_file_s3_key = manifest_file_s3_key
        self._bucket_is_default = s3_bucket_name is None
        self._s3_bucket_name = (
            s3_bucket_name if s3_bucket_name is not None else get_jumpstart_content_bucket(region)
        )
        self._store_is_default = object_store is None
        self._object_store: ObjectStore = (
            object_store if object_store is not None else S3ObjectStore(region)
        )
        self._sagemaker_version = sagemaker_version

        self._s3_cache: LRUCache[CachedS3ContentKey, CachedS3ContentValue] = LRUCache(
            max_cache_items=max_s3_cache_items,
            expiration_horizon=s3_cache_expiration_horizon,
            retrieval_function=self._get_file_from_s3,
            clock=clock,
        )
        self._model_id_semantic_version_manifest_key_cache: LRUCache[
            VersionedModelId, VersionedModelId
        ] = LRUCache(
            max_cache_items=max_semantic_version_cache_items,
            expiration_horizon=semantic_version_cache_expiration_horizon,
            retrieval_function=self._get_manifest_key_from_model_id_semantic_version,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_region(self) -> str:
        return self._region

    def set_region(self, region: str) -> None:
        """Set the region; clears the cache if it changed.

        Raises:
            ConfigurationError: The region has no JumpStart bucket and none
                was set explicitly. The cache is left unchanged.
        """
        with self._lock:
            if region == self._region:
                return
            bucket = (
                get_jumpstart_content_bucket(region)
                if self._bucket_is_default
                else self._s3_bucket_name
            )
            store = S3ObjectStore(region) if self._store_is_default else self._object_store
            self._region = region
            self._s3_bucket_name = bucket
            self._object_store = store
            log.info("models_cache_region_changed", region=region, bucket=self._s3_bucket_name)
            self.clear()

    def get_manifest_file_s3_key(self) -> str:
        return self._manifest_file_s3_key

    def set_manifest_file_s3_key(self, key: str) -> None:
        """Set the manifest S3 key; clears the cache if it changed."""
        with self._lock:
            if key == self._manifest_file_s3_key:
                return
            self._manifest_file_s3_key = key
            self.clear()

    def get_bucket(self) -> str:
        return self._s3_bucket_name

    def set_s3_bucket_name(self, s3_bucket_name: str) -> None:
        """Set the content bucket; clears the cache if it changed."""
        with self._lock:
            if s3_bucket_name == self._s3_bucket_name:
                return
            self._s3_bucket_name = s3_bucket_name
            self._bucket_is_default = False
            self.clear()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_manifest(self) -> list[ModelHeader]:
        """Return every header of the models manifest."""
        with self._lock:
            return list(self._get_formatted_manifest().values())

    def get_header(self, model_id: str, semantic_version_str: str) -> ModelHeader:
        """Return the manifest header for a model ID and version constraint.

        If the version cache resolves to an entry that the (refreshed)
        manifest no longer contains, the whole cache is cleared and the lookup
        is retried once.

        Raises:
            ModelNotFoundError: No compatible version matches the constraint.
            DataIntegrityError: The lookup still misses after the retry.
        """
        requested = VersionedModelId(model_id=model_id, version=semantic_version_str)
        with self._lock:
            for attempt in range(2):
                versioned_model_id = self._model_id_semantic_version_manifest_key_cache.get(
                    requested
                )
                header = self._get_formatted_manifest().get(versioned_model_id)
                if header is not None:
                    return header
                if attempt == 0:
                    log.warning(
                        "stale_model_version_resolution",
                        model_id=model_id,
                        requested_version=semantic_version_str,
                        resolved_version=versioned_model_id.version,
                    )
                    self.clear()

        raise DataIntegrityError(
            f"Resolved model '{model_id}' with version '{semantic_version_str}' to "
            f"'{versioned_model_id.version}', which is missing from the manifest "
            "after refreshing the cache."
        )

    def get_specs(self, model_id: str, semantic_version_str: str) -> ModelSpecs:
        """Return the specs for a model ID and version constraint."""
        with self._lock:
            header = self.get_header(model_id, semantic_version_str)
            value = self._s3_cache.get(
                CachedS3ContentKey(file_type=S3FileType.SPECS, s3_key=header.spec_key)
            )
            return value.formatted_content  # type: ignore[return-value]

    def clear(self) -> None:
        """Clear the S3 content cache and the semantic version cache."""
        with self._lock:
            self._s3_cache.clear()
            self._model_id_semantic_version_manifest_key_cache.clear()

    # ------------------------------------------------------------------
    # Retrieval functions
    # ------------------------------------------------------------------

    def _get_formatted_manifest(self) -> dict[VersionedModelId, ModelHeader]:
        value = self._s3_cache.get(
            CachedS3ContentKey(file_type=S3FileType.MANIFEST, s3_key=self._manifest_file_s3_key)
        )
        return value.formatted_content  # type: ignore[return-value]

    def _get_sagemaker_version(self) -> Version:
        provider = self._sagemaker_version
        if provider is None:
            version = parse_sagemaker_version()
        elif callable(provider):
            version = provider()
        else:
            version = provider
        return validate_version_string(version)

    def _get_manifest_key_from_model_id_semantic_version(
        self,
        key: VersionedModelId,
        value: VersionedModelId | None,
    ) -> VersionedModelId:
        """Resolve a version constraint to a concrete manifest key.

        Only versions whose ``min_version`` is satisfied by the SageMaker
        library are eligible. Incompatible versions are inspected solely to
        explain the failure to the caller.
        """
        model_id, version = key.model_id, key.version
        manifest = self._get_formatted_manifest()
        sm_version = self._get_sagemaker_version()

        headers = [h for h in manifest.values() if h.model_id == model_id]
        compatible = [Version(h.version) for h in headers if Version(h.min_version) <= sm_version]

        selected = select_version(version, compatible)
        if selected is not None:
            header = _single_header(headers, selected)
            return header.versioned_model_id

        all_versions = [Version(h.version) for h in headers]
        incompatible = select_version(version, all_versions)
        if incompatible is not None:
            header = _single_header(headers, incompatible)
            raise ModelNotFoundError(
                f"Unable to find model manifest for '{model_id}' with version '{version}' "
                f"compatible with your SageMaker version ('{sm_version}').",
                suggestion=(
                    "Consider upgrading your SageMaker library to at least version "
                    f"'{header.min_version}' so you can use version '{header.version}' "
                    f"of '{model_id}'."
                ),
            )

        message = f"Unable to find model manifest for '{model_id}' with version '{version}'."
        latest = select_version("*", all_versions)
        if latest is not None:
            suggestion = f"Consider using model ID '{model_id}' with version '{latest}'."
        else:
            possible_model_ids = sorted({h.model_id for h in manifest.values()})
            closest = get_close_matches(model_id, possible_model_ids, n=1, cutoff=0)
            if closest:
                suggestion = f"Did you mean to use model ID '{closest[0]}'?"
            else:
                suggestion = f"Visit {MODEL_ID_LIST_WEB_URL} for the updated list of models."
        raise ModelNotFoundError(message, suggestion=suggestion)

    def _get_file_from_s3(
        self, key: CachedS3ContentKey, value: CachedS3ContentValue | None
    ) -> CachedS3ContentValue:
        """Download and parse the S3 object for ``key``.

        For the manifest, the object is only downloaded when its ETag differs
        from the one recorded with ``value``.
        """
        bucket = self._s3_bucket_name

        if key.file_type is S3FileType.MANIFEST:
            if value is not None:
                etag = self._object_store.head(bucket, key.s3_key)
                if etag == value.md5_hash:
                    log.debug("manifest_unchanged", bucket=bucket, key=key.s3_key, etag=etag)
                    return value
            content = self._object_store.get(bucket, key.s3_key)
            formatted_manifest = get_formatted_manifest(json.loads(content.body))
            log.info(
                "manifest_downloaded",
                bucket=bucket,
                key=key.s3_key,
                etag=content.etag,
                entries=len(formatted_manifest),
            )
            return CachedS3ContentValue(
                formatted_content=formatted_manifest, md5_hash=content.etag
            )

        if key.file_type is S3FileType.SPECS:
            content = self._object_store.get(bucket, key.s3_key)
            specs = ModelSpecs.model_validate(json.loads(content.body))
            log.debug("specs_downloaded", bucket=bucket, key=key.s3_key)
            return CachedS3ContentValue(formatted_content=specs)

        raise ValueError(
            f"Bad value for key '{key}': must be in "
            f"{[S3FileType.MANIFEST.value, S3FileType.SPECS.value]}"
        )
