from __future__ import annotations

from jumpstart_cache.models.cache import CachedS3ContentKey, CachedS3ContentValue
from jumpstart_cache.models.manifest import LaunchedRegionInfo, ModelHeader, VersionedModelId
from jumpstart_cache.models.specs import (
    ECRSpecs,
    EnvironmentVariable,
    Hyperparameter,
    ModelSpecs,
)

__all__ = [
    # manifest
    "VersionedModelId",
    "ModelHeader",
    "LaunchedRegionInfo",
    # specs
    "ECRSpecs",
    "Hyperparameter",
    "EnvironmentVariable",
    "ModelSpecs",
    # cache
    "CachedS3ContentKey",
    "CachedS3ContentValue",
]
