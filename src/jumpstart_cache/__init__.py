"""Cached access to SageMaker JumpStart model metadata."""

from __future__ import annotations

from jumpstart_cache.accessors import ModelsAccessor
from jumpstart_cache.cache import ModelsCache
from jumpstart_cache.config import Settings
from jumpstart_cache.errors import (
    ConfigurationError,
    DataIntegrityError,
    DeprecatedModelError,
    HyperparametersError,
    JumpStartError,
    ModelNotFoundError,
    VulnerableModelError,
)
from jumpstart_cache.lru import LRUCache
from jumpstart_cache.state import AppState, build_app_state

__version__ = "0.1.0"

__all__ = [
    "AppState",
    "ConfigurationError",
    "DataIntegrityError",
    "DeprecatedModelError",
    "HyperparametersError",
    "JumpStartError",
    "LRUCache",
    "ModelNotFoundError",
    "ModelsAccessor",
    "ModelsCache",
    "Settings",
    "VulnerableModelError",
    "build_app_state",
]
