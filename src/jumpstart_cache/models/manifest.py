from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class VersionedModelId(BaseModel):
    """A model ID paired with a version or version constraint.

    ``version`` is either a concrete version (``"1.2.0"``) or a constraint such
    as ``"*"`` (latest) or ``"1.*"``. Instances are hashable and used as cache
    and manifest keys.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    version: str


class ModelHeader(BaseModel):
    """Single row of the JumpStart models manifest."""

    model_config = ConfigDict(frozen=True, extra="ignore", protected_namespaces=())

    model_id: str
    version: str
    min_version: str  # Minimum SageMaker library version
    spec_key: str  # S3 key of the full specs document

    @property
    def versioned_model_id(self) -> VersionedModelId:
        return VersionedModelId(model_id=self.model_id, version=self.version)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump()


class LaunchedRegionInfo(BaseModel):
    """Region in which JumpStart is launched, with its content bucket."""

    model_config = ConfigDict(frozen=True)

    region_name: str
    content_bucket: str
