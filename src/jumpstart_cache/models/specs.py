"""Typed representation of a JumpStart model specs document.

Optional fields that are absent from the upstream JSON stay unset: they read
as ``None`` (or an empty list) and are omitted from ``to_json()`` output, so a
missing value is never confused with one the publisher actually sent.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

_TRAINING_FIELDS = (
    "training_ecr_specs",
    "training_artifact_key",
    "training_script_key",
    "hyperparameters",
)


class _SpecsModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", protected_namespaces=())

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ECRSpecs(_SpecsModel):
    """Container image coordinates for hosting or training."""

    framework: str
    framework_version: str
    py_version: str
    huggingface_transformers_version: str | None = None


class Hyperparameter(_SpecsModel):
    """Hyperparameter definition in the training container."""

    name: str
    type: str
    default: Any = None
    scope: str
    options: list[Any] | None = None
    min: int | float | None = None
    max: int | float | None = None
    exclusive_min: int | float | None = None
    exclusive_max: int | float | None = None


class EnvironmentVariable(_SpecsModel):
    """Environment variable definition in the hosting container."""

    name: str
    type: str
    default: Any = None
    scope: str


class ModelSpecs(_SpecsModel):
    """Full metadata document for one concrete model version."""

    model_id: str
    url: str | None = None
    version: str
    min_sdk_version: str
    incremental_training_supported: bool | None = None

    hosting_ecr_specs: ECRSpecs
    hosting_artifact_key: str
    hosting_script_key: str
    inference_environment_variables: list[EnvironmentVariable] = []
    inference_vulnerable: bool
    inference_dependencies: list[str] = []
    inference_vulnerabilities: list[str] = []

    training_supported: bool
    training_ecr_specs: ECRSpecs | None = None
    training_artifact_key: str | None = None
    training_script_key: str | None = None
    hyperparameters: list[Hyperparameter] = []
    training_vulnerable: bool
    training_dependencies: list[str] = []
    training_vulnerabilities: list[str] = []

    deprecated: bool

    @model_validator(mode="before")
    @classmethod
    def drop_training_fields_when_unsupported(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        supported = data.get("training_supported")
        if isinstance(supported, str):
            supported = supported.strip().lower() == "true"
        if supported:
            return data
        return {k: v for k, v in data.items() if k not in _TRAINING_FIELDS}
