"""Closed enumerations used across JumpStart metadata."""

from __future__ import annotations

from enum import StrEnum


class S3FileType(StrEnum):
    """Type of files published in JumpStart S3 distribution buckets."""

    MANIFEST = "manifest"
    SPECS = "specs"


class VariableScope(StrEnum):
    """Scope of a hyperparameter or environment variable."""

    CONTAINER = "container"
    ALGORITHM = "algorithm"


class JumpStartScriptScope(StrEnum):
    INFERENCE = "inference"
    TRAINING = "training"


class HyperparameterValidationMode(StrEnum):
    VALIDATE_PROVIDED = "validate_provided"
    VALIDATE_ALGORITHM = "validate_algorithm"
    VALIDATE_ALL = "validate_all"


class VariableTypes(StrEnum):
    """Possible types for hyperparameters and environment variables."""

    TEXT = "text"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


class JumpStartTag(StrEnum):
    """Tag keys applied to resources created from JumpStart models."""

    INFERENCE_MODEL_URI = "aws-jumpstart-inference-model-uri"
    INFERENCE_SCRIPT_URI = "aws-jumpstart-inference-script-uri"
    TRAINING_MODEL_URI = "aws-jumpstart-training-model-uri"
    TRAINING_SCRIPT_URI = "aws-jumpstart-training-script-uri"


class FilterOperators(StrEnum):
    """Comparison operators accepted in model filter strings."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "not in"


class SpecialSupportedFilterKeys(StrEnum):
    """Filter keys derived from the manifest rather than read from it."""

    TASK = "task"
    FRAMEWORK = "framework"
    SUPPORTED_MODEL = "supported_model"
