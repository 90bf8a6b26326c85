"""Error taxonomy for JumpStart metadata lookups.

Every error raised by this package derives from :class:`JumpStartError` and
carries a machine-readable :class:`ErrorCode`, a human message, an optional
remediation hint and a ``recoverable`` flag. Errors from the storage backend
(botocore) and from JSON parsing are not wrapped; they reach the caller as-is.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from jumpstart_cache.enums import JumpStartScriptScope


class ErrorCode(StrEnum):
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    DATA_INTEGRITY = "DATA_INTEGRITY"
    CONFIGURATION = "CONFIGURATION"
    DEPRECATED_MODEL = "DEPRECATED_MODEL"
    VULNERABLE_MODEL = "VULNERABLE_MODEL"
    INVALID_HYPERPARAMETERS = "INVALID_HYPERPARAMETERS"


class JumpStartError(Exception):
    """Base class for all errors raised by jumpstart_cache."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message} {self.suggestion}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class ModelNotFoundError(JumpStartError, KeyError):
    """A model ID / version constraint cannot be resolved against the manifest."""

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(ErrorCode.MODEL_NOT_FOUND, message, suggestion)


class DataIntegrityError(JumpStartError):
    """Upstream metadata is inconsistent, e.g. duplicate manifest rows."""

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(ErrorCode.DATA_INTEGRITY, message, suggestion)


class ConfigurationError(JumpStartError, ValueError):
    """Cache or accessor configuration is invalid or contradictory."""

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(ErrorCode.CONFIGURATION, message, suggestion)


class HyperparametersError(JumpStartError, ValueError):
    """Hyperparameters do not satisfy the model's hyperparameter specs."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_HYPERPARAMETERS, message)


class DeprecatedModelError(JumpStartError):
    """Deprecated specs of a JumpStart model were requested.

    Deprecated specs for one version do not mean the whole model is deprecated;
    more recent versions of the same model may be available.
    """

    def __init__(
        self,
        model_id: str | None = None,
        version: str | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            if model_id is None or version is None:
                raise ValueError("Must specify `model_id` and `version` arguments.")
            message = f"Version '{version}' of JumpStart model '{model_id}' is deprecated."
        super().__init__(
            ErrorCode.DEPRECATED_MODEL,
            message,
            suggestion="Please try targeting a higher version of the model.",
        )


class VulnerableModelError(JumpStartError):
    """Specifications flagged as vulnerable were requested for a given scope.

    Only raised when the accessed scope is vulnerable: a model may have a
    vulnerable training script while its hosting script is clean.
    """

    def __init__(
        self,
        model_id: str | None = None,
        version: str | None = None,
        vulnerabilities: Iterable[str] | None = None,
        scope: JumpStartScriptScope | None = None,
        message: str | None = None,
    ) -> None:
        suggestion = ""
        if message is None:
            if model_id is None or version is None or vulnerabilities is None or scope is None:
                raise ValueError(
                    "Must specify `model_id`, `version`, `vulnerabilities`, and `scope` arguments."
                )
            if scope not in (JumpStartScriptScope.INFERENCE, JumpStartScriptScope.TRAINING):
                raise NotImplementedError(
                    f"Unsupported scope for VulnerableModelError: '{scope}'"
                )
            message = (
                f"Version '{version}' of JumpStart model '{model_id}' has at least 1 "
                f"vulnerable dependency in the {scope} script. "
                f"List of vulnerabilities: {', '.join(vulnerabilities)}"
            )
            suggestion = "Please try targeting a higher version of the model."
        super().__init__(ErrorCode.VULNERABLE_MODEL, message, suggestion)
