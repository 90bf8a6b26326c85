"""S3 locations and default settings derived from a model's specs.

URIs point into the content bucket the accessor reads metadata from, so an
explicit bucket or the override env var applies to artifacts as well.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from jumpstart_cache.enums import JumpStartScriptScope, VariableScope
from jumpstart_cache.utils import verify_model_region_and_return_specs

if TYPE_CHECKING:
    from jumpstart_cache.accessors import ModelsAccessor

log = structlog.get_logger()


def retrieve_model_uri(
    model_id: str,
    model_version: str,
    model_scope: JumpStartScriptScope | str | None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
    tolerate_vulnerable_model: bool = False,
    tolerate_deprecated_model: bool = False,
) -> str:
    """Return the ``s3://`` URI of the model artifact for ``model_scope``.

    Raises:
        ValueError: ``model_scope`` is missing, or training is requested for a
            model that does not support it.
        DeprecatedModelError: The specs are deprecated and not tolerated.
        VulnerableModelError: The scope's script is vulnerable and not tolerated.
    """
    model_specs = verify_model_region_and_return_specs(
        model_id=model_id,
        version=model_version,
        scope=model_scope,
        region=region,
        accessor=accessor,
        tolerate_vulnerable_model=tolerate_vulnerable_model,
        tolerate_deprecated_model=tolerate_deprecated_model,
    )
    if JumpStartScriptScope(model_scope) is JumpStartScriptScope.INFERENCE:
        artifact_key = model_specs.hosting_artifact_key
    else:
        artifact_key = model_specs.training_artifact_key
    return f"s3://{accessor.get_bucket(region)}/{artifact_key}"


def retrieve_script_uri(
    model_id: str,
    model_version: str,
    script_scope: JumpStartScriptScope | str | None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
    tolerate_vulnerable_model: bool = False,
    tolerate_deprecated_model: bool = False,
) -> str:
    """Return the ``s3://`` URI of the source tarball for ``script_scope``.

    Raises the same errors as :func:`retrieve_model_uri`.
    """
    model_specs = verify_model_region_and_return_specs(
        model_id=model_id,
        version=model_version,
        scope=script_scope,
        region=region,
        accessor=accessor,
        tolerate_vulnerable_model=tolerate_vulnerable_model,
        tolerate_deprecated_model=tolerate_deprecated_model,
    )
    if JumpStartScriptScope(script_scope) is JumpStartScriptScope.INFERENCE:
        script_key = model_specs.hosting_script_key
    else:
        script_key = model_specs.training_script_key
    return f"s3://{accessor.get_bucket(region)}/{script_key}"


def retrieve_default_hyperparameters(
    model_id: str,
    model_version: str,
    region: str | None = None,
    include_container_hyperparameters: bool = False,
    *,
    accessor: ModelsAccessor,
) -> dict[str, str]:
    """Return the default training hyperparameters as strings.

    Algorithm hyperparameters are always included. Container hyperparameters
    (such as the entry point script) only when
    ``include_container_hyperparameters`` is set.
    """
    model_specs = accessor.get_model_specs(region=region, model_id=model_id, version=model_version)
    default_hyperparameters = {}
    for hyperparameter in model_specs.hyperparameters:
        if hyperparameter.scope == VariableScope.ALGORITHM or (
            include_container_hyperparameters
            and hyperparameter.scope == VariableScope.CONTAINER
        ):
            default_hyperparameters[hyperparameter.name] = str(hyperparameter.default)
    log.debug(
        "default_hyperparameters_retrieved",
        model_id=model_id,
        version=model_specs.version,
        count=len(default_hyperparameters),
    )
    return default_hyperparameters


def retrieve_default_environment_variables(
    model_id: str,
    model_version: str,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
) -> dict[str, str]:
    """Return the default inference environment variables as strings."""
    model_specs = accessor.get_model_specs(region=region, model_id=model_id, version=model_version)
    return {
        variable.name: str(variable.default)
        for variable in model_specs.inference_environment_variables
    }
