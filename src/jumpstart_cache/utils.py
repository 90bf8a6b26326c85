"""Helpers shared by the cache, the accessor and the validators."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from importlib import metadata
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from packaging.version import InvalidVersion, Version

from jumpstart_cache.constants import (
    ENV_VARIABLE_JUMPSTART_CONTENT_BUCKET_OVERRIDE,
    JUMPSTART_BUCKET_NAME_SET,
    JUMPSTART_REGION_NAME_SET,
    JUMPSTART_REGION_NAME_TO_LAUNCHED_REGION_DICT,
    JUMPSTART_RESOURCE_BASE_NAME,
    SUPPORTED_JUMPSTART_SCOPES,
)
from jumpstart_cache.enums import JumpStartScriptScope, JumpStartTag
from jumpstart_cache.errors import (
    ConfigurationError,
    DataIntegrityError,
    DeprecatedModelError,
    VulnerableModelError,
)
from jumpstart_cache.models.manifest import ModelHeader, VersionedModelId

if TYPE_CHECKING:
    from jumpstart_cache.accessors import ModelsAccessor
    from jumpstart_cache.models.specs import ModelSpecs

log = structlog.get_logger()

Tag = dict[str, str]

# ---------------------------------------------------------------------------
# Regions and buckets
# ---------------------------------------------------------------------------


def get_jumpstart_launched_regions_message() -> str:
    """Return a sentence listing the regions where JumpStart is launched."""
    if len(JUMPSTART_REGION_NAME_SET) == 0:
        return "JumpStart is not available in any region."
    sorted_regions = sorted(JUMPSTART_REGION_NAME_SET)
    if len(sorted_regions) == 1:
        return f"JumpStart is available in {sorted_regions[0]} region."
    if len(sorted_regions) == 2:
        return f"JumpStart is available in {sorted_regions[0]} and {sorted_regions[1]} regions."
    return (
        f"JumpStart is available in {', '.join(sorted_regions[:-1])}, "
        f"and {sorted_regions[-1]} regions."
    )


def get_jumpstart_content_bucket(region: str) -> str:
    """Return the JumpStart content bucket for ``region``.

    The ``AWS_JUMPSTART_CONTENT_BUCKET_OVERRIDE`` environment variable takes
    precedence over the static region table.

    Raises:
        ConfigurationError: No override is set and JumpStart is not launched
            in ``region``.
    """
    bucket_override = os.environ.get(ENV_VARIABLE_JUMPSTART_CONTENT_BUCKET_OVERRIDE)
    if bucket_override:
        log.info("jumpstart_bucket_override", bucket=bucket_override)
        return bucket_override

    region_info = JUMPSTART_REGION_NAME_TO_LAUNCHED_REGION_DICT.get(region)
    if region_info is None:
        raise ConfigurationError(
            f"Unable to get content bucket for JumpStart in {region} region.",
            suggestion=get_jumpstart_launched_regions_message(),
        )
    return region_info.content_bucket


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


def get_formatted_manifest(
    manifest: Iterable[Mapping[str, Any]],
) -> dict[VersionedModelId, ModelHeader]:
    """Index raw manifest rows by ``(model_id, version)``.

    Raises:
        DataIntegrityError: Two rows share the same model ID and version.
    """
    manifest_dict: dict[VersionedModelId, ModelHeader] = {}
    for row in manifest:
        header = ModelHeader.model_validate(row)
        key = header.versioned_model_id
        if key in manifest_dict:
            raise DataIntegrityError(
                f"Duplicate manifest entry for model '{header.model_id}' "
                f"with version '{header.version}'.",
                suggestion="The upstream models manifest is corrupt.",
            )
        manifest_dict[key] = header
    return manifest_dict


# ---------------------------------------------------------------------------
# SageMaker library version
# ---------------------------------------------------------------------------


def parse_sagemaker_version() -> str:
    """Return the installed ``sagemaker`` library version.

    Versions with fewer than 2 or more than 3 periods are rejected; with 3
    periods the trailing segment is dropped (``2.1.0.post0`` -> ``2.1.0``).

    Raises:
        ConfigurationError: The distribution is not installed or its version
            cannot be parsed.
    """
    try:
        version = metadata.version("sagemaker")
    except metadata.PackageNotFoundError:
        raise ConfigurationError(
            "Unable to determine the SageMaker library version: "
            "the 'sagemaker' distribution is not installed.",
            suggestion="Set the `sagemaker_version` setting explicitly.",
        ) from None

    num_periods = version.count(".")
    if num_periods == 2:
        parsed_version = version
    elif num_periods == 3:
        parsed_version = version[: version.rfind(".")]
    else:
        raise ConfigurationError(f"Bad value for SageMaker version: {version}")

    validate_version_string(parsed_version)
    return parsed_version


def validate_version_string(version: str) -> Version:
    """Parse ``version`` with ``packaging``, raising ConfigurationError if invalid."""
    try:
        return Version(version)
    except InvalidVersion:
        raise ConfigurationError(f"Bad value for SageMaker version: {version}") from None


# ---------------------------------------------------------------------------
# Model inputs and URIs
# ---------------------------------------------------------------------------


def is_jumpstart_model_input(model_id: str | None, version: str | None) -> bool:
    """Return True if both ``model_id`` and ``version`` are given.

    Raises:
        ValueError: Only one of the two arguments is given.
    """
    if model_id is not None or version is not None:
        if model_id is None or version is None:
            raise ValueError(
                "Must specify `model_id` and `model_version` when getting specs for "
                "JumpStart models."
            )
        return True
    return False


def is_jumpstart_model_uri(uri: str | None) -> bool:
    """Return True if ``uri`` points into a JumpStart content bucket."""
    if not uri:
        return False
    parsed = urlparse(uri)
    if parsed.scheme != "s3":
        return False
    return parsed.netloc in JUMPSTART_BUCKET_NAME_SET


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def tag_key_in_array(tag_key: str, tag_array: Iterable[Tag]) -> bool:
    return any(tag["Key"] == tag_key for tag in tag_array)


def get_tag_value(tag_key: str, tag_array: Iterable[Tag]) -> str:
    """Return the value of the single tag whose key is ``tag_key``.

    Raises:
        KeyError: Zero or several tags match.
    """
    tag_values = [tag["Value"] for tag in tag_array if tag["Key"] == tag_key]
    if len(tag_values) != 1:
        raise KeyError(
            f"Cannot get value of tag for tag key '{tag_key}' -- found {len(tag_values)} "
            "number of matches in the tag list."
        )
    return tag_values[0]


def add_single_jumpstart_tag(
    uri: str, tag_key: JumpStartTag, curr_tags: list[Tag] | None
) -> list[Tag] | None:
    """Return ``curr_tags`` plus ``tag_key=uri`` if ``uri`` is a JumpStart URI."""
    if not is_jumpstart_model_uri(uri):
        return curr_tags
    tags = list(curr_tags) if curr_tags is not None else []
    if not tag_key_in_array(tag_key, tags):
        tags.append({"Key": tag_key.value, "Value": uri})
    return tags


def add_jumpstart_tags(
    tags: list[Tag] | None = None,
    inference_model_uri: str | None = None,
    inference_script_uri: str | None = None,
    training_model_uri: str | None = None,
    training_script_uri: str | None = None,
) -> list[Tag] | None:
    """Add JumpStart tags for each given URI; no-op for non-JumpStart URIs."""
    uris = (
        (inference_model_uri, JumpStartTag.INFERENCE_MODEL_URI),
        (inference_script_uri, JumpStartTag.INFERENCE_SCRIPT_URI),
        (training_model_uri, JumpStartTag.TRAINING_MODEL_URI),
        (training_script_uri, JumpStartTag.TRAINING_SCRIPT_URI),
    )
    for uri, tag_key in uris:
        if uri is not None:
            tags = add_single_jumpstart_tag(uri, tag_key, tags)
    return tags


def get_jumpstart_base_name_if_jumpstart_model(*uris: str | None) -> str | None:
    """Return the JumpStart resource base name if any URI belongs to JumpStart."""
    for uri in uris:
        if is_jumpstart_model_uri(uri):
            return JUMPSTART_RESOURCE_BASE_NAME
    return None


def update_inference_tags_with_jumpstart_training_tags(
    inference_tags: list[Tag] | None, training_tags: list[Tag] | None
) -> list[Tag] | None:
    """Copy JumpStart tags from a training job onto inference tags."""
    if not training_tags:
        return inference_tags
    for tag_key in JumpStartTag:
        if tag_key_in_array(tag_key, training_tags):
            tag_value = get_tag_value(tag_key, training_tags)
            inference_tags = list(inference_tags) if inference_tags is not None else []
            if not tag_key_in_array(tag_key, inference_tags):
                inference_tags.append({"Key": tag_key.value, "Value": tag_value})
    return inference_tags


# ---------------------------------------------------------------------------
# Spec verification
# ---------------------------------------------------------------------------


def verify_model_region_and_return_specs(
    model_id: str,
    version: str,
    scope: JumpStartScriptScope | str | None,
    region: str | None,
    *,
    accessor: ModelsAccessor,
    tolerate_vulnerable_model: bool = False,
    tolerate_deprecated_model: bool = False,
) -> ModelSpecs:
    """Fetch specs and check they are usable for ``scope``.

    Raises:
        ValueError: ``scope`` is missing, or training is requested for a model
            that does not support it.
        NotImplementedError: ``scope`` is not a JumpStart script scope.
        DeprecatedModelError: The specs are deprecated and not tolerated.
        VulnerableModelError: The ``scope`` script is vulnerable and not tolerated.
    """
    if scope is None:
        raise ValueError(
            "Must specify `model_scope` argument to retrieve model "
            "artifact uri for JumpStart models."
        )
    if scope not in SUPPORTED_JUMPSTART_SCOPES:
        raise NotImplementedError(
            "JumpStart models only support scopes: "
            f"{', '.join(sorted(SUPPORTED_JUMPSTART_SCOPES))}."
        )
    scope = JumpStartScriptScope(scope)

    model_specs = accessor.get_model_specs(region=region, model_id=model_id, version=version)

    if scope is JumpStartScriptScope.TRAINING and not model_specs.training_supported:
        raise ValueError(
            f"JumpStart model ID '{model_id}' and version '{version}' does not support training."
        )

    if model_specs.deprecated:
        if not tolerate_deprecated_model:
            raise DeprecatedModelError(model_id=model_id, version=version)
        log.warning("deprecated_model_tolerated", model_id=model_id, version=version)

    vulnerable, vulnerabilities = (
        (model_specs.inference_vulnerable, model_specs.inference_vulnerabilities)
        if scope is JumpStartScriptScope.INFERENCE
        else (model_specs.training_vulnerable, model_specs.training_vulnerabilities)
    )
    if vulnerable:
        if not tolerate_vulnerable_model:
            raise VulnerableModelError(
                model_id=model_id,
                version=version,
                vulnerabilities=vulnerabilities,
                scope=scope,
            )
        log.warning(
            "vulnerable_model_tolerated", model_id=model_id, version=version, scope=scope.value
        )

    return model_specs
