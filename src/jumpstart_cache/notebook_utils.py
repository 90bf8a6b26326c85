"""Listing JumpStart models, tasks, frameworks and scripts from the cached manifest.

A filter is a string such as ``"task == ic"`` or a sequence of them; a model
is listed only when every filter holds. Supported operators are ``==``,
``!=``, ``in`` and ``not in``, the last two taking a Python literal list
(``"framework in ['pytorch', 'tensorflow']"``).

Keys are resolved in this order:

* ``task``, ``framework`` and ``supported_model``, derived from the manifest row;
* fields of the manifest row itself (``model_id``, ``version``, ...);
* top-level fields of the model specs, which are downloaded only for rows the
  manifest alone cannot decide.

Specs are only read for versions the SageMaker library can use. For other
rows, and for specs that leave a filtered field unset, the filter cannot be
decided and ``list_incomplete_models`` chooses whether the row is listed.
"""

from __future__ import annotations

from ast import literal_eval
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from packaging.version import Version

from jumpstart_cache.enums import FilterOperators, JumpStartScriptScope, SpecialSupportedFilterKeys
from jumpstart_cache.models.manifest import ModelHeader
from jumpstart_cache.models.specs import ModelSpecs

if TYPE_CHECKING:
    from jumpstart_cache.accessors import ModelsAccessor

log = structlog.get_logger()

ModelFilterInput = str | Sequence[str] | None

# Longer operators first so "!=" is not read as "=" and "not in" not as "in".
_OPERATORS_IN_PARSE_ORDER = (
    (FilterOperators.NOT_EQUALS, "!="),
    (FilterOperators.NOT_IN, " not in "),
    (FilterOperators.EQUALS, "=="),
    (FilterOperators.IN, " in "),
)

_MANIFEST_KEYS = frozenset(ModelHeader.model_fields)
_SPECS_KEYS = frozenset(ModelSpecs.model_fields)
_SPECIAL_KEYS = frozenset(SpecialSupportedFilterKeys)


@dataclass(frozen=True)
class ModelFilter:
    """One parsed ``key operator value`` filter."""

    key: str
    operator: FilterOperators
    value: str


def parse_filter_string(filter_string: str) -> ModelFilter:
    """Parse ``"key op value"`` into a :class:`ModelFilter`.

    Raises:
        ValueError: No supported operator splits the string in two.
    """
    for operator, token in _OPERATORS_IN_PARSE_ORDER:
        parts = filter_string.split(token)
        if len(parts) == 2:
            key, value = parts[0].strip(), parts[1].strip()
            if key and value:
                return ModelFilter(key=key, operator=operator, value=value)
    raise ValueError(f"Cannot parse filter string: {filter_string}")


def evaluate_filter_expression(model_filter: ModelFilter, cached_model_value: Any) -> bool:
    """Evaluate ``model_filter`` against one metadata value.

    Booleans compare case-insensitively with their string form, so
    ``"training_supported == True"`` and ``"... == true"`` agree.
    """
    if model_filter.operator in (FilterOperators.EQUALS, FilterOperators.NOT_EQUALS):
        expected = model_filter.value
        actual = cached_model_value
        if isinstance(actual, bool):
            actual = str(actual).lower()
            expected = expected.lower()
        equal = str(expected) == str(actual)
        return equal if model_filter.operator is FilterOperators.EQUALS else not equal

    try:
        options = literal_eval(model_filter.value)
    except (ValueError, SyntaxError):
        raise ValueError(
            f"Filter value for '{model_filter.key}' must be a Python literal list: "
            f"{model_filter.value}"
        ) from None
    if not isinstance(options, (list, tuple, set, frozenset)):
        options = [options]
    contained = cached_model_value in options
    return contained if model_filter.operator is FilterOperators.IN else not contained


def extract_framework_task_model(model_id: str) -> tuple[str, str, str]:
    """Split a model ID into framework, task and the rest of the name.

    Raises:
        ValueError: The ID has fewer than three ``-`` separated parts.
    """
    parts = model_id.split("-")
    if len(parts) < 3:
        raise ValueError(f"incorrect model ID: {model_id}.")
    return parts[0], parts[1], "-".join(parts[2:])


def _parse_filters(filter: ModelFilterInput) -> list[ModelFilter]:
    if filter is None:
        return []
    if isinstance(filter, str):
        filter = [filter]
    model_filters = [parse_filter_string(f) for f in filter]

    for model_filter in model_filters:
        if "." in model_filter.key:
            raise NotImplementedError(
                f"No support for multiple level metadata indexing ('{model_filter.key}')."
            )
    unrecognized = sorted(
        {f.key for f in model_filters} - _SPECIAL_KEYS - _MANIFEST_KEYS - _SPECS_KEYS
    )
    if unrecognized:
        raise ValueError(f"Unrecognized keys: {', '.join(unrecognized)}")
    return model_filters


def _manifest_values(header: ModelHeader, sagemaker_version: Version) -> dict[str, Any]:
    values = header.model_dump()
    values[SpecialSupportedFilterKeys.SUPPORTED_MODEL.value] = (
        Version(header.min_version) <= sagemaker_version
    )
    # IDs without framework and task parts leave those keys undecided
    if header.model_id.count("-") >= 2:
        framework, task, _ = extract_framework_task_model(header.model_id)
        values[SpecialSupportedFilterKeys.FRAMEWORK.value] = framework
        values[SpecialSupportedFilterKeys.TASK.value] = task
    return values


def _evaluate(model_filters: list[ModelFilter], values: dict[str, Any]) -> bool | None:
    """Return False if any filter fails, None if any is undecided, else True."""
    undecided = False
    for model_filter in model_filters:
        value = values.get(model_filter.key)
        if value is None:
            undecided = True
        elif not evaluate_filter_expression(model_filter, value):
            return False
    return None if undecided else True


def _generate_jumpstart_model_versions(
    filter: ModelFilterInput = None,
    region: str | None = None,
    list_incomplete_models: bool = False,
    *,
    accessor: ModelsAccessor,
) -> Iterator[ModelHeader]:
    """Yield every manifest row matching ``filter``."""
    model_filters = _parse_filters(filter)
    sagemaker_version = Version(accessor.get_sagemaker_version())

    for header in accessor.get_manifest(region=region):
        values = _manifest_values(header, sagemaker_version)
        matched = _evaluate(model_filters, values)
        if matched is None and values[SpecialSupportedFilterKeys.SUPPORTED_MODEL]:
            model_specs = accessor.get_model_specs(
                region=region, model_id=header.model_id, version=header.version
            )
            values.update(
                (key, value)
                for key, value in model_specs.model_dump(exclude_unset=True).items()
                if key not in values
            )
            matched = _evaluate(model_filters, values)

        if matched is None:
            log.debug(
                "model_filter_undecided",
                model_id=header.model_id,
                version=header.version,
                listed=list_incomplete_models,
            )
            matched = list_incomplete_models
        if matched:
            yield header


def list_jumpstart_models(
    filter: ModelFilterInput = None,
    region: str | None = None,
    list_incomplete_models: bool = False,
    list_old_models: bool = False,
    list_versions: bool = False,
    *,
    accessor: ModelsAccessor,
) -> list[str] | list[tuple[str, str]]:
    """List model IDs, optionally with versions.

    Args:
        filter: Filter string or strings that must all hold.
        region: Region whose manifest is listed. Defaults to the accessor's
            current region.
        list_incomplete_models: List rows whose metadata cannot decide the
            filter.
        list_old_models: With ``list_versions``, list every matching version
            instead of only the latest one per model.
        list_versions: Return ``(model_id, version)`` pairs sorted by model ID
            and then newest version first, instead of sorted model IDs.
        accessor: Source of the manifest and specs.
    """
    versions_by_model: dict[str, list[Version]] = {}
    for header in _generate_jumpstart_model_versions(
        filter, region, list_incomplete_models, accessor=accessor
    ):
        versions_by_model.setdefault(header.model_id, []).append(Version(header.version))

    if not list_versions:
        return sorted(versions_by_model)

    pairs: list[tuple[str, Version]] = []
    for model_id, versions in versions_by_model.items():
        selected = versions if list_old_models else [max(versions)]
        pairs.extend((model_id, version) for version in set(selected))
    pairs.sort(key=lambda pair: pair[1], reverse=True)
    pairs.sort(key=lambda pair: pair[0])
    return [(model_id, str(version)) for model_id, version in pairs]


def list_jumpstart_tasks(
    filter: ModelFilterInput = None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
) -> list[str]:
    """List the distinct tasks of models matching ``filter``."""
    return sorted(
        {
            extract_framework_task_model(header.model_id)[1]
            for header in _generate_jumpstart_model_versions(filter, region, accessor=accessor)
        }
    )


def list_jumpstart_frameworks(
    filter: ModelFilterInput = None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
) -> list[str]:
    """List the distinct frameworks of models matching ``filter``."""
    return sorted(
        {
            extract_framework_task_model(header.model_id)[0]
            for header in _generate_jumpstart_model_versions(filter, region, accessor=accessor)
        }
    )


def list_jumpstart_scripts(
    filter: ModelFilterInput = None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
) -> list[str]:
    """List the script scopes offered by models matching ``filter``.

    Without a filter every scope is returned and nothing is downloaded.
    """
    all_scopes = {scope.value for scope in JumpStartScriptScope}
    if not filter:
        return sorted(all_scopes)

    scripts: set[str] = set()
    sagemaker_version = Version(accessor.get_sagemaker_version())
    for header in _generate_jumpstart_model_versions(filter, region, accessor=accessor):
        scripts.add(JumpStartScriptScope.INFERENCE.value)
        if Version(header.min_version) > sagemaker_version:
            continue
        model_specs = accessor.get_model_specs(
            region=region, model_id=header.model_id, version=header.version
        )
        if model_specs.training_supported:
            scripts.add(JumpStartScriptScope.TRAINING.value)
        if scripts == all_scopes:
            break
    return sorted(scripts)


def get_model_url(
    model_id: str,
    model_version: str,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
) -> str | None:
    """Return the web page describing the pretrained model, if the specs name one."""
    model_specs = accessor.get_model_specs(region=region, model_id=model_id, version=model_version)
    return model_specs.url
