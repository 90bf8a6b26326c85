"""Hyperparameter validation against a model's training specs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jumpstart_cache.enums import (
    HyperparameterValidationMode,
    JumpStartScriptScope,
    VariableScope,
    VariableTypes,
)
from jumpstart_cache.errors import HyperparametersError
from jumpstart_cache.utils import verify_model_region_and_return_specs

if TYPE_CHECKING:
    from jumpstart_cache.accessors import ModelsAccessor
    from jumpstart_cache.models.specs import Hyperparameter


def _validate_hyperparameter(
    hyperparameter_name: str,
    hyperparameter_value: Any,
    hyperparameter_specs: list[Hyperparameter],
) -> None:
    """Check one value against the spec with the same name.

    Raises:
        HyperparametersError: The spec is missing or ambiguous, or the value
            violates its type, options or bounds.
    """
    matching = [spec for spec in hyperparameter_specs if spec.name == hyperparameter_name]
    if len(matching) == 0:
        raise HyperparametersError(
            f"Unable to perform validation -- cannot find hyperparameter '{hyperparameter_name}' "
            "in model specs."
        )
    if len(matching) > 1:
        raise HyperparametersError(
            "Unable to perform validation -- found multiple hyperparameter "
            f"'{hyperparameter_name}' in model specs."
        )
    spec = matching[0]

    if spec.type == VariableTypes.BOOL:
        if isinstance(hyperparameter_value, bool):
            return
        if not isinstance(hyperparameter_value, str) or hyperparameter_value.lower() not in (
            "true",
            "false",
        ):
            raise HyperparametersError(
                f"Expecting boolean valued hyperparameter, but got '{hyperparameter_value}'."
            )

    elif spec.type == VariableTypes.TEXT:
        if not isinstance(hyperparameter_value, str):
            raise HyperparametersError("Expecting text valued hyperparameter to have string type.")
        if spec.options is not None and hyperparameter_value not in spec.options:
            raise HyperparametersError(
                f"Hyperparameter '{hyperparameter_name}' must have one of the following "
                f"values: {', '.join(str(option) for option in spec.options)}."
            )
        _check_bounds(hyperparameter_name, len(hyperparameter_value), spec, "length ")

    elif spec.type in (VariableTypes.INT, VariableTypes.FLOAT):
        try:
            numeric_value = float(hyperparameter_value)
        except (TypeError, ValueError):
            raise HyperparametersError(
                f"Hyperparameter '{hyperparameter_name}' must be numeric type "
                f"('{hyperparameter_value}')."
            ) from None

        if spec.type == VariableTypes.INT:
            value_str = str(hyperparameter_value)
            digits = value_str[1:] if value_str[:1] in ("+", "-") else value_str
            if not digits.isdigit():
                raise HyperparametersError(
                    f"Hyperparameter '{hyperparameter_name}' must be integer type "
                    f"('{hyperparameter_value}')."
                )
        _check_bounds(hyperparameter_name, numeric_value, spec, "a value ")


def _check_bounds(name: str, value: float, spec: Hyperparameter, subject: str) -> None:
    # subject is "length " for text values, "a value " for numbers
    if spec.min is not None and value < spec.min:
        raise HyperparametersError(
            f"Hyperparameter '{name}' must have {subject}no less than {spec.min}."
        )
    if spec.max is not None and value > spec.max:
        raise HyperparametersError(
            f"Hyperparameter '{name}' must have {subject}no greater than {spec.max}."
        )
    if spec.exclusive_min is not None and value <= spec.exclusive_min:
        raise HyperparametersError(
            f"Hyperparameter '{name}' must have {subject}greater than {spec.exclusive_min}."
        )
    if spec.exclusive_max is not None and value >= spec.exclusive_max:
        raise HyperparametersError(
            f"Hyperparameter '{name}' must have {subject}less than {spec.exclusive_max}."
        )


def validate_hyperparameters(
    model_id: str,
    model_version: str,
    hyperparameters: Mapping[str, Any],
    validation_mode: HyperparameterValidationMode | None = None,
    region: str | None = None,
    *,
    accessor: ModelsAccessor,
    tolerate_vulnerable_model: bool = False,
    tolerate_deprecated_model: bool = False,
) -> None:
    """Validate training hyperparameters for a JumpStart model.

    Args:
        model_id: Model whose hyperparameter specs are used.
        model_version: Version constraint for the model.
        hyperparameters: Name to value mapping to validate.
        validation_mode: ``VALIDATE_PROVIDED`` (default) checks only the given
            values; ``VALIDATE_ALGORITHM`` requires and checks every
            algorithm-scoped hyperparameter; ``VALIDATE_ALL`` does so for every
            hyperparameter of the model.
        region: Region to look the model up in. Defaults to the accessor's
            current region.
        accessor: Source of model specs.
        tolerate_vulnerable_model: Log instead of raising for a vulnerable
            training script.
        tolerate_deprecated_model: Log instead of raising for deprecated specs.

    Raises:
        HyperparametersError: A hyperparameter is missing or invalid.
    """
    if validation_mode is None:
        validation_mode = HyperparameterValidationMode.VALIDATE_PROVIDED

    model_specs = verify_model_region_and_return_specs(
        model_id=model_id,
        version=model_version,
        scope=JumpStartScriptScope.TRAINING,
        region=region,
        accessor=accessor,
        tolerate_vulnerable_model=tolerate_vulnerable_model,
        tolerate_deprecated_model=tolerate_deprecated_model,
    )
    specs = model_specs.hyperparameters

    if validation_mode == HyperparameterValidationMode.VALIDATE_PROVIDED:
        for name, value in hyperparameters.items():
            _validate_hyperparameter(name, value, specs)

    elif validation_mode == HyperparameterValidationMode.VALIDATE_ALGORITHM:
        for spec in specs:
            if spec.scope != VariableScope.ALGORITHM:
                continue
            if spec.name not in hyperparameters:
                raise HyperparametersError(
                    f"Cannot find algorithm hyperparameter for '{spec.name}'."
                )
            _validate_hyperparameter(spec.name, hyperparameters[spec.name], specs)

    elif validation_mode == HyperparameterValidationMode.VALIDATE_ALL:
        for spec in specs:
            if spec.name not in hyperparameters:
                raise HyperparametersError(f"Cannot find hyperparameter for '{spec.name}'.")
            _validate_hyperparameter(spec.name, hyperparameters[spec.name], specs)

    else:
        raise NotImplementedError(
            f"Unable to handle validation for the mode '{validation_mode}'."
        )
