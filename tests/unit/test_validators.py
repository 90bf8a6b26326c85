"""Unit tests for jumpstart_cache.validators."""

from __future__ import annotations

from typing import Any

import pytest
from fakes import StubAccessor

from jumpstart_cache.enums import HyperparameterValidationMode
from jumpstart_cache.errors import HyperparametersError, VulnerableModelError
from jumpstart_cache.validators import validate_hyperparameters

VALID = {
    "epochs": "3",
    "adam-learning-rate": "0.05",
    "batch-size": 4,
    "optimizer": "adam",
    "train-only-top-layer": "False",
}


def _validate(hyperparameters: dict[str, Any], **kwargs: Any) -> None:
    accessor = kwargs.pop("accessor", None) or StubAccessor()
    validate_hyperparameters(
        "m", "1.0.0", hyperparameters, accessor=accessor, **kwargs  # type: ignore[arg-type]
    )


class TestValidateProvided:
    def test_valid_values_pass(self) -> None:
        _validate(VALID)

    def test_only_provided_values_checked(self) -> None:
        _validate({"epochs": 10})

    def test_unknown_hyperparameter(self) -> None:
        with pytest.raises(HyperparametersError, match="cannot find hyperparameter 'dropout'"):
            _validate({"dropout": "0.1"})

    @pytest.mark.parametrize("value", ["3.5", "three", None, "1e3"])
    def test_int_rejects_non_integers(self, value: Any) -> None:
        with pytest.raises(HyperparametersError):
            _validate({"epochs": value})

    @pytest.mark.parametrize("value", ["+5", 7])
    def test_int_accepts_signed_and_native_ints(self, value: Any) -> None:
        _validate({"epochs": value})

    def test_int_lower_bound(self) -> None:
        with pytest.raises(HyperparametersError, match="no less than 1"):
            _validate({"epochs": "-2"})

    def test_int_upper_bound(self) -> None:
        with pytest.raises(HyperparametersError, match="no greater than 1000"):
            _validate({"epochs": 1001})

    def test_float_bounds(self) -> None:
        _validate({"adam-learning-rate": 1})
        with pytest.raises(HyperparametersError, match="no greater than 1"):
            _validate({"adam-learning-rate": "1.5"})

    def test_text_options(self) -> None:
        with pytest.raises(HyperparametersError, match="adam, sgd"):
            _validate({"optimizer": "rmsprop"})

    def test_text_requires_string(self) -> None:
        with pytest.raises(HyperparametersError, match="string type"):
            _validate({"optimizer": 1})

    @pytest.mark.parametrize("value", [True, False, "true", "FALSE"])
    def test_bool_accepts_booleans(self, value: Any) -> None:
        _validate({"train-only-top-layer": value})

    @pytest.mark.parametrize("value", ["yes", 1])
    def test_bool_rejects_other_values(self, value: Any) -> None:
        with pytest.raises(HyperparametersError, match="boolean"):
            _validate({"train-only-top-layer": value})

    def test_duplicate_specs(self) -> None:
        spec = {"name": "epochs", "type": "int", "scope": "algorithm"}
        accessor = StubAccessor(hyperparameters=[spec, spec])
        with pytest.raises(HyperparametersError, match="found multiple"):
            _validate({"epochs": 1}, accessor=accessor)


class TestTextLength:
    def test_length_bounds(self) -> None:
        spec = {
            "name": "prefix",
            "type": "text",
            "min": 2,
            "exclusive_max": 5,
            "scope": "algorithm",
        }
        accessor = StubAccessor(hyperparameters=[spec])
        _validate({"prefix": "abcd"}, accessor=accessor)
        with pytest.raises(HyperparametersError, match="length no less than 2"):
            _validate({"prefix": "a"}, accessor=accessor)
        with pytest.raises(HyperparametersError, match="length less than 5"):
            _validate({"prefix": "abcde"}, accessor=accessor)


class TestValidationModes:
    def test_algorithm_mode_requires_algorithm_hyperparameters(self) -> None:
        with pytest.raises(HyperparametersError, match="algorithm hyperparameter for 'optimizer'"):
            _validate(
                {k: v for k, v in VALID.items() if k != "optimizer"},
                validation_mode=HyperparameterValidationMode.VALIDATE_ALGORITHM,
            )

    def test_algorithm_mode_ignores_container_hyperparameters(self) -> None:
        _validate(VALID, validation_mode=HyperparameterValidationMode.VALIDATE_ALGORITHM)

    def test_all_mode_requires_container_hyperparameters(self) -> None:
        with pytest.raises(HyperparametersError, match="'sagemaker_program'"):
            _validate(VALID, validation_mode=HyperparameterValidationMode.VALIDATE_ALL)

    def test_all_mode_passes_with_everything(self) -> None:
        _validate(
            {**VALID, "sagemaker_program": "transfer_learning.py"},
            validation_mode=HyperparameterValidationMode.VALIDATE_ALL,
        )

    def test_unknown_mode(self) -> None:
        with pytest.raises(NotImplementedError):
            _validate(VALID, validation_mode="validate_nothing")


class TestModelChecks:
    def test_uses_training_scope(self) -> None:
        accessor = StubAccessor(training_vulnerable=True, training_vulnerabilities=["numpy"])
        with pytest.raises(VulnerableModelError):
            _validate(VALID, accessor=accessor)

    def test_vulnerability_tolerated(self) -> None:
        accessor = StubAccessor(training_vulnerable=True, training_vulnerabilities=["numpy"])
        _validate(VALID, accessor=accessor, tolerate_vulnerable_model=True)

    def test_region_forwarded(self) -> None:
        accessor = StubAccessor()
        _validate({}, accessor=accessor, region="eu-west-1")
        assert accessor.calls[0]["region"] == "eu-west-1"
