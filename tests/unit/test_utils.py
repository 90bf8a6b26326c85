"""Unit tests for jumpstart_cache.utils."""

from __future__ import annotations

from importlib import metadata
from typing import Any

import pytest
from fakes import StubAccessor
from structlog.testing import capture_logs

from jumpstart_cache import utils
from jumpstart_cache.enums import JumpStartScriptScope, JumpStartTag
from jumpstart_cache.errors import (
    ConfigurationError,
    DeprecatedModelError,
    VulnerableModelError,
)

JUMPSTART_URI = "s3://jumpstart-cache-prod-us-west-2/pytorch-infer/infer-model.tar.gz"
OTHER_URI = "s3://my-bucket/model.tar.gz"


# ---------------------------------------------------------------------------
# Regions and buckets
# ---------------------------------------------------------------------------


class TestContentBucket:
    def test_known_region(self) -> None:
        assert utils.get_jumpstart_content_bucket("eu-west-1") == "jumpstart-cache-prod-eu-west-1"

    def test_override_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AWS_JUMPSTART_CONTENT_BUCKET_OVERRIDE", "private")
        assert utils.get_jumpstart_content_bucket("mars-north-1") == "private"

    def test_unknown_region_lists_launched_regions(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            utils.get_jumpstart_content_bucket("mars-north-1")
        assert "us-west-2" in exc_info.value.suggestion

    def test_launched_regions_message(self) -> None:
        message = utils.get_jumpstart_launched_regions_message()
        assert message.startswith("JumpStart is available in ")
        assert ", and " in message


# ---------------------------------------------------------------------------
# SageMaker version
# ---------------------------------------------------------------------------


class TestParseSageMakerVersion:
    @pytest.mark.parametrize(
        ("installed", "expected"),
        [("2.80.0", "2.80.0"), ("2.80.0.post0", "2.80.0")],
    )
    def test_parses_installed_version(
        self, monkeypatch: pytest.MonkeyPatch, installed: str, expected: str
    ) -> None:
        monkeypatch.setattr(metadata, "version", lambda name: installed)
        assert utils.parse_sagemaker_version() == expected

    @pytest.mark.parametrize("installed", ["2", "2.80", "1.2.3.4.5"])
    def test_rejects_unexpected_period_count(
        self, monkeypatch: pytest.MonkeyPatch, installed: str
    ) -> None:
        monkeypatch.setattr(metadata, "version", lambda name: installed)
        with pytest.raises(ConfigurationError, match="Bad value for SageMaker version"):
            utils.parse_sagemaker_version()

    def test_missing_distribution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def not_installed(name: str) -> str:
            raise metadata.PackageNotFoundError(name)

        monkeypatch.setattr(metadata, "version", not_installed)
        with pytest.raises(ConfigurationError, match="not installed"):
            utils.parse_sagemaker_version()


# ---------------------------------------------------------------------------
# Model inputs and URIs
# ---------------------------------------------------------------------------


class TestModelInputs:
    def test_both_given(self) -> None:
        assert utils.is_jumpstart_model_input("m", "*") is True

    def test_neither_given(self) -> None:
        assert utils.is_jumpstart_model_input(None, None) is False

    def test_only_one_given(self) -> None:
        with pytest.raises(ValueError):
            utils.is_jumpstart_model_input("m", None)

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            (JUMPSTART_URI, True),
            (OTHER_URI, False),
            ("https://jumpstart-cache-prod-us-west-2/x", False),
            (None, False),
        ],
    )
    def test_is_jumpstart_model_uri(self, uri: str | None, expected: bool) -> None:
        assert utils.is_jumpstart_model_uri(uri) is expected


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class TestTags:
    def test_add_tags_only_for_jumpstart_uris(self) -> None:
        tags = utils.add_jumpstart_tags(
            tags=[{"Key": "team", "Value": "ml"}],
            inference_model_uri=JUMPSTART_URI,
            inference_script_uri=OTHER_URI,
        )
        assert tags == [
            {"Key": "team", "Value": "ml"},
            {"Key": "aws-jumpstart-inference-model-uri", "Value": JUMPSTART_URI},
        ]

    def test_add_tags_does_not_mutate_input(self) -> None:
        original = [{"Key": "team", "Value": "ml"}]
        utils.add_jumpstart_tags(tags=original, training_model_uri=JUMPSTART_URI)
        assert original == [{"Key": "team", "Value": "ml"}]

    def test_existing_tag_not_duplicated(self) -> None:
        tags = [{"Key": JumpStartTag.TRAINING_MODEL_URI.value, "Value": "old"}]
        assert utils.add_jumpstart_tags(tags=tags, training_model_uri=JUMPSTART_URI) == tags

    def test_get_tag_value_requires_single_match(self) -> None:
        tags = [{"Key": "a", "Value": "1"}, {"Key": "a", "Value": "2"}]
        with pytest.raises(KeyError):
            utils.get_tag_value("a", tags)
        assert utils.get_tag_value("a", tags[:1]) == "1"

    def test_base_name(self) -> None:
        assert utils.get_jumpstart_base_name_if_jumpstart_model(OTHER_URI, JUMPSTART_URI) == (
            "sagemaker-jumpstart"
        )
        assert utils.get_jumpstart_base_name_if_jumpstart_model(OTHER_URI, None) is None

    def test_training_tags_copied_to_inference(self) -> None:
        training_tags = [
            {"Key": JumpStartTag.TRAINING_MODEL_URI.value, "Value": JUMPSTART_URI},
            {"Key": "team", "Value": "ml"},
        ]
        assert utils.update_inference_tags_with_jumpstart_training_tags(None, training_tags) == [
            {"Key": JumpStartTag.TRAINING_MODEL_URI.value, "Value": JUMPSTART_URI}
        ]

    def test_no_training_tags(self) -> None:
        inference_tags = [{"Key": "team", "Value": "ml"}]
        assert (
            utils.update_inference_tags_with_jumpstart_training_tags(inference_tags, None)
            is inference_tags
        )


# ---------------------------------------------------------------------------
# Spec verification
# ---------------------------------------------------------------------------


def _verify(accessor: StubAccessor, scope: Any = JumpStartScriptScope.INFERENCE, **kwargs: Any):
    return utils.verify_model_region_and_return_specs(
        "m", "1.0.0", scope, "us-west-2", accessor=accessor, **kwargs  # type: ignore[arg-type]
    )


class TestVerifyModelRegionAndReturnSpecs:
    def test_returns_specs_from_accessor(self) -> None:
        accessor = StubAccessor()
        assert _verify(accessor) is accessor.specs
        assert accessor.calls == [{"region": "us-west-2", "model_id": "m", "version": "1.0.0"}]

    def test_scope_required(self) -> None:
        with pytest.raises(ValueError, match="model_scope"):
            _verify(StubAccessor(), scope=None)

    def test_unsupported_scope(self) -> None:
        with pytest.raises(NotImplementedError):
            _verify(StubAccessor(), scope="hosting")

    def test_string_scope_accepted(self) -> None:
        assert _verify(StubAccessor(), scope="training").model_id == "m"

    def test_training_unsupported(self) -> None:
        with pytest.raises(ValueError, match="does not support training"):
            _verify(StubAccessor(training_supported=False), scope=JumpStartScriptScope.TRAINING)

    def test_deprecated_model_rejected(self) -> None:
        with pytest.raises(DeprecatedModelError):
            _verify(StubAccessor(deprecated=True))

    def test_deprecated_model_tolerated(self) -> None:
        with capture_logs() as logs:
            _verify(StubAccessor(deprecated=True), tolerate_deprecated_model=True)
        assert [log["event"] for log in logs] == ["deprecated_model_tolerated"]

    def test_vulnerable_scope_rejected(self) -> None:
        accessor = StubAccessor(inference_vulnerable=True, inference_vulnerabilities=["numpy"])
        with pytest.raises(VulnerableModelError, match="numpy"):
            _verify(accessor)

    def test_vulnerability_in_other_scope_ignored(self) -> None:
        accessor = StubAccessor(training_vulnerable=True, training_vulnerabilities=["numpy"])
        assert _verify(accessor, scope=JumpStartScriptScope.INFERENCE) is accessor.specs

    def test_vulnerable_model_tolerated(self) -> None:
        accessor = StubAccessor(training_vulnerable=True, training_vulnerabilities=["numpy"])
        with capture_logs() as logs:
            _verify(accessor, scope=JumpStartScriptScope.TRAINING, tolerate_vulnerable_model=True)
        assert logs[0]["event"] == "vulnerable_model_tolerated"
        assert logs[0]["scope"] == "training"
