"""Static JumpStart configuration: launched regions, default keys and limits."""

from __future__ import annotations

from datetime import timedelta

import boto3

from jumpstart_cache.enums import JumpStartScriptScope
from jumpstart_cache.models.manifest import LaunchedRegionInfo

_LAUNCHED_REGION_NAMES = (
    "us-west-2",
    "us-east-1",
    "us-east-2",
    "eu-west-1",
    "eu-central-1",
    "eu-north-1",
    "me-south-1",
    "ap-south-1",
    "eu-west-3",
    "af-south-1",
    "sa-east-1",
    "ap-east-1",
    "ap-northeast-2",
    "eu-west-2",
    "eu-south-1",
    "ap-northeast-1",
    "us-west-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ca-central-1",
    "cn-north-1",
)

JUMPSTART_LAUNCHED_REGIONS: frozenset[LaunchedRegionInfo] = frozenset(
    LaunchedRegionInfo(region_name=name, content_bucket=f"jumpstart-cache-prod-{name}")
    for name in _LAUNCHED_REGION_NAMES
)

JUMPSTART_REGION_NAME_TO_LAUNCHED_REGION_DICT: dict[str, LaunchedRegionInfo] = {
    region.region_name: region for region in JUMPSTART_LAUNCHED_REGIONS
}
JUMPSTART_REGION_NAME_SET: frozenset[str] = frozenset(JUMPSTART_REGION_NAME_TO_LAUNCHED_REGION_DICT)
JUMPSTART_BUCKET_NAME_SET: frozenset[str] = frozenset(
    region.content_bucket for region in JUMPSTART_LAUNCHED_REGIONS
)

JUMPSTART_DEFAULT_REGION_NAME: str = boto3.session.Session().region_name or "us-west-2"

JUMPSTART_DEFAULT_MANIFEST_FILE_S3_KEY = "models_manifest.json"

JUMPSTART_DEFAULT_MAX_S3_CACHE_ITEMS = 20
JUMPSTART_DEFAULT_MAX_SEMANTIC_VERSION_CACHE_ITEMS = 20
JUMPSTART_DEFAULT_S3_CACHE_EXPIRATION_HORIZON = timedelta(hours=6)
JUMPSTART_DEFAULT_SEMANTIC_VERSION_CACHE_EXPIRATION_HORIZON = timedelta(hours=6)

SUPPORTED_JUMPSTART_SCOPES: frozenset[JumpStartScriptScope] = frozenset(JumpStartScriptScope)

ENV_VARIABLE_JUMPSTART_CONTENT_BUCKET_OVERRIDE = "AWS_JUMPSTART_CONTENT_BUCKET_OVERRIDE"

JUMPSTART_RESOURCE_BASE_NAME = "sagemaker-jumpstart"

MODEL_ID_LIST_WEB_URL = "https://sagemaker.readthedocs.io/en/stable/doc_utils/jumpstart.html"
