from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from jumpstart_cache.enums import S3FileType

if TYPE_CHECKING:
    from jumpstart_cache.models.manifest import ModelHeader, VersionedModelId
    from jumpstart_cache.models.specs import ModelSpecs

    FormattedManifest = dict[VersionedModelId, ModelHeader]


class CachedS3ContentKey(BaseModel):
    """Key into the raw S3 content cache."""

    model_config = ConfigDict(frozen=True)

    file_type: S3FileType
    s3_key: str


@dataclass(frozen=True)
class CachedS3ContentValue:
    """Parsed S3 content together with the ETag it was downloaded under.

    ``md5_hash`` is only recorded for the manifest, whose ETag is compared on
    refresh to skip re-downloading unchanged content.
    """

    formatted_content: FormattedManifest | ModelSpecs
    md5_hash: str | None = None
