"""AWS worker pool provider configuration.

A pool may carry a provider specific JSON document that overrides volume
performance, the instance profile, IMDS options and the node template.
The document uses camelCase keys; the models expose snake_case attributes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from awsworkers.core.exceptions import ConfigDecodeError

__all__ = [
    "DataVolumeConfig",
    "IAMInstanceProfileConfig",
    "InstanceMetadataOptionsConfig",
    "NodeTemplateConfig",
    "VolumeConfig",
    "WorkerConfig",
    "decode_worker_config",
    "find_data_volume_by_name",
]

_MODEL_CONFIG: Any = {"extra": "forbid", "frozen": True, "populate_by_name": True}


class VolumeConfig(BaseModel):
    """Root volume performance overrides."""

    iops: int | None = Field(default=None, ge=0)
    throughput: int | None = Field(default=None, ge=0)

    model_config = _MODEL_CONFIG


class DataVolumeConfig(BaseModel):
    """Overrides for one data volume, matched by name."""

    name: str
    iops: int | None = Field(default=None, ge=0)
    throughput: int | None = Field(default=None, ge=0)
    snapshot_id: str | None = Field(default=None, alias="snapshotID")

    model_config = _MODEL_CONFIG


class IAMInstanceProfileConfig(BaseModel):
    """Instance profile override. ``name`` wins when both fields are set."""

    name: str | None = None
    arn: str | None = None

    model_config = _MODEL_CONFIG


class InstanceMetadataOptionsConfig(BaseModel):
    http_tokens: Literal["required", "optional"] | None = Field(default=None, alias="httpTokens")
    http_put_response_hop_limit: int | None = Field(
        default=None, alias="httpPutResponseHopLimit", ge=1, le=64
    )

    model_config = _MODEL_CONFIG


class NodeTemplateConfig(BaseModel):
    capacity: dict[str, str] = Field(default_factory=dict)

    model_config = _MODEL_CONFIG


class WorkerConfig(BaseModel):
    """Decoded provider configuration of a single worker pool."""

    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str | None = None
    volume: VolumeConfig | None = None
    data_volumes: list[DataVolumeConfig] = Field(default_factory=list, alias="dataVolumes")
    iam_instance_profile: IAMInstanceProfileConfig | None = Field(
        default=None, alias="iamInstanceProfile"
    )
    instance_metadata_options: InstanceMetadataOptionsConfig | None = Field(
        default=None, alias="instanceMetadataOptions"
    )
    node_template: NodeTemplateConfig | None = Field(default=None, alias="nodeTemplate")

    model_config = _MODEL_CONFIG


def decode_worker_config(
    raw: bytes | str | Mapping[str, Any] | None,
    *,
    pool: str | None = None,
) -> WorkerConfig:
    """Decode a pool's raw provider config.

    Args:
        raw: JSON document (bytes or str), an already parsed mapping, or None.
        pool: Pool name reported in the error.

    Raises:
        ConfigDecodeError: If the document is not valid JSON or does not match the schema.
    """
    try:
        match raw:
            case None | b"" | "":
                return WorkerConfig()
            case bytes() | str():
                return WorkerConfig.model_validate_json(raw)
            case Mapping():
                return WorkerConfig.model_validate(dict(raw))
            case _:
                raise ConfigDecodeError(f"unsupported config type {type(raw).__name__}", pool=pool)
    except ValidationError as e:
        raise ConfigDecodeError(str(e), pool=pool) from e


def find_data_volume_by_name(
    data_volumes: list[DataVolumeConfig],
    name: str,
) -> DataVolumeConfig | None:
    for volume in data_volumes:
        if volume.name == name:
            return volume
    return None
