"""Output model of a compilation.

Typed replacements for the loosely typed maps the machine orchestrator
consumes. Every type renders its external serialized shape (camelCase keys,
absent optional fields omitted) through ``to_dict``/``to_values``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from awsworkers.api.spec import IntOrPercent, Taint


# =============================================================================
# Block Devices
# =============================================================================


@dataclass(frozen=True, slots=True)
class EBS:
    """EBS settings of one block device. ``volume_size`` is in bytes."""

    volume_size: int
    encrypted: bool = True
    delete_on_termination: bool = True
    volume_type: str | None = None
    iops: int | None = None
    throughput: int | None = None
    snapshot_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "volumeSize": self.volume_size,
            "encrypted": self.encrypted,
            "deleteOnTermination": self.delete_on_termination,
        }
        if self.volume_type is not None:
            result["volumeType"] = self.volume_type
        if self.iops is not None:
            result["iops"] = self.iops
        if self.throughput is not None:
            result["throughput"] = self.throughput
        if self.snapshot_id is not None:
            result["snapshotID"] = self.snapshot_id
        return result


@dataclass(frozen=True, slots=True)
class RootDevice:
    """Root block device. Named only when data devices are attached too."""

    ebs: EBS
    device_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"ebs": self.ebs.to_dict()}
        if self.device_name is not None:
            result["deviceName"] = self.device_name
        return result


@dataclass(frozen=True, slots=True)
class DataDevice:
    """Data block device backing one of the pool's named data volumes."""

    volume_name: str
    device_name: str
    ebs: EBS

    def to_dict(self) -> dict[str, Any]:
        return {"deviceName": self.device_name, "ebs": self.ebs.to_dict()}


BlockDevice: TypeAlias = RootDevice | DataDevice


# =============================================================================
# Instance Identity and Metadata
# =============================================================================


@dataclass(frozen=True, slots=True)
class IAMProfileByName:
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name}


@dataclass(frozen=True, slots=True)
class IAMProfileByARN:
    arn: str

    def to_dict(self) -> dict[str, str]:
        return {"arn": self.arn}


IAMProfile: TypeAlias = IAMProfileByName | IAMProfileByARN


@dataclass(frozen=True, slots=True)
class InstanceMetadataOptions:
    """Sparse IMDS options. A None field means "platform default", not "disabled"."""

    http_put_response_hop_limit: int | None = None
    http_tokens: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.http_put_response_hop_limit is not None:
            result["httpPutResponseHopLimit"] = self.http_put_response_hop_limit
        if self.http_tokens is not None:
            result["httpTokens"] = self.http_tokens
        return result


# =============================================================================
# Machine Class
# =============================================================================


@dataclass(frozen=True, slots=True)
class NetworkInterface:
    subnet_id: str
    security_group_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"subnetID": self.subnet_id, "securityGroupIDs": list(self.security_group_ids)}


@dataclass(frozen=True, slots=True)
class MachineClassNodeTemplate:
    capacity: Mapping[str, str]
    instance_type: str
    region: str
    zone: str
    architecture: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "capacity": dict(self.capacity),
            "instanceType": self.instance_type,
            "region": self.region,
            "zone": self.zone,
            "architecture": self.architecture,
        }


@dataclass(frozen=True, slots=True)
class OperatingSystem:
    name: str
    version: str

    def to_dict(self) -> dict[str, str]:
        return {"operatingSystemName": self.name, "operatingSystemVersion": self.version}


@dataclass(frozen=True, slots=True)
class BootstrapSecret:
    """Cloud-init payload stored next to the machine class.

    The payload is opaque bytes (plain or gzip-compressed cloud-init). It is
    rendered as text with ``surrogateescape`` so any byte sequence round-trips
    through ``cloudConfig``.
    """

    cloud_config: bytes
    labels: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cloudConfig": self.cloud_config.decode(errors="surrogateescape"),
            "labels": dict(self.labels),
        }


@dataclass(frozen=True, slots=True)
class MachineClass:
    """Immutable template for creating one instance in one zone."""

    name: str
    ami: str
    region: str
    machine_type: str
    iam_instance_profile: IAMProfile
    network_interfaces: tuple[NetworkInterface, ...]
    tags: Mapping[str, str]
    credentials_secret_ref: Mapping[str, str]
    secret: BootstrapSecret
    block_devices: tuple[BlockDevice, ...]
    instance_metadata_options: InstanceMetadataOptions
    labels: Mapping[str, str]
    key_name: str | None = None
    node_template: MachineClassNodeTemplate | None = None
    operating_system: OperatingSystem | None = None

    def to_values(self) -> dict[str, Any]:
        """Render the chart values for this machine class.

        ``blockDevices[].ebs.volumeSize`` is in bytes; templates expecting GiB
        must convert it.
        """
        values: dict[str, Any] = {
            "name": self.name,
            "ami": self.ami,
            "region": self.region,
            "machineType": self.machine_type,
            "iamInstanceProfile": self.iam_instance_profile.to_dict(),
            "networkInterfaces": [ni.to_dict() for ni in self.network_interfaces],
            "tags": dict(self.tags),
            "credentialsSecretRef": dict(self.credentials_secret_ref),
            "secret": self.secret.to_dict(),
            "blockDevices": [bd.to_dict() for bd in self.block_devices],
            "instanceMetadataOptions": self.instance_metadata_options.to_dict(),
            "labels": dict(self.labels),
        }
        if self.key_name:
            values["keyName"] = self.key_name
        if self.node_template is not None:
            values["nodeTemplate"] = self.node_template.to_dict()
        if self.operating_system is not None:
            values["operatingSystem"] = self.operating_system.to_dict()
        return values


# =============================================================================
# Machine Deployment
# =============================================================================


@dataclass(frozen=True, slots=True)
class MachineConfiguration:
    drain_timeout: str | None = None
    health_timeout: str | None = None
    creation_timeout: str | None = None
    max_evict_retries: int | None = None
    node_conditions: str | None = None


@dataclass(frozen=True, slots=True)
class MachineDeployment:
    """Mutable scaling directive referencing one machine class."""

    name: str
    class_name: str
    secret_name: str
    minimum: int
    maximum: int
    max_surge: IntOrPercent
    max_unavailable: IntOrPercent
    labels: Mapping[str, str] = field(default_factory=dict)
    annotations: Mapping[str, str] = field(default_factory=dict)
    taints: tuple[Taint, ...] = ()
    machine_configuration: MachineConfiguration | None = None
    cluster_autoscaler_annotations: Mapping[str, str] = field(default_factory=dict)


# =============================================================================
# Images and Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class MachineImage:
    """An image resolved during compilation, reported back in the worker status."""

    name: str
    version: str
    ami: str
    architecture: str


@dataclass(frozen=True, slots=True)
class CompilationResult:
    """Everything one compilation produces, in pool then zone order."""

    machine_classes: tuple[MachineClass, ...]
    machine_deployments: tuple[MachineDeployment, ...]
    machine_images: tuple[MachineImage, ...]

    def machine_class_values(self) -> list[dict[str, Any]]:
        return [mc.to_values() for mc in self.machine_classes]
