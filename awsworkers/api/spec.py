"""Input dataclasses describing worker pools.

These are the immutable, cloud-agnostic objects describing what the
cluster owner wants. The compiler reads them and never mutates them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias


IntOrPercent: TypeAlias = int | str
"""Either an absolute count or a percentage string such as ``"25%"``."""

TaintEffect: TypeAlias = Literal["NoSchedule", "PreferNoSchedule", "NoExecute"]


@dataclass(frozen=True, slots=True)
class Volume:
    """Root volume of every machine in a pool.

    Args:
        size: Human readable size, e.g. ``"50Gi"``.
        type: EBS volume type (gp3, io1, ...). None keeps the AWS default.
        encrypted: Explicit encryption flag. None means "encrypted".
    """

    size: str
    type: str | None = None
    encrypted: bool | None = None


@dataclass(frozen=True, slots=True)
class DataVolume:
    """Additional named volume attached to every machine in a pool."""

    name: str
    size: str
    type: str | None = None
    encrypted: bool | None = None


@dataclass(frozen=True, slots=True)
class MachineImageRef:
    """Name and version of the operating system image a pool runs."""

    name: str
    version: str


@dataclass(frozen=True, slots=True)
class NodeTemplate:
    """Resource capacity advertised for nodes that do not exist yet."""

    capacity: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Taint:
    key: str
    effect: TaintEffect
    value: str | None = None


@dataclass(frozen=True, slots=True)
class ClusterAutoscalerOptions:
    """Per-pool cluster-autoscaler tuning. Durations are strings like ``"30m"``."""

    scale_down_utilization_threshold: str | None = None
    scale_down_gpu_utilization_threshold: str | None = None
    scale_down_unneeded_time: str | None = None
    scale_down_unready_time: str | None = None
    max_node_provision_time: str | None = None


@dataclass(frozen=True, slots=True)
class MachineControllerSettings:
    """Per-pool machine lifecycle settings forwarded to the orchestrator."""

    machine_drain_timeout: str | None = None
    machine_health_timeout: str | None = None
    machine_creation_timeout: str | None = None
    max_evict_retries: int | None = None
    node_conditions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SecretRef:
    name: str
    namespace: str


@dataclass(frozen=True, slots=True)
class Cluster:
    """Identity of the cluster the pools belong to.

    Args:
        name: Cluster name, part of the pool identity hash.
        kubernetes_version: Control-plane version, e.g. ``"1.30.2"``.
    """

    name: str
    kubernetes_version: str


@dataclass(frozen=True, slots=True)
class WorkerPool:
    """Desired shape of a group of nodes spread across zones.

    Args:
        name: Pool name, unique within the worker.
        machine_type: EC2 instance type.
        machine_image: Operating system image reference.
        zones: Availability zones in compilation order.
        minimum: Lower scaling bound for the whole pool.
        maximum: Upper scaling bound for the whole pool.
        volume: Root volume.
        max_surge: Extra machines allowed during a rollout.
        max_unavailable: Machines allowed to be unavailable during a rollout.
        data_volumes: Additional volumes, in declaration order.
        architecture: CPU architecture. None means the configured default.
        provider_config: Raw provider specific configuration (JSON or mapping).
        kubernetes_version: Pool-level version override.
    """

    name: str
    machine_type: str
    machine_image: MachineImageRef
    zones: tuple[str, ...]
    minimum: int
    maximum: int
    volume: Volume
    max_surge: IntOrPercent = 1
    max_unavailable: IntOrPercent = 0
    data_volumes: tuple[DataVolume, ...] = ()
    architecture: str | None = None
    labels: Mapping[str, str] = field(default_factory=dict)
    annotations: Mapping[str, str] = field(default_factory=dict)
    taints: tuple[Taint, ...] = ()
    node_template: NodeTemplate | None = None
    provider_config: bytes | str | Mapping[str, Any] | None = None
    kubernetes_version: str | None = None
    cri: str | None = None
    cluster_autoscaler: ClusterAutoscalerOptions | None = None
    machine_controller_settings: MachineControllerSettings | None = None

    def __post_init__(self) -> None:
        if self.minimum < 0 or self.maximum < 0:
            raise ValueError(f"pool {self.name!r}: minimum and maximum must be non-negative")
        if self.minimum > self.maximum:
            raise ValueError(f"pool {self.name!r}: minimum {self.minimum} exceeds maximum {self.maximum}")
