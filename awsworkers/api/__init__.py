"""Public data model: pool specifications in, machine classes and deployments out."""

from awsworkers.api.model import (
    EBS,
    BlockDevice,
    BootstrapSecret,
    CompilationResult,
    DataDevice,
    IAMProfile,
    IAMProfileByARN,
    IAMProfileByName,
    InstanceMetadataOptions,
    MachineClass,
    MachineClassNodeTemplate,
    MachineConfiguration,
    MachineDeployment,
    MachineImage,
    NetworkInterface,
    OperatingSystem,
    RootDevice,
)
from awsworkers.api.spec import (
    Cluster,
    ClusterAutoscalerOptions,
    DataVolume,
    IntOrPercent,
    MachineControllerSettings,
    MachineImageRef,
    NodeTemplate,
    SecretRef,
    Taint,
    Volume,
    WorkerPool,
)

__all__ = [
    "EBS",
    "BlockDevice",
    "BootstrapSecret",
    "Cluster",
    "ClusterAutoscalerOptions",
    "CompilationResult",
    "DataDevice",
    "DataVolume",
    "IAMProfile",
    "IAMProfileByARN",
    "IAMProfileByName",
    "InstanceMetadataOptions",
    "IntOrPercent",
    "MachineClass",
    "MachineClassNodeTemplate",
    "MachineConfiguration",
    "MachineControllerSettings",
    "MachineDeployment",
    "MachineImage",
    "MachineImageRef",
    "NetworkInterface",
    "NodeTemplate",
    "OperatingSystem",
    "RootDevice",
    "SecretRef",
    "Taint",
    "Volume",
    "WorkerPool",
]
