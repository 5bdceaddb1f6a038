"""awsworkers - compile worker pools into AWS machine classes and deployments.

Example:

    from awsworkers import PoolCompiler, WorkerPool, load_config

    compiler = PoolCompiler(...)
    result = await compiler.compile(pools)

    for deployment in result.machine_deployments:
        print(deployment.name, deployment.minimum, deployment.maximum)
"""

from awsworkers.api import (
    Cluster,
    CompilationResult,
    DataVolume,
    MachineClass,
    MachineDeployment,
    MachineImage,
    MachineImageRef,
    SecretRef,
    Volume,
    WorkerPool,
)
from awsworkers.config import (
    CompilerSettings,
    WorkerSettings,
    load_config,
    resolve_compiler_settings,
    resolve_image_catalog,
    resolve_pools,
    resolve_worker_settings,
)
from awsworkers.core.exceptions import AWSWorkersError
from awsworkers.logging import LogConfig, setup_logging, teardown_logging
from awsworkers.providers.aws import (
    InfrastructureStatus,
    MachineImageCatalog,
    PoolCompiler,
    StaticUserData,
    WorkerDelegate,
)

__all__ = [
    "AWSWorkersError",
    "Cluster",
    "CompilationResult",
    "CompilerSettings",
    "DataVolume",
    "InfrastructureStatus",
    "LogConfig",
    "MachineClass",
    "MachineDeployment",
    "MachineImage",
    "MachineImageCatalog",
    "MachineImageRef",
    "PoolCompiler",
    "SecretRef",
    "StaticUserData",
    "Volume",
    "WorkerDelegate",
    "WorkerPool",
    "WorkerSettings",
    "load_config",
    "resolve_compiler_settings",
    "resolve_image_catalog",
    "resolve_pools",
    "resolve_worker_settings",
    "setup_logging",
    "teardown_logging",
]
