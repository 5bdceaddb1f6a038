"""AWS worker pool compiler.

Example:
    from awsworkers.providers.aws import MachineImageCatalog, PoolCompiler, StaticUserData

    compiler = PoolCompiler(
        namespace="shoot--core--dev",
        region="eu-west-1",
        secret_ref=SecretRef("cloudprovider", "shoot--core--dev"),
        cluster=Cluster("dev", "1.30.2"),
        infrastructure_status=InfrastructureStatus.from_dict(status),
        image_resolver=MachineImageCatalog.from_dict(images),
        user_data_fetcher=StaticUserData({"cpu": b"#cloud-config"}),
    )
    result = await compiler.compile(pools)
"""

from awsworkers.providers.aws.ami import CatalogEntry, ImageResolver, MachineImageCatalog
from awsworkers.providers.aws.config import WorkerConfig, decode_worker_config
from awsworkers.providers.aws.infra import InfrastructureStatus
from awsworkers.providers.aws.machines import PoolCompiler, WorkerDelegate
from awsworkers.providers.aws.userdata import StaticUserData, UserDataFetcher

__all__ = [
    "CatalogEntry",
    "ImageResolver",
    "InfrastructureStatus",
    "MachineImageCatalog",
    "PoolCompiler",
    "StaticUserData",
    "UserDataFetcher",
    "WorkerConfig",
    "WorkerDelegate",
    "decode_worker_config",
]
