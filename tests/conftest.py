from __future__ import annotations

from dataclasses import replace

import pytest

from awsworkers.api.spec import Cluster, MachineImageRef, SecretRef, Volume, WorkerPool
from awsworkers.providers.aws.ami import CatalogEntry, MachineImageCatalog
from awsworkers.providers.aws.infra import (
    EC2Status,
    IAMStatus,
    InfrastructureStatus,
    InstanceProfile,
    SecurityGroup,
    Subnet,
    VPCStatus,
)
from awsworkers.providers.aws.machines import PoolCompiler
from awsworkers.providers.aws.userdata import StaticUserData

NAMESPACE = "shoot--core--dev"
REGION = "eu-west-1"
ZONES = ("eu-west-1a", "eu-west-1b", "eu-west-1c")


def _make_pool(**overrides) -> WorkerPool:
    pool = WorkerPool(
        name="cpu",
        machine_type="m5.large",
        machine_image=MachineImageRef("gardenlinux", "1592.1.0"),
        zones=ZONES[:2],
        minimum=2,
        maximum=5,
        volume=Volume(size="50Gi", type="gp3"),
    )
    return replace(pool, **overrides)


@pytest.fixture
def make_pool():
    return _make_pool


@pytest.fixture
def infrastructure_status() -> InfrastructureStatus:
    return InfrastructureStatus(
        vpc=VPCStatus(
            id="vpc-1",
            subnets=tuple(
                Subnet(id=f"subnet-{zone[-1]}", purpose="nodes", zone=zone) for zone in ZONES
            )
            + (Subnet(id="subnet-public-a", purpose="public", zone="eu-west-1a"),),
            security_groups=(SecurityGroup(id="sg-nodes", purpose="nodes"),),
        ),
        iam=IAMStatus(instance_profiles=(InstanceProfile(name="shoot--core--dev-nodes", purpose="nodes"),)),
        ec2=EC2Status(key_name="shoot--core--dev-ssh-publickey"),
    )


@pytest.fixture
def image_catalog() -> MachineImageCatalog:
    return MachineImageCatalog(
        entries=(
            CatalogEntry("gardenlinux", "1592.1.0", REGION, "ami-amd64"),
            CatalogEntry("gardenlinux", "1592.1.0", REGION, "ami-arm64", architecture="arm64"),
            CatalogEntry("ubuntu", "22.04", REGION, "ami-ubuntu"),
        )
    )


@pytest.fixture
def user_data() -> StaticUserData:
    return StaticUserData({"cpu": b"#cloud-config\n", "gpu": b"#cloud-config gpu\n"})


@pytest.fixture
def cluster() -> Cluster:
    return Cluster(name="dev", kubernetes_version="1.30.2")


@pytest.fixture
def compiler(infrastructure_status, image_catalog, user_data, cluster) -> PoolCompiler:
    return PoolCompiler(
        namespace=NAMESPACE,
        region=REGION,
        secret_ref=SecretRef("cloudprovider", NAMESPACE),
        cluster=cluster,
        infrastructure_status=infrastructure_status,
        image_resolver=image_catalog,
        user_data_fetcher=user_data,
    )
