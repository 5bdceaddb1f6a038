"""Compilation of worker pools into machine classes and machine deployments.

For every pool and every zone of that pool the compiler emits exactly one
machine class (how to create an instance) and one machine deployment (how
many instances, how to roll them). Class names carry the pool identity
hash, so a hash-relevant change produces new classes and the orchestrator
replaces the machines.

Compilation is all-or-nothing: the first error, or a cancellation of an
awaited collaborator, aborts the call without returning partial output.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from awsworkers.api.model import (
    BootstrapSecret,
    CompilationResult,
    MachineClass,
    MachineClassNodeTemplate,
    MachineConfiguration,
    MachineDeployment,
    MachineImage,
    NetworkInterface,
    OperatingSystem,
)
from awsworkers.api.spec import Cluster, ClusterAutoscalerOptions, SecretRef, WorkerPool
from awsworkers.constants import (
    CLUSTER_TAG_TEMPLATE,
    CSI_TOPOLOGY_ZONE_LABEL,
    DEFAULT_ARCHITECTURE,
    HARDENED_HOP_LIMIT,
    HARDENED_METADATA_MIN_VERSION,
    NODE_ROLE_TAG,
    PURPOSE_LABEL,
    PURPOSE_MACHINE_CLASS,
    ZONE_FAILURE_DOMAIN_LABEL,
    AutoscalerAnnotation,
    Purpose,
)
from awsworkers.providers.aws.ami import ImageResolver, append_machine_image
from awsworkers.providers.aws.blockdevices import compute_block_devices
from awsworkers.providers.aws.config import WorkerConfig, decode_worker_config
from awsworkers.providers.aws.hashdata import compute_additional_hash_data
from awsworkers.providers.aws.iam import compute_iam_instance_profile
from awsworkers.providers.aws.infra import (
    InfrastructureStatus,
    find_security_group_for_purpose,
    find_subnet_for_purpose_and_zone,
)
from awsworkers.providers.aws.metadata import compute_instance_metadata
from awsworkers.providers.aws.userdata import UserDataFetcher
from awsworkers.worker.distribution import (
    BoundDistributor,
    IntDistributor,
    distribute_over_zones,
    distribute_positive_int_or_percent,
)
from awsworkers.worker.hashing import PoolHasher, worker_pool_hash

__all__ = [
    "CompilerSettings",
    "PoolCompiler",
    "WorkerDelegate",
    "deployment_name",
    "machine_class_name",
    "read_autoscaler_annotations",
    "read_machine_configuration",
]


@dataclass(frozen=True, slots=True)
class CompilerSettings:
    """Tunables of the compilation policy."""

    default_architecture: str = DEFAULT_ARCHITECTURE
    hardened_metadata_min_version: tuple[int, int] = HARDENED_METADATA_MIN_VERSION
    hardened_hop_limit: int = HARDENED_HOP_LIMIT


def deployment_name(namespace: str, pool: str, zone_index: int) -> str:
    return f"{namespace}-{pool}-z{zone_index + 1}"


def machine_class_name(namespace: str, pool: str, zone_index: int, pool_hash: str) -> str:
    return f"{deployment_name(namespace, pool, zone_index)}-{pool_hash}"


def read_machine_configuration(pool: WorkerPool) -> MachineConfiguration | None:
    settings = pool.machine_controller_settings
    if settings is None:
        return None
    return MachineConfiguration(
        drain_timeout=settings.machine_drain_timeout,
        health_timeout=settings.machine_health_timeout,
        creation_timeout=settings.machine_creation_timeout,
        max_evict_retries=settings.max_evict_retries,
        node_conditions=",".join(settings.node_conditions) or None,
    )


def read_autoscaler_annotations(options: ClusterAutoscalerOptions | None) -> dict[str, str]:
    if options is None:
        return {}

    candidates = {
        AutoscalerAnnotation.SCALE_DOWN_UTILIZATION_THRESHOLD: options.scale_down_utilization_threshold,
        AutoscalerAnnotation.SCALE_DOWN_GPU_UTILIZATION_THRESHOLD: options.scale_down_gpu_utilization_threshold,
        AutoscalerAnnotation.SCALE_DOWN_UNNEEDED_TIME: options.scale_down_unneeded_time,
        AutoscalerAnnotation.SCALE_DOWN_UNREADY_TIME: options.scale_down_unready_time,
        AutoscalerAnnotation.MAX_NODE_PROVISION_TIME: options.max_node_provision_time,
    }
    return {key.value: value for key, value in candidates.items() if value is not None}


class PoolCompiler:
    """Compiles the pools of one worker.

    All inputs are treated as immutable; each ``compile`` call builds a
    fresh result and shares nothing with other calls.

    Args:
        namespace: Namespace of the cluster's control plane, prefix of all names.
        region: AWS region the machines are created in.
        secret_ref: Cloud provider credentials the orchestrator uses.
        cluster: Cluster identity (name and control-plane version).
        infrastructure_status: Subnets, security groups and profiles to use.
        image_resolver: Resolves machine images to AMIs.
        user_data_fetcher: Fetches each pool's cloud-init payload.
        settings: Compilation policy tunables.
        distribute: Splits minimum/maximum over zones.
        distribute_bound: Splits surge/unavailable over zones.
        pool_hash: Computes the pool identity hash.
    """

    def __init__(
        self,
        *,
        namespace: str,
        region: str,
        secret_ref: SecretRef,
        cluster: Cluster,
        infrastructure_status: InfrastructureStatus,
        image_resolver: ImageResolver,
        user_data_fetcher: UserDataFetcher,
        settings: CompilerSettings | None = None,
        distribute: IntDistributor = distribute_over_zones,
        distribute_bound: BoundDistributor = distribute_positive_int_or_percent,
        pool_hash: PoolHasher = worker_pool_hash,
    ) -> None:
        self.namespace = namespace
        self.region = region
        self.secret_ref = secret_ref
        self.cluster = cluster
        self.infrastructure_status = infrastructure_status
        self.image_resolver = image_resolver
        self.user_data_fetcher = user_data_fetcher
        self.settings = settings or CompilerSettings()
        self._distribute = distribute
        self._distribute_bound = distribute_bound
        self._pool_hash = pool_hash

    async def compile(self, pools: Sequence[WorkerPool]) -> CompilationResult:
        """Compile ``pools`` in declaration order, zones in declaration order.

        Raises:
            AWSWorkersError: Any error of the taxonomy; no partial result exists.
        """
        security_group = find_security_group_for_purpose(
            self.infrastructure_status.vpc.security_groups, Purpose.NODES
        )

        machine_classes: list[MachineClass] = []
        machine_deployments: list[MachineDeployment] = []
        machine_images: tuple[MachineImage, ...] = ()

        for pool in pools:
            worker_config = decode_worker_config(pool.provider_config, pool=pool.name)
            pool_hash = self._pool_hash(pool, self.cluster, *compute_additional_hash_data(pool))
            architecture = pool.architecture or self.settings.default_architecture

            ami = await self.image_resolver.resolve(
                pool.machine_image.name,
                pool.machine_image.version,
                self.region,
                architecture,
                pool=pool.name,
            )
            machine_images = append_machine_image(
                machine_images,
                MachineImage(
                    name=pool.machine_image.name,
                    version=pool.machine_image.version,
                    ami=ami,
                    architecture=architecture,
                ),
            )

            block_devices = compute_block_devices(pool, worker_config)
            iam_instance_profile = compute_iam_instance_profile(
                worker_config, self.infrastructure_status, pool=pool.name
            )
            metadata_options = compute_instance_metadata(
                worker_config,
                self.cluster.kubernetes_version,
                pool=pool.name,
                min_version=self.settings.hardened_metadata_min_version,
                hop_limit=self.settings.hardened_hop_limit,
            )
            user_data = await self.user_data_fetcher.fetch(self.namespace, pool)

            logger.debug(
                f"Pool {pool.name}: hash={pool_hash} ami={ami} arch={architecture} "
                f"devices={len(block_devices)} zones={len(pool.zones)}"
            )

            zone_count = len(pool.zones)
            for zone_index, zone in enumerate(pool.zones):
                subnet = find_subnet_for_purpose_and_zone(
                    self.infrastructure_status.vpc.subnets, Purpose.NODES, zone, pool=pool.name
                )
                class_name = machine_class_name(self.namespace, pool.name, zone_index, pool_hash)

                machine_classes.append(
                    MachineClass(
                        name=class_name,
                        ami=ami,
                        region=self.region,
                        machine_type=pool.machine_type,
                        iam_instance_profile=iam_instance_profile,
                        network_interfaces=(
                            NetworkInterface(subnet_id=subnet.id, security_group_ids=(security_group.id,)),
                        ),
                        tags={
                            CLUSTER_TAG_TEMPLATE.format(namespace=self.namespace): "1",
                            NODE_ROLE_TAG: "1",
                            **pool.labels,
                        },
                        credentials_secret_ref={
                            "name": self.secret_ref.name,
                            "namespace": self.secret_ref.namespace,
                        },
                        secret=BootstrapSecret(
                            cloud_config=user_data,
                            labels={PURPOSE_LABEL: PURPOSE_MACHINE_CLASS},
                        ),
                        block_devices=block_devices,
                        instance_metadata_options=metadata_options,
                        labels={ZONE_FAILURE_DOMAIN_LABEL: zone},
                        key_name=self.infrastructure_status.ec2.key_name or None,
                        node_template=self._node_template(pool, worker_config, zone, architecture),
                        operating_system=(
                            OperatingSystem(pool.machine_image.name, pool.machine_image.version)
                            if pool.machine_image.name and pool.machine_image.version
                            else None
                        ),
                    )
                )

                machine_deployments.append(
                    MachineDeployment(
                        name=deployment_name(self.namespace, pool.name, zone_index),
                        class_name=class_name,
                        secret_name=class_name,
                        minimum=self._distribute(zone_index, pool.minimum, zone_count),
                        maximum=self._distribute(zone_index, pool.maximum, zone_count),
                        max_surge=self._distribute_bound(
                            zone_index, pool.max_surge, zone_count, pool.maximum
                        ),
                        max_unavailable=self._distribute_bound(
                            zone_index, pool.max_unavailable, zone_count, pool.minimum
                        ),
                        # The EBS CSI driver still schedules volumes by its own zone key.
                        labels={CSI_TOPOLOGY_ZONE_LABEL: zone, **pool.labels},
                        annotations=dict(pool.annotations),
                        taints=pool.taints,
                        machine_configuration=read_machine_configuration(pool),
                        cluster_autoscaler_annotations=read_autoscaler_annotations(
                            pool.cluster_autoscaler
                        ),
                    )
                )

        logger.info(
            f"Compiled {len(pools)} pool(s) into {len(machine_deployments)} machine deployment(s)"
        )
        return CompilationResult(
            machine_classes=tuple(machine_classes),
            machine_deployments=tuple(machine_deployments),
            machine_images=machine_images,
        )

    def _node_template(
        self,
        pool: WorkerPool,
        worker_config: WorkerConfig,
        zone: str,
        architecture: str,
    ) -> MachineClassNodeTemplate | None:
        if worker_config.node_template is not None:
            capacity = dict(worker_config.node_template.capacity)
        elif pool.node_template is not None:
            capacity = dict(pool.node_template.capacity)
        else:
            return None

        return MachineClassNodeTemplate(
            capacity=capacity,
            instance_type=pool.machine_type,
            region=self.region,
            zone=zone,
            architecture=architecture,
        )


class WorkerDelegate:
    """Compiles a worker's pools once and serves the result.

    The first caller compiles; later callers reuse that result until
    ``reset`` is called. A failed compilation caches nothing.
    """

    def __init__(self, compiler: PoolCompiler, pools: Sequence[WorkerPool]) -> None:
        self.compiler = compiler
        self.pools = tuple(pools)
        self._result: CompilationResult | None = None
        self._lock = asyncio.Lock()

    async def _compiled(self) -> CompilationResult:
        async with self._lock:
            if self._result is None:
                self._result = await self.compiler.compile(self.pools)
            return self._result

    async def generate_machine_deployments(self) -> tuple[MachineDeployment, ...]:
        return (await self._compiled()).machine_deployments

    async def machine_class_values(self) -> list[dict]:
        """Machine classes rendered as chart values, ready to be applied."""
        return (await self._compiled()).machine_class_values()

    @property
    def machine_images(self) -> tuple[MachineImage, ...]:
        return self._result.machine_images if self._result is not None else ()

    def reset(self) -> None:
        self._result = None
