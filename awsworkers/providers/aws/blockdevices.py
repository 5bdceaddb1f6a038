"""Block device mappings for machine classes.

Data volumes are sorted by name before device names are handed out, so the
same set of volumes always lands on the same devices regardless of the
order in which they were declared.
"""

from __future__ import annotations

from dataclasses import replace

from awsworkers.api.model import EBS, BlockDevice, DataDevice, RootDevice
from awsworkers.api.spec import WorkerPool
from awsworkers.constants import DATA_DEVICE_PREFIX, DATA_DEVICE_SUFFIXES, ROOT_DEVICE_NAME
from awsworkers.core.exceptions import DeviceNamingExhausted
from awsworkers.providers.aws.config import WorkerConfig, find_data_volume_by_name
from awsworkers.worker.quantity import parse_quantity

__all__ = ["compute_block_devices", "compute_ebs", "device_name_for_index"]


def compute_ebs(
    size: str,
    volume_type: str | None,
    encrypted: bool | None,
    *,
    pool: str | None = None,
    volume: str | None = None,
) -> EBS:
    """EBS settings for one volume. Volumes are encrypted unless explicitly opted out."""
    return EBS(
        volume_size=parse_quantity(size, pool=pool, volume=volume),
        volume_type=volume_type,
        encrypted=True if encrypted is None else encrypted,
    )


def device_name_for_index(
    index: int,
    *,
    pool: str | None = None,
    volume: str | None = None,
) -> str:
    """Device name of the data volume at ``index`` in name order (``/dev/sdf``...)."""
    if index >= len(DATA_DEVICE_SUFFIXES):
        raise DeviceNamingExhausted(index, len(DATA_DEVICE_SUFFIXES), pool=pool, volume=volume)
    return DATA_DEVICE_PREFIX + DATA_DEVICE_SUFFIXES[index]


def compute_block_devices(pool: WorkerPool, worker_config: WorkerConfig) -> tuple[BlockDevice, ...]:
    """Root device first, then one device per data volume in name order.

    Args:
        pool: Pool whose volumes are attached.
        worker_config: Decoded provider config with IOPS/throughput/snapshot overrides.

    Raises:
        SizeParseError: If a volume size is malformed.
        DeviceNamingExhausted: If the pool has more data volumes than device names.
    """
    root_ebs = compute_ebs(
        pool.volume.size, pool.volume.type, pool.volume.encrypted, pool=pool.name, volume="root"
    )
    if (override := worker_config.volume) is not None:
        if override.iops is not None:
            root_ebs = replace(root_ebs, iops=override.iops)
        if override.throughput is not None:
            root_ebs = replace(root_ebs, throughput=override.throughput)

    if not pool.data_volumes:
        return (RootDevice(ebs=root_ebs),)

    # Once a data disk is attached the root device has to be named explicitly.
    devices: list[BlockDevice] = [RootDevice(ebs=root_ebs, device_name=ROOT_DEVICE_NAME)]

    for index, data_volume in enumerate(sorted(pool.data_volumes, key=lambda v: v.name)):
        ebs = compute_ebs(
            data_volume.size,
            data_volume.type,
            data_volume.encrypted,
            pool=pool.name,
            volume=data_volume.name,
        )
        if (override := find_data_volume_by_name(worker_config.data_volumes, data_volume.name)) is not None:
            if override.iops is not None:
                ebs = replace(ebs, iops=override.iops)
            if override.snapshot_id is not None:
                ebs = replace(ebs, snapshot_id=override.snapshot_id)
            if override.throughput is not None:
                ebs = replace(ebs, throughput=override.throughput)

        devices.append(
            DataDevice(
                volume_name=data_volume.name,
                device_name=device_name_for_index(index, pool=pool.name, volume=data_volume.name),
                ebs=ebs,
            )
        )

    return tuple(devices)
