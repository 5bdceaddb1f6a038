"""Additional pool hash data.

The generic pool hash does not look at volume encryption or data volume
types, but changing them replaces the underlying EBS volumes, so the
machines have to be rolled. These strings are appended to the hash input.
"""

from __future__ import annotations

from awsworkers.api.spec import WorkerPool

__all__ = ["compute_additional_hash_data"]


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def compute_additional_hash_data(pool: WorkerPool) -> list[str]:
    """Hash seeds, data volumes in declaration order."""
    data: list[str] = []

    if pool.volume.encrypted is not None:
        data.append(_format_bool(pool.volume.encrypted))

    for volume in pool.data_volumes:
        data.append(volume.size)
        if volume.type is not None:
            data.append(volume.type)
        if volume.encrypted is not None:
            data.append(_format_bool(volume.encrypted))

    return data
