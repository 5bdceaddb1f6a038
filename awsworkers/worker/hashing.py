"""Pool identity hash.

The hash ends up in machine class names, so any input listed here forces a
rolling replacement of the pool's machines when it changes.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import TypeAlias

from awsworkers.api.spec import Cluster, WorkerPool
from awsworkers.constants import POOL_HASH_LENGTH

__all__ = ["PoolHasher", "worker_pool_hash"]

PoolHasher: TypeAlias = Callable[..., str]
"""``(pool, cluster, *additional_data) -> str``"""


def worker_pool_hash(pool: WorkerPool, cluster: Cluster, *additional_data: str) -> str:
    """Stable short fingerprint of a pool's effective configuration."""
    data = [
        cluster.name,
        pool.machine_type,
        pool.machine_image.name,
        pool.machine_image.version,
        pool.architecture or "",
        pool.kubernetes_version or cluster.kubernetes_version,
        pool.volume.size,
    ]
    if pool.volume.type is not None:
        data.append(pool.volume.type)
    if pool.cri is not None:
        data.append(pool.cri)
    data.extend(additional_data)

    content = "\x00".join(data)
    return hashlib.sha256(content.encode()).hexdigest()[:POOL_HASH_LENGTH]
