"""Provider independent worker helpers: zone distribution, hashing, sizes."""

from awsworkers.worker.distribution import (
    BoundDistributor,
    IntDistributor,
    distribute_over_zones,
    distribute_positive_int_or_percent,
)
from awsworkers.worker.hashing import PoolHasher, worker_pool_hash
from awsworkers.worker.quantity import parse_quantity

__all__ = [
    "BoundDistributor",
    "IntDistributor",
    "PoolHasher",
    "distribute_over_zones",
    "distribute_positive_int_or_percent",
    "parse_quantity",
    "worker_pool_hash",
]
