"""Bootstrap user data for worker pools."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from awsworkers.api.spec import WorkerPool
from awsworkers.core.exceptions import UserDataNotFound

__all__ = ["StaticUserData", "UserDataFetcher"]


@runtime_checkable
class UserDataFetcher(Protocol):
    """Fetches the cloud-init payload for a pool.

    Implementations usually read a secret from the cluster API; cancelling
    the awaiting task must abort the read.
    """

    async def fetch(self, namespace: str, pool: WorkerPool) -> bytes: ...


@dataclass(frozen=True, slots=True)
class StaticUserData:
    """User data kept in memory, keyed by pool name."""

    data: Mapping[str, bytes] = field(default_factory=dict)

    async def fetch(self, namespace: str, pool: WorkerPool) -> bytes:
        try:
            return self.data[pool.name]
        except KeyError:
            raise UserDataNotFound(namespace, pool.name) from None
