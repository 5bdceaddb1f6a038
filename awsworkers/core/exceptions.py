"""Custom exception hierarchy for awsworkers.

All awsworkers-specific exceptions inherit from AWSWorkersError, enabling
callers to catch every compilation failure with a single except clause.
None of them are transient: retrying with the same inputs fails again.
"""

from __future__ import annotations


class AWSWorkersError(Exception):
    """Base exception for all awsworkers errors."""


class ConfigurationError(AWSWorkersError):
    """Raised for invalid configuration or missing required settings."""


class LookupFailedError(AWSWorkersError):
    """Raised when a required resource cannot be found in the inputs."""


def _context(**fields: str | None) -> str:
    parts = [f"{key}={value!r}" for key, value in fields.items() if value is not None]
    return f" ({', '.join(parts)})" if parts else ""


class ConfigDecodeError(ConfigurationError):
    """Raised when a pool's provider config cannot be decoded."""

    def __init__(self, reason: str, pool: str | None = None) -> None:
        self.reason = reason
        self.pool = pool
        super().__init__(f"could not decode provider config: {reason}{_context(pool=pool)}")


class SizeParseError(ConfigurationError):
    """Raised when a human readable volume size is malformed."""

    def __init__(self, size: str, pool: str | None = None, volume: str | None = None) -> None:
        self.size = size
        self.pool = pool
        self.volume = volume
        super().__init__(f"invalid volume size {size!r}{_context(pool=pool, volume=volume)}")


class VersionParseError(ConfigurationError):
    """Raised when the cluster's Kubernetes version is not a semantic version."""

    def __init__(self, version: str, pool: str | None = None) -> None:
        self.version = version
        self.pool = pool
        super().__init__(f"invalid kubernetes version {version!r}{_context(pool=pool)}")


class DeviceNamingExhausted(ConfigurationError):
    """Raised when a pool declares more data volumes than device names exist."""

    def __init__(self, index: int, available: int, pool: str | None = None, volume: str | None = None) -> None:
        self.index = index
        self.available = available
        self.pool = pool
        self.volume = volume
        super().__init__(
            f"unsupported data volume number {index + 1}, at most {available} data volumes "
            f"can be attached{_context(pool=pool, volume=volume)}"
        )


class ProfileUnresolvable(ConfigurationError):
    """Raised when an instance profile override names neither a profile nor an ARN."""

    def __init__(self, pool: str | None = None) -> None:
        self.pool = pool
        super().__init__(f"unable to compute IAM instance profile configuration{_context(pool=pool)}")


class ProfileNotFound(LookupFailedError):
    """Raised when the infrastructure status has no instance profile for a purpose."""

    def __init__(self, purpose: str, pool: str | None = None) -> None:
        self.purpose = purpose
        self.pool = pool
        super().__init__(f"no instance profile with purpose {purpose!r} found{_context(pool=pool)}")


class SecurityGroupNotFound(LookupFailedError):
    """Raised when the infrastructure status has no security group for a purpose."""

    def __init__(self, purpose: str) -> None:
        self.purpose = purpose
        super().__init__(f"no security group with purpose {purpose!r} found")


class SubnetNotFound(LookupFailedError):
    """Raised when the infrastructure status has no subnet for a purpose and zone."""

    def __init__(self, purpose: str, zone: str, pool: str | None = None) -> None:
        self.purpose = purpose
        self.zone = zone
        self.pool = pool
        super().__init__(
            f"no subnet with purpose {purpose!r} in zone {zone!r} found{_context(pool=pool)}"
        )


class ImageNotFound(LookupFailedError):
    """Raised when no AMI matches a machine image name, version, region and architecture."""

    def __init__(
        self,
        name: str,
        version: str,
        region: str,
        architecture: str,
        pool: str | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.region = region
        self.architecture = architecture
        self.pool = pool
        super().__init__(
            f"could not find an AMI for image {name!r} version {version!r} in region {region!r} "
            f"for architecture {architecture!r}{_context(pool=pool)}"
        )


class UserDataNotFound(LookupFailedError):
    """Raised when no bootstrap user data exists for a pool."""

    def __init__(self, namespace: str, pool: str) -> None:
        self.namespace = namespace
        self.pool = pool
        super().__init__(f"no user data found for pool {pool!r} in namespace {namespace!r}")
