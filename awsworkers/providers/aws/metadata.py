"""Instance metadata service (IMDS) options.

Clusters on Kubernetes 1.30 or newer get IMDSv2 (session tokens required,
hop limit 2) unless the pool overrides the options. An override, even a
partial one, replaces the version based default entirely: fields it leaves
unset stay unset.
"""

from __future__ import annotations

import re
from typing import Final

from awsworkers.api.model import InstanceMetadataOptions
from awsworkers.constants import HARDENED_HOP_LIMIT, HARDENED_METADATA_MIN_VERSION, HTTPTokens
from awsworkers.core.exceptions import VersionParseError
from awsworkers.providers.aws.config import WorkerConfig

__all__ = ["compute_instance_metadata", "parse_version"]

_VERSION_RE: Final = re.compile(
    r"^v?(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+))?"
    r"(?:\.(?P<patch>\d+))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


def parse_version(version: str, *, pool: str | None = None) -> tuple[int, int, int]:
    """Parse a semantic version into ``(major, minor, patch)``.

    Missing minor or patch components count as zero; pre-release and build
    suffixes are accepted and ignored, and so are leading zeros.
    """
    match = _VERSION_RE.match(version.strip())
    if match is None:
        raise VersionParseError(version, pool=pool)
    return (
        int(match["major"]),
        int(match["minor"] or 0),
        int(match["patch"] or 0),
    )


def compute_instance_metadata(
    worker_config: WorkerConfig | None,
    kubernetes_version: str,
    *,
    pool: str | None = None,
    min_version: tuple[int, int] = HARDENED_METADATA_MIN_VERSION,
    hop_limit: int = HARDENED_HOP_LIMIT,
) -> InstanceMetadataOptions:
    """IMDS options for a pool.

    Args:
        worker_config: Decoded provider config, may carry an explicit override.
        kubernetes_version: Control-plane version of the cluster.
        pool: Pool name reported in errors.
        min_version: First ``(major, minor)`` that gets the hardened default.
            Pre-releases of that minor count as reaching it.
        hop_limit: Hop limit of the hardened default.

    Raises:
        VersionParseError: If no override is set and the version is malformed.
    """
    override = worker_config.instance_metadata_options if worker_config is not None else None

    if override is None:
        major, minor, _ = parse_version(kubernetes_version, pool=pool)
        if (major, minor) >= min_version:
            return InstanceMetadataOptions(
                http_put_response_hop_limit=hop_limit,
                http_tokens=HTTPTokens.REQUIRED.value,
            )
        return InstanceMetadataOptions()

    return InstanceMetadataOptions(
        http_put_response_hop_limit=override.http_put_response_hop_limit,
        http_tokens=override.http_tokens,
    )
