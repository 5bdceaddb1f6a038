"""Centralized constants and enums for awsworkers.

All magic strings (tag keys, label keys, purposes, device names) are
defined here so the compiler and its tests agree on a single spelling.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# Infrastructure Purposes
# =============================================================================


class Purpose(StrEnum):
    """Purpose tags used in the infrastructure status."""

    NODES = "nodes"
    PUBLIC = "public"
    INTERNAL = "internal"


# =============================================================================
# AWS Resource Tags
# =============================================================================

CLUSTER_TAG_TEMPLATE: Final = "kubernetes.io/cluster/{namespace}"
NODE_ROLE_TAG: Final = "kubernetes.io/role/node"


# =============================================================================
# Kubernetes Labels
# =============================================================================

ZONE_FAILURE_DOMAIN_LABEL: Final = "failure-domain.beta.kubernetes.io/zone"
CSI_TOPOLOGY_ZONE_LABEL: Final = "topology.ebs.csi.aws.com/zone"
PURPOSE_LABEL: Final = "gardener.cloud/purpose"
PURPOSE_MACHINE_CLASS: Final = "machineclass"


# =============================================================================
# Instance Metadata Service
# =============================================================================


class HTTPTokens(StrEnum):
    """Accepted values for the IMDS token requirement."""

    REQUIRED = "required"
    OPTIONAL = "optional"


HARDENED_METADATA_MIN_VERSION: Final = (1, 30)
HARDENED_HOP_LIMIT: Final = 2


# =============================================================================
# Block Devices
# See https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/device_naming.html
# =============================================================================

ROOT_DEVICE_NAME: Final = "/root"
DATA_DEVICE_PREFIX: Final = "/dev/sd"
DATA_DEVICE_SUFFIXES: Final = "fghijklmnop"


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_ARCHITECTURE: Final = "amd64"
POOL_HASH_LENGTH: Final = 5


# =============================================================================
# Cluster Autoscaler Annotations
# =============================================================================


class AutoscalerAnnotation(StrEnum):
    """Machine deployment annotations read by the cluster autoscaler."""

    SCALE_DOWN_UTILIZATION_THRESHOLD = "autoscaler.gardener.cloud/scale-down-utilization-threshold"
    SCALE_DOWN_GPU_UTILIZATION_THRESHOLD = "autoscaler.gardener.cloud/scale-down-gpu-utilization-threshold"
    SCALE_DOWN_UNNEEDED_TIME = "autoscaler.gardener.cloud/scale-down-unneeded-time"
    SCALE_DOWN_UNREADY_TIME = "autoscaler.gardener.cloud/scale-down-unready-time"
    MAX_NODE_PROVISION_TIME = "autoscaler.gardener.cloud/max-node-provision-time"
