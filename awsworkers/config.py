"""TOML-based compiler configuration.

Loads ~/.awsworkers/defaults.toml (global) and awsworkers.toml (project),
merges them, and resolves the sections into compiler inputs:

    [compiler]
    default_architecture = "amd64"
    hardened_metadata_min_version = "1.30"
    hardened_hop_limit = 2

    [worker]
    namespace = "shoot--core--dev"
    region = "eu-west-1"
    secret_ref = { name = "cloudprovider", namespace = "shoot--core--dev" }
    cluster = { name = "dev", kubernetes_version = "1.30.2" }

    [[pools]]
    name = "cpu"
    machine_type = "m5.large"
    zones = ["eu-west-1a", "eu-west-1b"]
    ...

    [[machine_images]]
    name = "gardenlinux"
    ...
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from awsworkers.api.spec import (
    Cluster,
    ClusterAutoscalerOptions,
    DataVolume,
    MachineControllerSettings,
    MachineImageRef,
    NodeTemplate,
    SecretRef,
    Taint,
    Volume,
    WorkerPool,
)
from awsworkers.constants import DEFAULT_ARCHITECTURE, HARDENED_HOP_LIMIT, HARDENED_METADATA_MIN_VERSION
from awsworkers.core.exceptions import ConfigurationError
from awsworkers.providers.aws.ami import MachineImageCatalog
from awsworkers.providers.aws.machines import CompilerSettings
from awsworkers.providers.aws.metadata import parse_version

RawConfig: TypeAlias = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".awsworkers" / "defaults.toml"
PROJECT_CONFIG_NAME = "awsworkers.toml"


@dataclass(frozen=True, slots=True)
class WorkerSettings:
    """Identity of the worker whose pools are compiled."""

    namespace: str
    region: str
    secret_ref: SecretRef
    cluster: Cluster


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("compiler", {})
    merged.setdefault("pools", [])
    merged.setdefault("machine_images", [])
    return merged


def resolve_compiler_settings(config: RawConfig) -> CompilerSettings:
    raw = dict(config.get("compiler") or {})
    unknown = set(raw) - {"default_architecture", "hardened_metadata_min_version", "hardened_hop_limit"}
    if unknown:
        raise ConfigurationError(f"Unknown compiler settings: {', '.join(sorted(unknown))}")

    min_version = HARDENED_METADATA_MIN_VERSION
    if "hardened_metadata_min_version" in raw:
        major, minor, _ = parse_version(str(raw["hardened_metadata_min_version"]))
        min_version = (major, minor)

    return CompilerSettings(
        default_architecture=raw.get("default_architecture", DEFAULT_ARCHITECTURE),
        hardened_metadata_min_version=min_version,
        hardened_hop_limit=int(raw.get("hardened_hop_limit", HARDENED_HOP_LIMIT)),
    )


def resolve_worker_settings(config: RawConfig) -> WorkerSettings:
    raw = config.get("worker")
    if not raw:
        raise ConfigurationError("Missing [worker] section")

    try:
        return WorkerSettings(
            namespace=raw["namespace"],
            region=raw["region"],
            secret_ref=SecretRef(**raw["secret_ref"]),
            cluster=Cluster(**raw["cluster"]),
        )
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid [worker] section: {e}") from e


def resolve_image_catalog(config: RawConfig) -> MachineImageCatalog:
    try:
        return MachineImageCatalog.from_dict(config.get("machine_images") or [])
    except KeyError as e:
        raise ConfigurationError(f"Invalid [[machine_images]] entry, missing {e}") from e


def _build_pool(raw: Mapping[str, Any]) -> WorkerPool:
    raw = dict(raw)
    name = raw.get("name", "<unnamed>")

    try:
        image = MachineImageRef(**raw.pop("machine_image"))
        volume = Volume(**raw.pop("volume"))
        data_volumes = tuple(DataVolume(**v) for v in raw.pop("data_volumes", ()))
        taints = tuple(Taint(**t) for t in raw.pop("taints", ()))
        node_template = raw.pop("node_template", None)
        autoscaler = raw.pop("cluster_autoscaler", None)
        mcm = raw.pop("machine_controller_settings", None)
        zones = tuple(raw.pop("zones"))

        return WorkerPool(
            machine_image=image,
            volume=volume,
            data_volumes=data_volumes,
            taints=taints,
            zones=zones,
            node_template=NodeTemplate(**node_template) if node_template else None,
            cluster_autoscaler=ClusterAutoscalerOptions(**autoscaler) if autoscaler else None,
            machine_controller_settings=(
                MachineControllerSettings(
                    **{**mcm, "node_conditions": tuple(mcm.get("node_conditions", ()))}
                )
                if mcm
                else None
            ),
            **raw,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid pool '{name}': {e}") from e


def resolve_pools(config: RawConfig) -> tuple[WorkerPool, ...]:
    """Pools in declaration order."""
    return tuple(_build_pool(raw) for raw in config.get("pools") or [])
