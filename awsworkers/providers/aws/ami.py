"""AMI resolution for worker pools.

Maps a machine image (name, version) to the AMI published for a region and
architecture. The catalog is configured up front; images already recorded
in a previous worker status act as a fallback so that pools keep working
while an image version is being phased out of the catalog.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from awsworkers.api.model import MachineImage
from awsworkers.constants import DEFAULT_ARCHITECTURE
from awsworkers.core.exceptions import ImageNotFound

__all__ = [
    "CatalogEntry",
    "ImageResolver",
    "MachineImageCatalog",
    "append_machine_image",
]


@runtime_checkable
class ImageResolver(Protocol):
    """Resolves ``(name, version, region, architecture)`` to an AMI id."""

    async def resolve(
        self,
        name: str,
        version: str,
        region: str,
        architecture: str,
        *,
        pool: str | None = None,
    ) -> str:
        """Return the AMI id or raise ImageNotFound."""
        ...


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    name: str
    version: str
    region: str
    ami: str
    architecture: str = DEFAULT_ARCHITECTURE


@dataclass(frozen=True, slots=True)
class MachineImageCatalog:
    """Static image catalog.

    Args:
        entries: Published AMIs per image version, region and architecture.
        status_images: Images resolved by an earlier compilation, region agnostic.
    """

    entries: tuple[CatalogEntry, ...] = ()
    status_images: tuple[MachineImage, ...] = ()

    @classmethod
    def from_dict(cls, raw: Sequence[Mapping[str, Any]]) -> MachineImageCatalog:
        """Build a catalog from the nested ``machine_images`` config section.

        Each image lists versions, each version lists regions::

            [[machine_images]]
            name = "gardenlinux"
            [[machine_images.versions]]
            version = "1592.1.0"
            regions = [{ name = "eu-west-1", ami = "ami-123", architecture = "arm64" }]
        """
        entries = [
            CatalogEntry(
                name=image["name"],
                version=version["version"],
                region=region["name"],
                ami=region["ami"],
                architecture=region.get("architecture") or DEFAULT_ARCHITECTURE,
            )
            for image in raw
            for version in image.get("versions") or ()
            for region in version.get("regions") or ()
        ]
        return cls(entries=tuple(entries))

    def find(self, name: str, version: str, region: str, architecture: str) -> str | None:
        for entry in self.entries:
            if (
                entry.name == name
                and entry.version == version
                and entry.region == region
                and entry.architecture == architecture
            ):
                return entry.ami

        for image in self.status_images:
            if image.name == name and image.version == version and image.architecture == architecture:
                logger.debug(f"Using AMI {image.ami} for {name}:{version} from worker status")
                return image.ami

        return None

    async def resolve(
        self,
        name: str,
        version: str,
        region: str,
        architecture: str,
        *,
        pool: str | None = None,
    ) -> str:
        ami = self.find(name, version, region, architecture)
        if ami is None:
            raise ImageNotFound(name, version, region, architecture, pool=pool)
        return ami


def append_machine_image(
    images: Iterable[MachineImage],
    image: MachineImage,
) -> tuple[MachineImage, ...]:
    """Add ``image`` unless an image with the same name, version and architecture is present."""
    existing = tuple(images)
    for known in existing:
        if (known.name, known.version, known.architecture) == (
            image.name,
            image.version,
            image.architecture,
        ):
            return existing
    return (*existing, image)
