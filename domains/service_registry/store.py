"""
Directory-backed service registry.

Layout under the registry root::

    .oniontree                 marker file
    unsorted/<id>.yaml         one YAML document per service
    tagged/<tag>/<id>.yaml     relative symlink to ../../unsorted/<id>.yaml

The unsorted file is the single source of truth; tagged entries are links
so they always mirror it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

import yaml
from loguru import logger

from app.models.schemas import Service
from app.utils.helpers import (
    is_valid_id,
    is_valid_tag,
    normalise_path,
    service_filename,
    service_id_from_filename,
)
from domains.service_registry.errors import (
    IdExistsError,
    IdNotExistsError,
    InvalidIdError,
    InvalidTagNameError,
    RegistryNotInitializedError,
    TagNotExistsError,
)
from domains.service_registry.signatures import verify_signed_message

MARKER_FILE = ".oniontree"
UNSORTED_DIR = "unsorted"
TAGGED_DIR = "tagged"


class ServiceRegistry:
    """File-based registry of services and their tags."""

    def __init__(self, root: str | Path):
        self._root = normalise_path(Path(root))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def marker_path(self) -> Path:
        return self._root / MARKER_FILE

    @property
    def unsorted_dir(self) -> Path:
        return self._root / UNSORTED_DIR

    @property
    def tagged_dir(self) -> Path:
        return self._root / TAGGED_DIR

    def service_path(self, service_id: str) -> Path:
        """Path of the unsorted file for ``service_id``."""
        return self.unsorted_dir / service_filename(service_id)

    def tagged_path(self, tag: str, service_id: str) -> Path:
        """Path of the tag link for ``service_id``."""
        return self.tagged_dir / tag / service_filename(service_id)

    # Lifecycle ----------------------------------------------------------------------

    def init(self) -> None:
        """Create the marker file and both area directories."""
        self._root.mkdir(parents=True, exist_ok=True)
        self.unsorted_dir.mkdir(exist_ok=True)
        self.tagged_dir.mkdir(exist_ok=True)
        self.marker_path.touch(exist_ok=True)
        logger.info(f"Registry initialized at {self._root}")

    def is_initialized(self) -> bool:
        return self.marker_path.is_file()

    def ensure_initialized(self) -> None:
        """Raise unless the registry root carries its marker."""
        if not self.is_initialized():
            raise RegistryNotInitializedError(self._root)

    # Services -----------------------------------------------------------------------

    def add_service(self, service: Service) -> None:
        """Persist a new service."""
        if not is_valid_id(service.id):
            raise InvalidIdError(service.id)
        if self.service_exists(service.id):
            raise IdExistsError(service.id)

        self._write_service(service)
        logger.info(f"Service added: {service.id}")

    def update_service(self, service: Service) -> None:
        """Overwrite the content of an existing service."""
        if not self.service_exists(service.id):
            raise IdNotExistsError(service.id)

        self._write_service(service)
        logger.info(f"Service updated: {service.id}")

    def remove_service(self, service_id: str) -> None:
        """Remove a service together with all of its tag links."""
        if not self.service_exists(service_id):
            raise IdNotExistsError(service_id)

        self.untag_service(service_id, self.list_service_tags(service_id))
        self.service_path(service_id).unlink()
        logger.info(f"Service removed: {service_id}")

    def get_service(self, service_id: str) -> Service:
        """Load a service from its unsorted file."""
        if not self.service_exists(service_id):
            raise IdNotExistsError(service_id)

        with open(self.service_path(service_id), encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return Service.from_document(service_id, data)

    def service_exists(self, service_id: str) -> bool:
        return is_valid_id(service_id) and self.service_path(service_id).is_file()

    def list_services(self) -> List[str]:
        """Sorted IDs of all services in the unsorted area."""
        return sorted(self._iter_service_ids(self.unsorted_dir))

    # Tags ---------------------------------------------------------------------------

    def list_tags(self) -> List[str]:
        """Sorted names of all tag directories."""
        if not self.tagged_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.tagged_dir.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def list_services_with_tag(self, tag: str) -> List[str]:
        """Sorted IDs of services linked under ``tag``."""
        if not tag or tag.startswith(".") or os.sep in tag:
            raise TagNotExistsError(tag)
        tag_dir = self.tagged_dir / tag
        if not tag_dir.is_dir():
            raise TagNotExistsError(tag)
        return sorted(self._iter_service_ids(tag_dir))

    def list_service_tags(self, service_id: str) -> List[str]:
        """Sorted tags currently linked to ``service_id``."""
        if not self.service_exists(service_id):
            raise IdNotExistsError(service_id)
        return [
            tag for tag in self.list_tags()
            if os.path.lexists(self.tagged_path(tag, service_id))
        ]

    def tag_service(self, service_id: str, tags: Iterable[str]) -> None:
        """Link ``service_id`` under every tag in ``tags``."""
        tags = list(tags)
        for tag in tags:
            if not is_valid_tag(tag):
                raise InvalidTagNameError(tag)
        if not self.service_exists(service_id):
            raise IdNotExistsError(service_id)

        target = Path("..") / ".." / UNSORTED_DIR / service_filename(service_id)
        for tag in tags:
            link = self.tagged_path(tag, service_id)
            if os.path.lexists(link):
                continue
            link.parent.mkdir(parents=True, exist_ok=True)
            link.symlink_to(target)
            logger.info(f"Service tagged: {service_id} +{tag}")

    def untag_service(self, service_id: str, tags: Iterable[str]) -> None:
        """Remove the links of ``service_id`` under every tag in ``tags``."""
        if not is_valid_id(service_id):
            raise InvalidIdError(service_id)
        tags = list(tags)
        for tag in tags:
            if not is_valid_tag(tag):
                raise InvalidTagNameError(tag)

        for tag in tags:
            link = self.tagged_path(tag, service_id)
            try:
                link.unlink()
            except FileNotFoundError:
                continue
            logger.info(f"Service untagged: {service_id} -{tag}")

    # Signatures ---------------------------------------------------------------------

    def verify_signed_message(self, service_id: str, signed_text: str) -> str:
        """
        Check a clearsigned message against the public keys of a service.

        Returns:
            Fingerprint of the signing key
        """
        return verify_signed_message(self.get_service(service_id), signed_text)

    # Snapshot -----------------------------------------------------------------------

    def snapshot(self) -> Tuple[List[str], Dict[str, Set[str]]]:
        """
        Read the current registry state from disk.

        Returns:
            Tuple of (service IDs, tags by service ID). Tag links without a
            matching unsorted file are included as found.
        """
        tags_by_id: Dict[str, Set[str]] = {}
        for tag in self.list_tags():
            for service_id in self._iter_service_ids(self.tagged_dir / tag):
                tags_by_id.setdefault(service_id, set()).add(tag)

        return self.list_services(), tags_by_id

    # Helper routines ----------------------------------------------------------------

    def _iter_service_ids(self, directory: Path):
        if not directory.is_dir():
            return
        for entry in directory.iterdir():
            service_id = service_id_from_filename(entry.name)
            if service_id is not None:
                yield service_id

    def _write_service(self, service: Service) -> None:
        path = self.service_path(service.id)
        tmp_path = path.with_name(f".{path.name}.tmp")
        tmp_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(
            yaml.safe_dump(service.to_document(), sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        tmp_path.replace(path)
