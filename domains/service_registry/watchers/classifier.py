"""
Path classification for raw filesystem notifications.

Maps a notification to the registry area it touched and the service/tag it
concerns. Paths that do not fit the registry layout are dropped without
error; editors and atomic writers produce plenty of them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Optional

from loguru import logger

from app.utils.helpers import service_id_from_filename, should_exclude_path


class RawOp(str, Enum):
    """Raw operation reported by the filesystem layer."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"


class Area(str, Enum):
    """Registry area a path belongs to."""

    UNSORTED = "unsorted"
    TAGGED = "tagged"


@dataclass(frozen=True, slots=True)
class RawNotification:
    """One filesystem change, as delivered by the observer."""

    op: RawOp
    path: str
    is_directory: bool = False


@dataclass(frozen=True, slots=True)
class PathHint:
    """Structured description of a notification that concerns a service."""

    area: Area
    record_id: str
    tag: Optional[str]
    op: RawOp


def _relative_parts(path: str, root: str) -> Optional[tuple[str, ...]]:
    try:
        relative = os.path.relpath(path, root)
    except ValueError:
        # Different drives on Windows
        return None

    if relative == os.curdir or relative.startswith(os.pardir):
        return None

    return PurePath(relative).parts


def classify(
    notification: RawNotification,
    unsorted_dir: str,
    tagged_dir: str,
) -> Optional[PathHint]:
    """
    Classify a raw notification.

    Args:
        notification: Raw notification from the observer
        unsorted_dir: Absolute path of the unsorted area
        tagged_dir: Absolute path of the tagged area

    Returns:
        PathHint, or None if the path is not a service file
    """
    if notification.is_directory:
        return None

    path = os.path.normpath(notification.path)
    if should_exclude_path(PurePath(path)):
        logger.debug(f"Ignoring side file: {path}")
        return None

    parts = _relative_parts(path, unsorted_dir)
    if parts is not None:
        if len(parts) != 1:
            return None
        record_id = service_id_from_filename(parts[0])
        if record_id is None:
            logger.debug(f"Ignoring unrecognised path: {path}")
            return None
        return PathHint(Area.UNSORTED, record_id, None, notification.op)

    parts = _relative_parts(path, tagged_dir)
    if parts is not None:
        if len(parts) != 2 or parts[0].startswith("."):
            return None
        record_id = service_id_from_filename(parts[1])
        if record_id is None:
            logger.debug(f"Ignoring unrecognised path: {path}")
            return None
        return PathHint(Area.TAGGED, record_id, parts[0], notification.op)

    return None


def classify_tag_directory(path: str, tagged_dir: str) -> Optional[str]:
    """
    Return the tag name if ``path`` is a first-level tag directory.

    Args:
        path: Directory path
        tagged_dir: Absolute path of the tagged area

    Returns:
        Tag name, or None
    """
    parts = _relative_parts(os.path.normpath(path), tagged_dir)
    if parts is None or len(parts) != 1 or parts[0].startswith("."):
        return None
    return parts[0]
