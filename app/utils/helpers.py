"""
Helper utilities for the service registry.

Common functions used across domains.
"""

import re
from pathlib import Path
from typing import List, Optional

ID_PATTERN = re.compile(r'^[a-z0-9\-]+$')
TAG_PATTERN = re.compile(r'^[a-z0-9\-]+$')

SERVICE_FILE_SUFFIX = '.yaml'

# Side files produced by editors and atomic writers
TEMP_FILE_PATTERNS = [
    '*.tmp',
    '*.swp',
    '*.swx',
    '*~',
    '.#*',
]


def is_valid_id(service_id: str) -> bool:
    """Check whether ``service_id`` is an acceptable service ID."""
    return bool(service_id) and ID_PATTERN.match(service_id) is not None


def is_valid_tag(tag: str) -> bool:
    """Check whether ``tag`` is an acceptable tag name."""
    return bool(tag) and TAG_PATTERN.match(tag) is not None


def service_filename(service_id: str) -> str:
    """File name used to persist a service."""
    return f"{service_id}{SERVICE_FILE_SUFFIX}"


def service_id_from_filename(filename: str) -> Optional[str]:
    """
    Derive a service ID from a file name.

    Args:
        filename: Bare file name (no directories)

    Returns:
        The file stem, or None if the name is not a service file
    """
    if not filename.endswith(SERVICE_FILE_SUFFIX):
        return None

    stem = filename[:-len(SERVICE_FILE_SUFFIX)]
    if not stem or is_hidden(Path(stem)):
        return None

    return stem


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def is_hidden(path: Path) -> bool:
    """Check if path is hidden (starts with dot)."""
    return path.name.startswith('.')


def should_exclude_path(path: Path, exclude_patterns: List[str] = None) -> bool:
    """
    Check if path should be excluded based on patterns.

    Args:
        path: Path to check
        exclude_patterns: List of glob patterns to exclude

    Returns:
        True if should exclude, False otherwise
    """
    if exclude_patterns is None:
        exclude_patterns = TEMP_FILE_PATTERNS

    if is_hidden(path):
        return True

    for pattern in exclude_patterns:
        if path.match(pattern):
            return True

    return False
