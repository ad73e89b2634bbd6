"""
Shared registry access for the API layer.

Provides a lazily created, process-wide ServiceRegistry bound to the
configured registry directory.
"""

from typing import Optional
from loguru import logger

from app.utils.config import get_settings
from domains.service_registry.store import ServiceRegistry


# Global registry instance
_registry: Optional[ServiceRegistry] = None


def get_registry() -> ServiceRegistry:
    """Get global registry instance."""
    global _registry
    if _registry is None:
        settings = get_settings()
        _registry = ServiceRegistry(settings.get_registry_dir())
        logger.info(f"Using registry at {_registry.root}")
    return _registry


def close_registry():
    """Forget the global registry instance."""
    global _registry
    _registry = None
