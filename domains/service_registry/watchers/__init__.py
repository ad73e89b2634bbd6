"""Registry watchers: path classification, state tracking, event delivery."""

from domains.service_registry.watchers.events import (
    Added,
    Event,
    Removed,
    Tagged,
    Untagged,
    Updated,
)

__all__ = ["Added", "Event", "Removed", "Tagged", "Untagged", "Updated"]
