"""
State tracking for the registry watcher.

The tracker keeps an in-memory mirror of which services exist and which
tags each of them carries. Raw hints are accumulated per service and
finalized once the service has been quiet for the settle window; only then
are domain events derived, in canonical order:

    Added, Updated, Tagged... | Untagged..., Removed

The mirror is a cache of what has been reported so far, never a source of
truth. It is owned by a single watcher loop and is not thread-safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from loguru import logger

from domains.service_registry.watchers.classifier import Area, PathHint, RawOp
from domains.service_registry.watchers.events import (
    Added,
    Event,
    Removed,
    Tagged,
    Untagged,
    Updated,
)

# A burst that keeps a service busy is finalized after this many windows
MAX_SETTLE_WINDOWS = 10


class RecordState(str, Enum):
    """Lifecycle of a service as seen by the tracker."""

    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"


@dataclass
class _Pending:
    """Changes observed for one service since its last finalization."""

    first_seen: float
    deadline: float
    tags: Set[str] = field(default_factory=set)
    # Last unsorted-area observation: True for create/write, False for
    # removal, None when the unsorted file was not touched.
    exists: Optional[bool] = None


class StateTracker:
    """Turns classified path hints into ordered domain events."""

    def __init__(
        self,
        settle_seconds: float,
        probe: Callable[[str], Optional[int]],
    ) -> None:
        """
        Initialize the tracker.

        Args:
            settle_seconds: Quiet period before a service's changes are final
            probe: Returns the size of a service's unsorted file, or None
                when the file does not exist
        """
        self._settle = max(settle_seconds, 0.0)
        self._probe = probe
        self._states: Dict[str, RecordState] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._pending: Dict[str, _Pending] = {}

    # Mirror access ------------------------------------------------------------------

    def seed(self, record_ids: Iterable[str], tags_by_id: Mapping[str, Iterable[str]]) -> None:
        """Load pre-existing registry state without emitting events."""
        for record_id in record_ids:
            self._states[record_id] = RecordState.PRESENT
        for record_id, tags in tags_by_id.items():
            tags = set(tags)
            if tags:
                self._tags[record_id] = tags
        logger.debug(
            f"Tracker seeded with {len(self._states)} services, "
            f"{len(self._tags)} tagged"
        )

    def state_of(self, record_id: str) -> RecordState:
        return self._states.get(record_id, RecordState.ABSENT)

    def tags_of(self, record_id: str) -> Set[str]:
        """Tags of ``record_id``, including changes not yet finalized."""
        pending = self._pending.get(record_id)
        if pending is not None:
            return set(pending.tags)
        return set(self._tags.get(record_id, ()))

    def ids_with_tag(self, tag: str) -> List[str]:
        """Sorted IDs currently carrying ``tag``, pending changes included."""
        record_ids = set(self._tags) | set(self._pending)
        return sorted(i for i in record_ids if tag in self.tags_of(i))

    def has_pending(self) -> bool:
        return bool(self._pending)

    def next_deadline(self) -> Optional[float]:
        """Earliest time at which a pending service settles."""
        if not self._pending:
            return None
        return min(p.deadline for p in self._pending.values())

    # Ingestion ----------------------------------------------------------------------

    def feed(self, hint: PathHint, now: float) -> None:
        """Record one classified hint observed at time ``now``."""
        record_id = hint.record_id
        pending = self._pending.get(record_id)
        if pending is None:
            pending = _Pending(
                first_seen=now,
                deadline=now + self._settle,
                tags=set(self._tags.get(record_id, ())),
            )
            self._pending[record_id] = pending
        else:
            pending.deadline = min(
                now + self._settle,
                pending.first_seen + self._settle * MAX_SETTLE_WINDOWS,
            )

        if hint.area is Area.UNSORTED:
            if hint.op is RawOp.REMOVE:
                pending.exists = False
            else:
                pending.exists = True
                if self.state_of(record_id) is RecordState.ABSENT:
                    self._states[record_id] = RecordState.CREATING
        elif hint.op is RawOp.REMOVE:
            pending.tags.discard(hint.tag)
        else:
            pending.tags.add(hint.tag)

        logger.debug(f"Hint {hint.op.value} {hint.area.value} {record_id} tag={hint.tag}")

    # Finalization -------------------------------------------------------------------

    def due(self, now: float) -> List[Event]:
        """Finalize every service whose settle window has elapsed."""
        ready = sorted(
            (p.deadline, record_id)
            for record_id, p in self._pending.items()
            if p.deadline <= now
        )
        events: List[Event] = []
        for _, record_id in ready:
            events.extend(self._finalize(record_id, self._pending.pop(record_id)))
        return events

    def flush(self) -> List[Event]:
        """Finalize all pending services regardless of their deadlines."""
        ready = sorted((p.deadline, record_id) for record_id, p in self._pending.items())
        events: List[Event] = []
        for _, record_id in ready:
            events.extend(self._finalize(record_id, self._pending.pop(record_id)))
        return events

    def _finalize(self, record_id: str, pending: _Pending) -> List[Event]:
        state = self.state_of(record_id)
        committed = self._tags.get(record_id, set())
        events: List[Event] = []

        if state is RecordState.PRESENT and pending.exists is False:
            events.extend(Untagged(record_id, tag) for tag in sorted(committed))
            events.append(Removed(record_id))
            self._states.pop(record_id, None)
            self._tags.pop(record_id, None)
            return events

        if state is RecordState.CREATING:
            size = self._probe(record_id) if pending.exists else None
            if size is None:
                # Vanished before it settled
                self._states.pop(record_id, None)
            else:
                events.append(Added(record_id))
                if size > 0:
                    events.append(Updated(record_id))
                self._states[record_id] = RecordState.PRESENT
        elif state is RecordState.PRESENT and pending.exists:
            events.append(Updated(record_id))

        events.extend(Tagged(record_id, tag) for tag in sorted(pending.tags - committed))
        events.extend(Untagged(record_id, tag) for tag in sorted(committed - pending.tags))

        if pending.tags:
            self._tags[record_id] = pending.tags
        else:
            self._tags.pop(record_id, None)

        return events
