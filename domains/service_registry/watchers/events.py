"""Domain events emitted by the registry watcher."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Event:
    """Base class for all registry events."""

    id: str


@dataclass(frozen=True, slots=True)
class Added(Event):
    """A service file appeared in the unsorted area."""


@dataclass(frozen=True, slots=True)
class Updated(Event):
    """A service file's content changed."""


@dataclass(frozen=True, slots=True)
class Removed(Event):
    """A service file disappeared from the unsorted area."""


@dataclass(frozen=True, slots=True)
class Tagged(Event):
    """A service was linked under a tag."""

    tag: str


@dataclass(frozen=True, slots=True)
class Untagged(Event):
    """A service's link under a tag was removed."""

    tag: str
