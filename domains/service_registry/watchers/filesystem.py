#!/usr/bin/env python3
"""
File system watcher for the service registry.

Observes the unsorted and tagged areas of a registry and publishes domain
events (Added, Updated, Tagged, Untagged, Removed) to a consumer queue.
Uses watchdog library for cross-platform file system event monitoring.

Every watched directory gets its own non-recursive subscription; tag
directories created while watching are subscribed as they appear.
"""

import os
import queue
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Dict, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import ObservedWatch

sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from app.utils.config import get_settings
from domains.service_registry.errors import RegistryError, WatchError
from domains.service_registry.store import ServiceRegistry
from domains.service_registry.watchers.classifier import (
    Area,
    PathHint,
    RawNotification,
    RawOp,
    classify,
    classify_tag_directory,
)
from domains.service_registry.watchers.events import Event
from domains.service_registry.watchers.tracker import StateTracker


class RawEventForwarder(FileSystemEventHandler):
    """Watchdog handler that hands raw notifications to the watcher loop."""

    def __init__(self, sink: "queue.Queue[RawNotification]"):
        """
        Initialize event handler.

        Args:
            sink: Queue drained by the watcher loop
        """
        super().__init__()
        self.sink = sink

    def _forward(self, op: RawOp, path, is_directory: bool) -> None:
        self.sink.put(RawNotification(op, os.fsdecode(path), is_directory))

    def on_created(self, event: FileSystemEvent):
        """Handle file/directory creation."""
        self._forward(RawOp.CREATE, event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification."""
        # Directory modifications only mirror entry changes reported anyway
        if event.is_directory:
            return
        self._forward(RawOp.WRITE, event.src_path, event.is_directory)

    def on_deleted(self, event: FileSystemEvent):
        """Handle file/directory deletion."""
        self._forward(RawOp.REMOVE, event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent):
        """Handle file/directory move/rename as removal plus creation."""
        self._forward(RawOp.REMOVE, event.src_path, event.is_directory)
        if event.dest_path:
            self._forward(RawOp.CREATE, event.dest_path, event.is_directory)


class Watcher:
    """Translates registry file system changes into domain events."""

    def __init__(
        self,
        store: ServiceRegistry,
        settle_seconds: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        """
        Initialize registry watcher.

        Args:
            store: Registry whose directories are observed
            settle_seconds: Quiet period used to coalesce bursts of
                notifications; defaults to ``watch_settle_ms``
            poll_interval: Longest idle wait before cancellation is
                re-checked; defaults to ``watch_poll_interval``
        """
        settings = get_settings()
        self.store = store
        self.settle_seconds = (
            settings.get_settle_seconds() if settle_seconds is None else settle_seconds
        )
        self.poll_interval = (
            settings.watch_poll_interval if poll_interval is None else poll_interval
        )

        self._unsorted_dir = str(store.unsorted_dir)
        self._tagged_dir = str(store.tagged_dir)

        self._observer: Optional[Observer] = None
        self._handler: Optional[RawEventForwarder] = None
        self._raw: "queue.Queue[RawNotification]" = queue.Queue()
        self._watches: Dict[str, ObservedWatch] = {}
        self._watches_lock = threading.Lock()
        self._tracker: Optional[StateTracker] = None
        self.ready = threading.Event()

    @property
    def watched_paths(self) -> list[str]:
        """Directories with an active subscription; safe to read from any thread."""
        with self._watches_lock:
            return sorted(self._watches)

    def watch(self, stop: threading.Event, events: "queue.Queue[Event]") -> None:
        """
        Watch the registry until ``stop`` is set.

        Events are put on ``events`` one at a time in emission order. A full
        queue blocks the watcher; nothing is dropped.

        Args:
            stop: Cancellation signal
            events: Consumer queue for domain events

        Raises:
            WatchError: If subscribing fails or a subscription is lost
        """
        if self._observer is not None:
            raise WatchError("watcher is already running")

        for root in (self._unsorted_dir, self._tagged_dir):
            if not os.path.isdir(root):
                raise WatchError(f"cannot watch '{root}': not a directory")

        self._raw = queue.Queue()
        self._handler = RawEventForwarder(self._raw)
        self._observer = Observer(timeout=self.poll_interval)
        self._observer.daemon = True

        try:
            self._observer.start()
            self._subscribe(self._unsorted_dir, required=True)
            self._subscribe(self._tagged_dir, required=True)
            for tag in self.store.list_tags():
                self._subscribe(os.path.join(self._tagged_dir, tag), required=False)

            self._tracker = StateTracker(self.settle_seconds, self._probe)
            service_ids, tags_by_id = self.store.snapshot()
            self._tracker.seed(service_ids, tags_by_id)

            self.ready.set()
            logger.success(f"Registry watcher started: {self.store.root}")
            self._run(stop, events)

        finally:
            self._shutdown()

    # Processing loop ----------------------------------------------------------------

    def _run(self, stop: threading.Event, events: "queue.Queue[Event]") -> None:
        while not stop.is_set():
            if not self._observer.is_alive():
                raise WatchError("file system observer stopped unexpectedly")

            try:
                raw = self._raw.get(timeout=self._next_timeout())
            except queue.Empty:
                raw = None

            if raw is not None:
                self._ingest(raw)

            for event in self._tracker.due(time.monotonic()):
                if not self._publish(event, stop, events):
                    return

        logger.info("Registry watcher cancelled")

    def _next_timeout(self) -> float:
        deadline = self._tracker.next_deadline()
        if deadline is None:
            return self.poll_interval
        return max(0.0, min(self.poll_interval, deadline - time.monotonic()))

    def _ingest(self, raw: RawNotification) -> None:
        if raw.is_directory:
            self._handle_directory(raw)
            return

        hint = classify(raw, self._unsorted_dir, self._tagged_dir)
        if hint is None:
            return

        self._tracker.feed(hint, time.monotonic())

    def _publish(self, event: Event, stop: threading.Event, events: "queue.Queue[Event]") -> bool:
        logger.debug(f"Publishing {event}")
        while True:
            try:
                events.put(event, timeout=self.poll_interval)
                return True
            except queue.Full:
                if stop.is_set():
                    logger.warning(f"Cancelled while delivering {event}")
                    return False

    def _probe(self, service_id: str) -> Optional[int]:
        try:
            return os.stat(self.store.service_path(service_id)).st_size
        except OSError:
            return None

    # Watch set ----------------------------------------------------------------------

    def _handle_directory(self, raw: RawNotification) -> None:
        path = os.path.normpath(raw.path)

        if raw.op is RawOp.REMOVE and path in (self._unsorted_dir, self._tagged_dir):
            raise WatchError(f"watched root removed: {path}")

        tag = classify_tag_directory(path, self._tagged_dir)
        if tag is None:
            return

        if raw.op is RawOp.CREATE:
            if self._subscribe(path, required=False):
                self._scan_tag_directory(path)

        elif raw.op is RawOp.REMOVE:
            self._unsubscribe(path)
            now = time.monotonic()
            for service_id in self._tracker.ids_with_tag(tag):
                self._tracker.feed(PathHint(Area.TAGGED, service_id, tag, RawOp.REMOVE), now)

    def _scan_tag_directory(self, path: str) -> None:
        """Feed entries that appeared before the directory was subscribed."""
        try:
            entries = list(os.scandir(path))
        except OSError as e:
            logger.warning(f"Failed to scan {path}: {e}")
            return

        for entry in entries:
            notification = RawNotification(RawOp.CREATE, entry.path)
            hint = classify(notification, self._unsorted_dir, self._tagged_dir)
            if hint is not None:
                self._tracker.feed(hint, time.monotonic())

    def _subscribe(self, path: str, required: bool) -> bool:
        if path in self._watches:
            return True

        try:
            watch = self._observer.schedule(self._handler, path, recursive=False)
        except OSError as e:
            if required:
                raise WatchError(f"Failed to watch {path}: {e}") from e
            logger.warning(f"Failed to watch {path}: {e}")
            return False

        with self._watches_lock:
            self._watches[path] = watch
        logger.info(f"Started watching: {path}")
        return True

    def _unsubscribe(self, path: str) -> None:
        with self._watches_lock:
            watch = self._watches.pop(path, None)
        if watch is None:
            return

        try:
            self._observer.unschedule(watch)
        except KeyError:
            logger.debug(f"Watch already gone: {path}")

        logger.info(f"Stopped watching: {path}")

    def _shutdown(self) -> None:
        observer = self._observer
        if observer is None:
            return

        observer.stop()
        if observer.ident is not None:
            observer.join()

        with self._watches_lock:
            self._watches.clear()
        self._observer = None
        self._handler = None
        self._tracker = None
        self.ready.clear()
        logger.info("Registry watcher stopped")


def main():
    """Main entry point."""
    settings = get_settings()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.info("Service Registry - File System Watcher")

    stop = threading.Event()
    events: "queue.Queue[Event]" = queue.Queue(maxsize=100)

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop.set()

    def _drain():
        while not stop.is_set():
            try:
                event = events.get(timeout=settings.watch_poll_interval)
            except queue.Empty:
                continue
            logger.info(f"{type(event).__name__}: {event}")

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        registry = ServiceRegistry(settings.get_registry_dir())
        registry.ensure_initialized()

        consumer = threading.Thread(target=_drain, daemon=True)
        consumer.start()

        Watcher(registry).watch(stop, events)

    except RegistryError as e:
        logger.error(f"File system watcher failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
