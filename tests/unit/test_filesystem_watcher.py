"""Tests for Watcher internals that do not need a running observer."""

import threading

import pytest

from domains.service_registry.store import ServiceRegistry
from domains.service_registry.watchers.filesystem import Watcher


@pytest.fixture
def registry(tmp_path):
    reg = ServiceRegistry(tmp_path / "registry")
    reg.init()
    return reg


def test_probe_treats_unreadable_paths_as_missing(registry):
    registry.unsorted_dir.rmdir()
    registry.unsorted_dir.write_text("not a directory")
    watcher = Watcher(registry, settle_seconds=0.05, poll_interval=0.05)

    assert watcher._probe("oniontree") is None


def test_probe_reports_size(registry):
    registry.service_path("oniontree").write_text("name: OnionTree\n")
    watcher = Watcher(registry, settle_seconds=0.05, poll_interval=0.05)

    assert watcher._probe("oniontree") == len("name: OnionTree\n")


def test_scan_tolerates_tag_path_that_is_not_a_directory(registry):
    not_a_dir = registry.tagged_dir / "news"
    not_a_dir.write_text("")
    watcher = Watcher(registry, settle_seconds=0.05, poll_interval=0.05)

    watcher._scan_tag_directory(str(not_a_dir))


def test_watched_paths_is_readable_from_other_threads(registry):
    watcher = Watcher(registry, settle_seconds=0.05, poll_interval=0.05)
    stop = threading.Event()
    errors = []

    def _churn():
        for i in range(2000):
            with watcher._watches_lock:
                watcher._watches[f"/tmp/tag-{i}"] = None
                watcher._watches.pop(f"/tmp/tag-{i - 1}", None)
        stop.set()

    def _read():
        while not stop.is_set():
            try:
                watcher.watched_paths
            except RuntimeError as e:
                errors.append(e)

    reader = threading.Thread(target=_read)
    reader.start()
    _churn()
    reader.join()

    assert errors == []
