import os

import pytest

from domains.service_registry.watchers.classifier import (
    Area,
    PathHint,
    RawNotification,
    RawOp,
    classify,
    classify_tag_directory,
)

ROOT = os.path.join(os.sep, "srv", "registry")
UNSORTED = os.path.join(ROOT, "unsorted")
TAGGED = os.path.join(ROOT, "tagged")


def _classify(path, op=RawOp.CREATE, is_directory=False):
    return classify(RawNotification(op, path, is_directory), UNSORTED, TAGGED)


def test_unsorted_service_file():
    hint = _classify(os.path.join(UNSORTED, "svc1.yaml"), RawOp.WRITE)

    assert hint == PathHint(Area.UNSORTED, "svc1", None, RawOp.WRITE)


def test_tagged_service_file():
    hint = _classify(os.path.join(TAGGED, "news", "svc1.yaml"), RawOp.REMOVE)

    assert hint == PathHint(Area.TAGGED, "svc1", "news", RawOp.REMOVE)


@pytest.mark.parametrize(
    "path",
    [
        os.path.join(UNSORTED, ".svc1.yaml.tmp"),
        os.path.join(UNSORTED, "svc1.yaml.swp"),
        os.path.join(UNSORTED, "svc1.yaml~"),
        os.path.join(UNSORTED, ".yaml"),
        os.path.join(UNSORTED, "svc1.json"),
        os.path.join(UNSORTED, "nested", "svc1.yaml"),
        os.path.join(TAGGED, "svc1.yaml"),
        os.path.join(TAGGED, "news", "deeper", "svc1.yaml"),
        os.path.join(TAGGED, ".hidden", "svc1.yaml"),
        os.path.join(ROOT, ".oniontree"),
        os.path.join(ROOT, "svc1.yaml"),
        os.path.join(os.sep, "elsewhere", "svc1.yaml"),
    ],
)
def test_unrecognised_paths_are_dropped(path):
    assert _classify(path) is None


def test_directories_are_not_classified():
    assert _classify(os.path.join(TAGGED, "news"), is_directory=True) is None
    assert _classify(os.path.join(UNSORTED, "svc1.yaml"), is_directory=True) is None


def test_unnormalised_paths_are_accepted():
    hint = _classify(UNSORTED + os.sep + "." + os.sep + "svc1.yaml")

    assert hint is not None
    assert hint.record_id == "svc1"


def test_classify_tag_directory():
    assert classify_tag_directory(os.path.join(TAGGED, "news"), TAGGED) == "news"
    assert classify_tag_directory(TAGGED, TAGGED) is None
    assert classify_tag_directory(os.path.join(TAGGED, "news", "sub"), TAGGED) is None
    assert classify_tag_directory(os.path.join(TAGGED, ".cache"), TAGGED) is None
    assert classify_tag_directory(os.path.join(UNSORTED, "news"), TAGGED) is None
