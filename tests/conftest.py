import json
import logging
from pathlib import Path

import pytest

from fsdocstore.storage.docstore.fs_collection import FSCollection
from fsdocstore.storage.docstore.registry import CollectionRegistry


def equipment_for(order: int) -> list[str]:
    if order < 25:
        return ["ring"]
    if order < 35:
        return ["sword"]
    if order < 50:
        return ["shield"]
    if order < 75:
        return ["ring", "sword"]
    if order < 80:
        return ["sword", "shield"]
    if order < 90:
        return ["ring", "shield"]
    if order < 99:
        return ["ring", "sword", "shield"]
    return []


def hobbit(order: int) -> dict:
    age = order + 1
    return {
        "name": f"Frodo-{age}",
        "surname": f"Baggins-{age}",
        "age": age,
        "status": ["active", "inactive"][order % 2],
        "equipment": equipment_for(order),
    }


@pytest.fixture
def registry(tmp_path: Path) -> CollectionRegistry:
    reg = CollectionRegistry(tmp_path)
    yield reg
    reg.reset()


@pytest.fixture
def collection(tmp_path: Path) -> FSCollection:
    directory = tmp_path / "items"
    directory.mkdir()
    return FSCollection("items", directory)


@pytest.fixture
def hobbits(tmp_path: Path) -> FSCollection:
    """100 documents written straight to disk; age runs 1..100."""
    directory = tmp_path / "hobbits"
    directory.mkdir()
    for i in range(100):
        (directory / f"test-file-{i}.json").write_text(json.dumps(hobbit(i)), encoding="utf-8")
    return FSCollection("hobbits", directory)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """setup_logging() rewires the package logger; put it back for caplog."""
    log = logging.getLogger("fsdocstore")
    saved = (list(log.handlers), log.level, log.propagate)
    yield
    for h in list(log.handlers):
        if h not in saved[0]:
            log.removeHandler(h)
            h.close()
    for h in saved[0]:
        if h not in log.handlers:
            log.addHandler(h)
    log.setLevel(saved[1])
    log.propagate = saved[2]
