from __future__ import annotations

import itertools
import os
from typing import List, Optional, Tuple

# Widgets and QPainter need a platform plugin; never open real windows under pytest.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402
from PyQt5.QtWidgets import QApplication  # noqa: E402

from flowbuilder.editor import FlowEditor  # noqa: E402
from flowbuilder.errors import StorageError  # noqa: E402
from flowbuilder.model import Graph  # noqa: E402
from flowbuilder.persistence import MemoryStorage, PersistenceAdapter, StorageSink  # noqa: E402
from flowbuilder.registry import default_registry  # noqa: E402


_app = QApplication.instance()
if _app is None:
    _app = QApplication([])


class FailingStorage(StorageSink):
    """A sink whose reads find nothing and whose writes always fail."""

    def get_item(self, key: str) -> Optional[str]:
        return None

    def set_item(self, key: str, value: str) -> None:
        raise StorageError("quota exceeded")

    def remove_item(self, key: str) -> None:
        raise StorageError("quota exceeded")


def make_clock(start: int = 1_700_000_000):
    ticks = itertools.count(start)
    return lambda: float(next(ticks))


@pytest.fixture
def messages() -> List[str]:
    return []


@pytest.fixture
def notifications() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def persistence(storage: MemoryStorage, messages: List[str]) -> PersistenceAdapter:
    return PersistenceAdapter(storage, log_func=messages.append, clock=make_clock())


@pytest.fixture
def graph(messages: List[str]) -> Graph:
    return Graph(default_registry(), log_func=messages.append)


@pytest.fixture
def editor(persistence: PersistenceAdapter, messages: List[str], notifications: List[Tuple[str, str]]) -> FlowEditor:
    return FlowEditor(
        persistence=persistence,
        log_func=messages.append,
        notify_func=lambda title, message: notifications.append((title, message)),
    )
