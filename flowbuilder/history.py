# -*- coding: utf-8 -*-
"""
Bounded undo/redo history of whole-graph snapshots.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import flowbuilder.conf as conf

@dataclass(frozen=True)
class HistorySnapshot:
    """
    An immutable copy of a graph's blocks and connections.

    The graph is stored in its serialized JSON form, so a snapshot can never
    be modified through a reference held by the live graph.
    """
    payload: str

    @classmethod
    def capture(cls, graph: Any) -> 'HistorySnapshot':
        """Takes a snapshot of any object exposing `to_dict()`, normally a `Graph`."""
        return cls(json.dumps(graph.to_dict()))

    def to_dict(self) -> Dict[str, Any]:
        """Returns a fresh deep copy of the captured data."""
        return json.loads(self.payload)

class HistoryManager:
    """
    A list of snapshots with a cursor.

    `index` points at the snapshot matching the live graph. Pushing while the
    cursor is not at the end discards the redo branch. When the list grows
    past `max_length`, the oldest snapshot is dropped and the cursor moves
    with it.
    """
    def __init__(self, max_length: int = conf.HISTORY_MAX_LENGTH) -> None:
        if max_length < 1:
            raise ValueError("max_length must be at least 1")
        self.max_length = max_length
        self._entries: List[HistorySnapshot] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    @property
    def current(self) -> Optional[HistorySnapshot]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def push(self, snapshot: HistorySnapshot) -> None:
        if self._index < len(self._entries) - 1:
            del self._entries[self._index + 1:]
        self._entries.append(snapshot)
        self._index += 1
        if len(self._entries) > self.max_length:
            del self._entries[0]
            self._index -= 1

    def undo(self) -> Optional[HistorySnapshot]:
        """Moves the cursor back one step and returns that snapshot, or None at the start."""
        if not self.can_undo:
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistorySnapshot]:
        """Moves the cursor forward one step and returns that snapshot, or None at the end."""
        if not self.can_redo:
            return None
        self._index += 1
        return self._entries[self._index]

    def reset(self, snapshot: HistorySnapshot) -> None:
        """Replaces the whole history with a single snapshot."""
        self._entries = [snapshot]
        self._index = 0

    def clear(self) -> None:
        self._entries = []
        self._index = -1
