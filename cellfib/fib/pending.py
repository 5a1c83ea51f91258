"""Positions reported before their partition exists.

World generation can place cells on a bootstrap thread before the owning
partition's tracking store has been built. Those reports are parked here and
handed to the next store that routes through the registry.
"""

from __future__ import annotations

import threading
from typing import List, Tuple

from .kinds import CellKind
from .position import Position, decode_pos, encode_pos

PendingEntry = Tuple[CellKind, Position]


class PreExistenceQueue:
    """Lock-guarded LIFO stack of ``(kind, position)`` pairs.

    Entries are only accepted for kinds present in ``known_kinds`` (every kind
    that has ever had a transformer registered, in any partition). Positions
    are held in encoded form, so an out-of-range position is rejected by
    ``push`` instead of surfacing later while a partition is being built.
    """

    def __init__(self, known_kinds):
        self._known = known_kinds
        self._stack: List[Tuple[CellKind, int]] = []
        self._lock = threading.Lock()

    def push(self, kind: CellKind, pos: Position) -> bool:
        """Queue a position; returns False when the kind is of no interest.

        Raises ValueError for a position outside the encodable range.
        """
        if kind not in self._known:
            return False
        encoded = encode_pos(pos)
        with self._lock:
            self._stack.append((kind, encoded))
        return True

    def drain(self) -> List[PendingEntry]:
        """Empty the stack atomically, returning entries newest first."""
        with self._lock:
            entries, self._stack = self._stack, []
        return [(kind, decode_pos(encoded)) for kind, encoded in reversed(entries)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._stack)


__all__ = ["PendingEntry", "PreExistenceQueue"]
