"""Registrations made before any partition of a class has loaded."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Hashable, List, Tuple

from .kinds import CellKind

Fib = Callable[[object, object], object]
PreloadEntry = Tuple[CellKind, Fib]


class KnownKinds:
    """Append-only set of every kind that ever had a transformer registered."""

    def __init__(self):
        self._kinds = set()
        self._lock = threading.Lock()

    def add(self, kind: CellKind) -> None:
        with self._lock:
            self._kinds.add(kind)

    def __contains__(self, kind) -> bool:
        return kind in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)


class PreloadRegistry:
    """Ordered per-class list of ``(kind, fib)`` registrations.

    Entries are never consumed: every partition of the class that loads later
    gets each registration applied again, in the order they were added.
    """

    def __init__(self, known_kinds: KnownKinds):
        self._known = known_kinds
        self._entries: Dict[Hashable, List[PreloadEntry]] = {}
        self._lock = threading.Lock()

    def add(self, partition_class: Hashable, kind: CellKind, fib: Fib) -> None:
        with self._lock:
            self._entries.setdefault(partition_class, []).append((kind, fib))
        self._known.add(kind)

    def entries_for(self, partition_class: Hashable) -> List[PreloadEntry]:
        with self._lock:
            return list(self._entries.get(partition_class, ()))

    def classes(self) -> List[Hashable]:
        with self._lock:
            return list(self._entries)


__all__ = ["Fib", "PreloadEntry", "KnownKinds", "PreloadRegistry"]
