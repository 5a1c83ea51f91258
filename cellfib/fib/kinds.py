"""Cell kind handles and the registry that names them.

A :class:`CellKind` is compared and hashed by identity. Two kinds that happen
to share a display name are still different keys; only the registry's string
identifier survives a save/load cycle.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterator, Optional

from .errors import DuplicateKindError, UnknownCellKindError


class CellKind:
    """Opaque handle for a category of grid cell (e.g. ``stone``, ``ore``)."""

    __slots__ = ("token", "name")

    def __init__(self, token: int, name: str):
        self.token = token
        self.name = name

    def __repr__(self):
        return f"<CellKind {self.name} #{self.token}>"


class KindRegistry:
    """Issues :class:`CellKind` handles and maps them to stable string ids.

    Used by tracking stores only at the persistence boundary:
    ``id_of`` when saving and ``lookup``/``require`` when loading.
    """

    def __init__(self):
        self._by_id: Dict[str, CellKind] = {}
        self._ids: Dict[CellKind, str] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, kind_id: str) -> CellKind:
        kind_id = kind_id.strip()
        if not kind_id:
            raise ValueError("cell kind id must not be empty")
        with self._lock:
            if kind_id in self._by_id:
                raise DuplicateKindError(kind_id)
            kind = CellKind(next(self._tokens), kind_id)
            self._by_id[kind_id] = kind
            self._ids[kind] = kind_id
        return kind

    def lookup(self, kind_id: str) -> Optional[CellKind]:
        return self._by_id.get(kind_id)

    def require(self, kind_id: str) -> CellKind:
        kind = self._by_id.get(kind_id)
        if kind is None:
            raise UnknownCellKindError(kind_id)
        return kind

    def id_of(self, kind: CellKind) -> str:
        try:
            return self._ids[kind]
        except KeyError:
            raise UnknownCellKindError(getattr(kind, "name", repr(kind))) from None

    def __contains__(self, kind_id: str) -> bool:
        return kind_id in self._by_id

    def __iter__(self) -> Iterator[CellKind]:
        return iter(list(self._by_id.values()))

    def __len__(self) -> int:
        return len(self._by_id)


__all__ = ["CellKind", "KindRegistry"]
