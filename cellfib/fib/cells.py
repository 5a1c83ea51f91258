"""Lightweight host-side value types: cell states, partitions and viewers."""

from typing import Dict, Hashable, Optional, Tuple

from .kinds import CellKind
from .position import Position


class CellState:
    """Authoritative (or displayed) contents of one grid cell."""

    __slots__ = ("kind", "properties")

    def __init__(self, kind: CellKind, properties: Optional[Dict[str, object]] = None):
        self.kind = kind
        self.properties = properties or {}

    def with_kind(self, kind: CellKind) -> "CellState":
        return CellState(kind, dict(self.properties))

    def to_dict(self):
        return {"kind": self.kind.name, "properties": self.properties}

    def __eq__(self, other):
        if not isinstance(other, CellState):
            return NotImplemented
        return self.kind is other.kind and self.properties == other.properties

    def __hash__(self):
        return hash((id(self.kind), tuple(sorted(self.properties.items()))))

    def __repr__(self):
        return f"<CellState {self.kind.name} {self.properties}>"


class Partition:
    """An independently persisted world region (one level, dimension, map).

    ``partition_class`` groups partitions that share preloaded registrations,
    e.g. every instance of the ``"nether"`` dimension.
    """

    def __init__(self, partition_id: str, partition_class: Hashable):
        self.id = partition_id
        self.partition_class = partition_class
        self.cells: Dict[Position, CellState] = {}

    def set_cell(self, pos: Position, state: Optional[CellState]) -> None:
        key = _key(pos)
        if state is None:
            self.cells.pop(key, None)
        else:
            self.cells[key] = state

    def cell_at(self, pos: Position) -> Optional[CellState]:
        return self.cells.get(_key(pos))

    def kind_at(self, pos: Position) -> Optional[CellKind]:
        state = self.cells.get(_key(pos))
        return state.kind if state is not None else None

    def __repr__(self):
        return f"<Partition {self.id} class={self.partition_class}>"


class Viewer:
    """Anything a displayed state is computed for (usually a connected player)."""

    __slots__ = ("id", "partition", "tags")

    def __init__(self, viewer_id: str, partition: Optional[Partition] = None, tags=None):
        self.id = viewer_id
        self.partition = partition
        self.tags = set(tags or ())

    def __repr__(self):
        return f"<Viewer {self.id}>"


def _key(pos: Position) -> Tuple[int, int, int]:
    x, y, z = pos
    return int(x), int(y), int(z)


__all__ = ["CellState", "Partition", "Viewer"]
