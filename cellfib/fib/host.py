"""Boundary to the host simulation.

The tracking core never talks to the world directly. It asks a :class:`Host`
to redraw positions, to report which kind currently occupies a position, and
to find the partition a viewer lives in.
"""

from __future__ import annotations

from typing import Optional

from cellfib.logging_utils import get_logger

from .cells import Partition
from .kinds import CellKind
from .position import Position

_log = get_logger("cellfib.host")


class Host:
    """Default host wired to :class:`~cellfib.fib.cells.Partition` objects.

    ``notify`` is a no-op here; subclasses push redraws to clients.
    """

    def notify(self, partition: Partition, pos: Position) -> None:
        pass

    def kind_at(self, partition: Partition, pos: Position) -> Optional[CellKind]:
        return partition.kind_at(pos)

    def owner_partition_of(self, viewer) -> Optional[Partition]:
        return getattr(viewer, "partition", None)


class SocketIOHost(Host):
    """Host that announces redraws as Socket.IO events.

    Each partition has a room named ``partition:<id>``; clients watching the
    partition receive ``{"partition": id, "pos": [x, y, z]}`` and re-query the
    cell to obtain their own displayed state.
    """

    def __init__(self, socketio, event: str = "cell_update", namespace: str = "/fib"):
        self.socketio = socketio
        self.event = event
        self.namespace = namespace

    @staticmethod
    def room_for(partition_id: str) -> str:
        return f"partition:{partition_id}"

    def notify(self, partition: Partition, pos: Position) -> None:
        payload = {"partition": partition.id, "pos": list(pos)}
        try:
            self.socketio.emit(self.event, payload, to=self.room_for(partition.id), namespace=self.namespace)
        except Exception as exc:
            # Redraws are fire-and-forget; a dead transport must not break tracking
            _log.warn(event="redraw_emit_failed", partition=partition.id, pos=list(pos), error=exc)


__all__ = ["Host", "SocketIOHost"]
