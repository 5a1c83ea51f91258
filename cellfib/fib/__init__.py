"""Viewer-dependent cell transformations ("fibs") and position tracking.

Public import surface for the core library.
"""

from .cells import CellState, Partition, Viewer
from .errors import (
    DuplicateKindError,
    FibError,
    MalformedDocumentError,
    PartitionLoadError,
    UnknownCellKindError,
)
from .host import Host, SocketIOHost
from .kinds import CellKind, KindRegistry
from .pending import PreExistenceQueue
from .position import decode_pos, encode_pos
from .preload import KnownKinds, PreloadRegistry
from .registry import PartitionRegistry
from .store import TrackingStore, identity_fib

__all__ = [
    "CellKind",
    "CellState",
    "DuplicateKindError",
    "FibError",
    "Host",
    "KindRegistry",
    "KnownKinds",
    "MalformedDocumentError",
    "Partition",
    "PartitionLoadError",
    "PartitionRegistry",
    "PreExistenceQueue",
    "PreloadRegistry",
    "SocketIOHost",
    "TrackingStore",
    "UnknownCellKindError",
    "Viewer",
    "decode_pos",
    "encode_pos",
    "identity_fib",
]
