"""Per-partition tracking state.

A :class:`TrackingStore` knows which transformer ("fib") applies to each cell
kind in one partition and which positions of those kinds exist there, so they
can be redrawn when a fib's answer may have changed.

Contract summary:
- register(kind, fib)          -> replace the fib for ``kind`` in this partition
- track(kind, pos)             -> True if the position is now tracked
- untrack(pos)                 -> True if a tracked position was dropped
- resolve(state, viewer)       -> displayed state; never raises
- refresh_all/kind/kinds(...)  -> number of redraws requested
- to_document()/from_document  -> ``{kind_id: [encoded positions]}``

Only ``from_document`` raises; everything else treats missing entries as
no-ops. Tracked positions are guarded by a per-store lock because the
autosave task serializes stores while request and socket threads mutate them.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Set, Tuple

from cellfib.logging_utils import get_logger, plural

from .errors import MalformedDocumentError
from .kinds import CellKind
from .position import Position, decode_pos, encode_pos
from .preload import Fib

_log = get_logger("cellfib.store")


def identity_fib(state, viewer):
    return state


def _describe(viewer) -> str:
    try:
        return str(getattr(viewer, "id", viewer))
    except Exception:
        return type(viewer).__name__


class TrackingStore:
    def __init__(self, partition, host, kinds, known_kinds):
        self.partition = partition
        self.host = host
        self.kinds = kinds
        self._known = known_kinds
        self._fibs: Dict[CellKind, Fib] = {}
        self._tracked: Dict[CellKind, Set[int]] = {}
        self._lock = threading.RLock()
        self.dirty = False

    # ------------------------------------------------------------------ fibs

    def register(self, kind: CellKind, fib: Fib) -> None:
        self._fibs[kind] = fib
        self._known.add(kind)
        _log.info(event="fib_registered", kind=kind.name, partition=self.partition.id)

    def fib_for(self, kind: CellKind) -> Fib:
        return self._fibs.get(kind, identity_fib)

    def has_fib(self, kind: CellKind) -> bool:
        return kind in self._fibs

    # -------------------------------------------------------------- tracking

    def track(self, kind: CellKind, pos: Position) -> bool:
        # Nobody transforms this kind here, so there is nothing to redraw later
        if kind not in self._fibs:
            return False
        encoded = encode_pos(pos)
        with self._lock:
            self._tracked.setdefault(kind, set()).add(encoded)
            self.dirty = True
        return True

    def untrack(self, pos: Position) -> bool:
        kind = self.host.kind_at(self.partition, pos)
        if kind is None:
            return False
        encoded = encode_pos(pos)
        with self._lock:
            positions = self._tracked.get(kind)
            if not positions or encoded not in positions:
                return False
            positions.discard(encoded)
            self.dirty = True
        return True

    def _snapshot(self) -> Dict[CellKind, List[int]]:
        with self._lock:
            return {kind: sorted(values) for kind, values in self._tracked.items() if values}

    def is_tracked(self, kind: CellKind, pos: Position) -> bool:
        encoded = encode_pos(pos)
        with self._lock:
            return encoded in self._tracked.get(kind, ())

    def positions(self, kind: CellKind) -> List[Position]:
        return [decode_pos(v) for v in self._snapshot().get(kind, ())]

    def tracked_counts(self) -> Dict[CellKind, int]:
        return {kind: len(values) for kind, values in self._snapshot().items()}

    def tracked_kinds(self) -> List[CellKind]:
        return list(self._snapshot())

    def __len__(self):
        with self._lock:
            return sum(len(values) for values in self._tracked.values())

    # ------------------------------------------------------------ resolution

    def _resolve(self, state, viewer) -> Tuple[bool, object]:
        try:
            kind = state.kind
            fib = self._fibs.get(kind)
            if fib is None:
                return True, state
            result = fib(state, viewer)
        except Exception as exc:
            return False, exc
        if result is None:
            return False, TypeError(f"fib for {getattr(kind, 'name', kind)!r} returned None")
        return True, result

    def resolve(self, state, viewer):
        """Return what ``viewer`` should be told ``state`` is.

        Falls back to ``state`` itself if the kind has no fib or the fib
        fails, so callers on the per-viewer hot path need no error handling.
        """
        ok, value = self._resolve(state, viewer)
        if ok:
            return value
        _log.warn(
            event="resolve_failed",
            partition=self.partition.id,
            viewer=_describe(viewer),
            error=f"{type(value).__name__}:{value}",
        )
        return state

    # -------------------------------------------------------------- refresh

    def _notify_all(self, encoded_positions: Iterable[int]) -> int:
        count = 0
        for value in encoded_positions:
            self.host.notify(self.partition, decode_pos(value))
            count += 1
        return count

    def refresh_all(self) -> int:
        count = 0
        for positions in self._snapshot().values():
            count += self._notify_all(positions)
        _log.info(event="refresh", partition=self.partition.id, updated=plural(count, "cell"))
        return count

    def refresh_kind(self, kind: CellKind) -> int:
        positions = self._snapshot().get(kind)
        if not positions:
            return 0
        count = self._notify_all(positions)
        _log.info(event="refresh", partition=self.partition.id, kind=kind.name, updated=plural(count, "cell"))
        return count

    def refresh_kinds(self, kinds: Iterable[CellKind]) -> int:
        snapshot = self._snapshot()
        count = 0
        for kind in set(kinds):
            count += self._notify_all(snapshot.get(kind, ()))
        _log.info(event="refresh", partition=self.partition.id, updated=plural(count, "cell"))
        return count

    # ---------------------------------------------------------- persistence

    def to_document(self) -> Dict[str, List[int]]:
        return {self.kinds.id_of(kind): positions for kind, positions in self._snapshot().items()}

    def checkpoint(self) -> Dict[str, List[int]]:
        """Serialize and clear the dirty flag as one step, for the save path."""
        with self._lock:
            doc = self.to_document()
            self.dirty = False
        return doc

    def from_document(self, doc) -> None:
        """Replace tracked positions with the contents of ``doc``.

        Raises UnknownCellKindError for an identifier the kind registry cannot
        resolve and MalformedDocumentError for a badly shaped document. On
        failure the store is left with no tracked positions at all.
        """
        with self._lock:
            self._tracked.clear()
            if not isinstance(doc, dict):
                raise MalformedDocumentError(f"expected an object, got {type(doc).__name__}")
            loaded: Dict[CellKind, Set[int]] = {}
            for key, values in doc.items():
                if not isinstance(key, str):
                    raise MalformedDocumentError(f"kind id must be a string, got {key!r}")
                kind = self.kinds.require(key)
                if not isinstance(values, list):
                    raise MalformedDocumentError(f"positions for '{key}' must be a list", key=key)
                for value in values:
                    if isinstance(value, bool) or not isinstance(value, int):
                        raise MalformedDocumentError(f"position {value!r} for '{key}' is not an integer", key=key)
                loaded[kind] = set(values)
            self._tracked.update(loaded)
            self.dirty = False
        _log.info(
            event="tracking_loaded",
            partition=self.partition.id,
            kinds=len(loaded),
            cells=sum(len(v) for v in loaded.values()),
        )


__all__ = ["TrackingStore", "identity_fib"]
