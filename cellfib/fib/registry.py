"""Process-wide entry point for cell fibs.

One :class:`PartitionRegistry` is created at startup (see ``cellfib.fibs``)
and passed to whatever needs it. It owns every partition's
:class:`~cellfib.fib.store.TrackingStore` plus the state that has to exist
before any partition does: the pre-existence queue, the per-class preload
registrations and the set of kinds anyone has ever registered a fib for.

Lifecycle of a store, performed as one unit under the registry lock:
  1. load the persisted document for the partition (if storage is set)
  2. drain queued positions into it, requesting a redraw for each
  3. apply preloaded registrations for the partition's class
Only then does the store become visible to other callers.
"""

from __future__ import annotations

import threading
from typing import Dict, Hashable, Iterable, List, Optional

from cellfib.logging_utils import get_logger, plural

from .cells import Partition
from .errors import FibError, PartitionLoadError
from .host import Host
from .kinds import CellKind, KindRegistry
from .pending import PreExistenceQueue
from .position import Position
from .preload import Fib, KnownKinds, PreloadRegistry
from .store import TrackingStore

_log = get_logger("cellfib.registry")


class PartitionRegistry:
    def __init__(self, host: Optional[Host] = None, kinds: Optional[KindRegistry] = None, storage=None):
        self.host = host or Host()
        self.kinds = kinds or KindRegistry()
        self.storage = storage
        self.known_kinds = KnownKinds()
        self.pending = PreExistenceQueue(self.known_kinds)
        self.preloads = PreloadRegistry(self.known_kinds)
        self._stores: Dict[Partition, TrackingStore] = {}
        self._lock = threading.RLock()

    # ---------------------------------------------------------------- stores

    def store(self, partition: Partition) -> TrackingStore:
        """Return the partition's store, building it on first use.

        Positions queued with :meth:`put` before any partition was available
        are drained into whichever store is requested next.
        """
        with self._lock:
            store = self._stores.get(partition)
            if store is None:
                store = self._build(partition)
                self._stores[partition] = store
            else:
                self._drain_into(store)
        return store

    def _build(self, partition: Partition) -> TrackingStore:
        store = TrackingStore(partition, self.host, self.kinds, self.known_kinds)
        if self.storage is not None:
            doc = self.storage.load(partition)
            if doc is not None:
                try:
                    store.from_document(doc)
                except FibError as exc:
                    _log.error(event="tracking_load_failed", partition=partition.id, error=exc)
                    raise PartitionLoadError(partition.id, exc) from exc
        self._drain_into(store)
        self._apply_preloads(store)
        return store

    def _drain_into(self, store: TrackingStore) -> int:
        entries = self.pending.drain()
        for kind, pos in entries:
            store.track(kind, pos)
            self.host.notify(store.partition, pos)
        if entries:
            _log.info(
                event="pending_drained",
                partition=store.partition.id,
                registered=plural(len(entries), "pre-loaded cell"),
            )
        return len(entries)

    def _apply_preloads(self, store: TrackingStore) -> int:
        entries = self.preloads.entries_for(store.partition.partition_class)
        for kind, fib in entries:
            store.register(kind, fib)
        if entries:
            _log.info(
                event="preload_applied",
                partition=store.partition.id,
                registered=plural(len(entries), "pre-loaded fib"),
            )
        return len(entries)

    def peek(self, partition: Partition) -> Optional[TrackingStore]:
        """Return the store if it already exists, without building or draining."""
        return self._stores.get(partition)

    def partitions(self) -> List[Partition]:
        with self._lock:
            return list(self._stores)

    def find(self, partition_id: str) -> Optional[Partition]:
        for partition in self.partitions():
            if partition.id == partition_id:
                return partition
        return None

    def forget(self, partition: Partition, save: bool = True) -> bool:
        """Drop the store of an unloaded partition, saving it first if asked."""
        with self._lock:
            store = self._stores.get(partition)
            if store is None:
                return False
            if save and self.storage is not None:
                self._save_store(store)
            del self._stores[partition]
        _log.info(event="partition_forgotten", partition=partition.id)
        return True

    # ---------------------------------------------------------- registration

    def register(self, partition: Partition, kind: CellKind, fib: Fib) -> None:
        """Register a fib for ``kind`` in a partition that is already available."""
        self.store(partition).register(kind, fib)

    def preload(self, partition_class: Hashable, kind: CellKind, fib: Fib) -> None:
        """Register a fib for every partition of ``partition_class`` loaded from now on.

        Stores that already exist are not touched.
        """
        self.preloads.add(partition_class, kind, fib)
        _log.info(event="fib_preloaded", kind=kind.name, partition_class=partition_class)

    # -------------------------------------------------------------- tracking

    def put(self, kind: CellKind, pos: Position, partition: Optional[Partition] = None) -> bool:
        """Start tracking a cell.

        Without a partition the position is queued and claimed by the next
        partition that routes through the registry, whichever one that is.
        Queued positions of kinds nobody ever registered a fib for are dropped.
        """
        if partition is None:
            return self.pending.push(kind, pos)
        return self.store(partition).track(kind, pos)

    def put_state(self, state, pos: Position, partition: Optional[Partition] = None) -> bool:
        return self.put(state.kind, pos, partition)

    def remove(self, partition: Partition, pos: Position) -> bool:
        """Stop tracking the cell currently at ``pos``."""
        return self.store(partition).untrack(pos)

    # ------------------------------------------------------------ resolution

    def resolve(self, state, viewer):
        """Displayed state of ``state`` for ``viewer``; never raises.

        A viewer whose partition has no store yet sees the authoritative state.
        """
        try:
            partition = self.host.owner_partition_of(viewer)
            store = self._stores.get(partition) if partition is not None else None
            if store is None:
                return state
            return store.resolve(state, viewer)
        except Exception as exc:
            _log.warn(event="resolve_failed", error=f"{type(exc).__name__}:{exc}")
            return state

    # --------------------------------------------------------------- refresh

    def update(self, partition: Partition, *kinds) -> int:
        """Request redraws for tracked cells of ``partition``.

        ``update(p)`` refreshes every tracked cell, ``update(p, kind)`` one
        kind, and ``update(p, k1, k2)`` or ``update(p, [k1, k2])`` several.
        Kind ids (strings) are accepted wherever a kind is; unknown ids match
        nothing.
        """
        store = self.store(partition)
        if not kinds:
            return store.refresh_all()
        if len(kinds) == 1 and not isinstance(kinds[0], (CellKind, str)):
            kinds = tuple(kinds[0])
        targets = [self.kinds.lookup(k) if isinstance(k, str) else k for k in kinds]
        targets = [k for k in targets if k is not None]
        if len(kinds) == 1:
            return store.refresh_kind(targets[0]) if targets else 0
        return store.refresh_kinds(targets)

    # ----------------------------------------------------------- persistence

    def _save_store(self, store: TrackingStore) -> None:
        doc = store.checkpoint()
        try:
            self.storage.save(store.partition, doc)
        except Exception:
            store.dirty = True
            raise

    def save(self, partition: Partition) -> bool:
        if self.storage is None:
            return False
        store = self._stores.get(partition)
        if store is None:
            return False
        self._save_store(store)
        _log.info(event="tracking_saved", partition=partition.id, cells=len(store))
        return True

    def save_all(self, force: bool = False) -> int:
        if self.storage is None:
            return 0
        saved = 0
        with self._lock:
            stores = list(self._stores.values())
        for store in stores:
            if force or store.dirty:
                self._save_store(store)
                saved += 1
        if saved:
            _log.info(event="tracking_saved", partitions=saved)
        return saved

    def kinds_from_ids(self, kind_ids: Iterable[str]) -> List[CellKind]:
        """Map kind ids from an outer surface to handles, skipping unknown ones."""
        kinds = []
        for kind_id in kind_ids:
            kind = self.kinds.lookup(kind_id)
            if kind is not None:
                kinds.append(kind)
        return kinds


__all__ = ["PartitionRegistry"]
