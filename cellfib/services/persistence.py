"""SQL-backed document storage for partition tracking state.

Implements the ``load(partition)`` / ``save(partition, document)`` pair the
registry expects. Calls made outside a request or socket handler push the
application context themselves, so library code can route through
``cellfib.fibs`` from game threads.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Optional

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from cellfib.logging_utils import get_logger

_log = get_logger("cellfib.persistence")


def _app_scope():
    if has_app_context():
        return nullcontext()
    from cellfib import app

    return app.app_context()


class SQLStorage:
    def __init__(self, save_key: str = "fiblib"):
        self.save_key = save_key

    @staticmethod
    def _row(partition_id: str):
        from cellfib.models import PartitionState

        return PartitionState.query.filter_by(partition_id=partition_id).first()

    def load(self, partition) -> Optional[dict]:
        """Return the saved tracking document, or None for a partition never saved."""
        with _app_scope():
            row = self._row(partition.id)
            if row is None or not row.data:
                return None
            return row.data.get(self.save_key)

    def save(self, partition, document: dict) -> None:
        from cellfib import db
        from cellfib.models import PartitionState

        with _app_scope():
            row = self._row(partition.id)
            if row is None:
                row = PartitionState(partition_id=partition.id, partition_class=str(partition.partition_class), data={})
                db.session.add(row)
            # JSON columns only notice reassignment, not in-place mutation
            data = dict(row.data or {})
            data[self.save_key] = document
            row.data = data
            try:
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                _log.error(event="tracking_save_failed", partition=partition.id, error=exc)
                raise
        _log.debug(event="tracking_document_written", partition=partition.id, kinds=len(document))

    def delete(self, partition_id: str) -> bool:
        from cellfib import db

        with _app_scope():
            row = self._row(partition_id)
            if row is None:
                return False
            db.session.delete(row)
            db.session.commit()
        return True


__all__ = ["SQLStorage"]
