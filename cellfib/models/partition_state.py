import datetime

from cellfib import db


class PartitionState(db.Model):
    """Saved per-partition state, one row per partition.

    ``data`` is a JSON object of namespaced documents; the tracking store is
    kept under the configured save key (``fiblib`` by default) so other
    subsystems can share the row.
    """

    __tablename__ = "partition_states"
    id = db.Column(db.Integer, primary_key=True)
    partition_id = db.Column(db.String(128), unique=True, nullable=False)
    partition_class = db.Column(db.String(128), nullable=False)
    data = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    def __repr__(self):
        return f"<PartitionState {self.partition_id} class={self.partition_class}>"
