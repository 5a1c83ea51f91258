"""
project: cellfib
module: fib_api.py
License: MIT

Inspection and maintenance endpoints for live partitions.

Routes:
    GET  /api/fib/partitions                  live partitions with tracked counts
    GET  /api/fib/partitions/<id>             tracked cells per kind
    POST /api/fib/partitions/<id>/refresh     request redraws, optional {"kinds": [...]}
    POST /api/fib/partitions/<id>/save        write the tracking document now
    GET  /api/fib/partitions/<id>/cell        displayed state of x,y,z for ?viewer=
"""

from flask import Blueprint, jsonify, request

from cellfib import fibs
from cellfib.fib import Viewer

bp_fib = Blueprint("fib", __name__, url_prefix="/api/fib")


def _partition_or_404(partition_id: str):
    partition = fibs.find(partition_id)
    if partition is None:
        return None, (jsonify({"error": f"unknown partition '{partition_id}'"}), 404)
    return partition, None


def _summary(partition):
    store = fibs.peek(partition)
    return {
        "id": partition.id,
        "class": str(partition.partition_class),
        "tracked": len(store) if store is not None else 0,
        "dirty": bool(store.dirty) if store is not None else False,
    }


@bp_fib.route("/partitions")
def list_partitions():
    return jsonify({"partitions": [_summary(p) for p in fibs.partitions()]})


@bp_fib.route("/partitions/<partition_id>")
def partition_detail(partition_id):
    partition, err = _partition_or_404(partition_id)
    if err:
        return err
    store = fibs.peek(partition)
    data = _summary(partition)
    data["kinds"] = {fibs.kinds.id_of(kind): count for kind, count in store.tracked_counts().items()}
    return jsonify(data)


@bp_fib.route("/partitions/<partition_id>/refresh", methods=["POST"])
def refresh_partition(partition_id):
    partition, err = _partition_or_404(partition_id)
    if err:
        return err
    payload = request.get_json(silent=True) or {}
    kind_ids = payload.get("kinds")
    if kind_ids is None:
        return jsonify({"updated": fibs.update(partition)})
    if not isinstance(kind_ids, list) or not all(isinstance(k, str) for k in kind_ids):
        return jsonify({"error": "kinds must be a list of strings"}), 400
    unknown = [k for k in kind_ids if k not in fibs.kinds]
    if unknown:
        return jsonify({"error": "unknown kinds", "kinds": unknown}), 400
    return jsonify({"updated": fibs.update(partition, fibs.kinds_from_ids(kind_ids))})


@bp_fib.route("/partitions/<partition_id>/save", methods=["POST"])
def save_partition(partition_id):
    partition, err = _partition_or_404(partition_id)
    if err:
        return err
    if not fibs.save(partition):
        return jsonify({"error": "no storage configured"}), 409
    return jsonify({"saved": True, "tracked": len(fibs.peek(partition))})


@bp_fib.route("/partitions/<partition_id>/cell")
def cell_for_viewer(partition_id):
    partition, err = _partition_or_404(partition_id)
    if err:
        return err
    try:
        pos = tuple(int(request.args[axis]) for axis in ("x", "y", "z"))
    except (KeyError, ValueError):
        return jsonify({"error": "x, y and z must be integers"}), 400
    state = partition.cell_at(pos)
    if state is None:
        return jsonify({"error": "empty cell", "pos": list(pos)}), 404
    viewer = Viewer(request.args.get("viewer", "anonymous"), partition)
    displayed = fibs.resolve(state, viewer)
    return jsonify(
        {
            "pos": list(pos),
            "viewer": viewer.id,
            "actual": state.to_dict(),
            "displayed": displayed.to_dict(),
            "tracked": fibs.peek(partition).is_tracked(state.kind, pos),
        }
    )
