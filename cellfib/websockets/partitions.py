"""Socket.IO handlers for clients observing partitions.

Events (namespace ``CELLFIB_SOCKET_NAMESPACE``, default ``/fib``):
    - watch_partition: { partition, tags? } join the partition's redraw room
    - unwatch_partition: { partition } leave it
    - query_cell: { partition, x, y, z } ask for the displayed state of a cell

Emits:
    - status: watch/unwatch acknowledgements
    - cell: { partition, pos, state } answer to query_cell, already fibbed
    - error: validation or lookup failures
    - cell_update (configurable): redraw notifications, see SocketIOHost
"""

from flask import request
from flask_socketio import emit, join_room, leave_room

from cellfib import app, fibs, socketio
from cellfib.fib import SocketIOHost, Viewer
from cellfib.logging_utils import get_logger

from .validation import QUERY_CELL, UNWATCH_PARTITION, WATCH_PARTITION, validate

_log = get_logger("cellfib.websockets")
NAMESPACE = app.config["CELLFIB_SOCKET_NAMESPACE"]

# sid -> Viewer for clients currently watching a partition
watchers = {}


def _error(event: str, result: dict):
    emit(
        "error",
        {"message": f"Invalid {event}: {result['error']}", "field": result["field"], "code": result["code"]},
    )


@socketio.on("watch_partition", namespace=NAMESPACE)
def handle_watch_partition(data):
    ok, result = validate(data or {}, WATCH_PARTITION)
    if not ok:
        _error("watch_partition", result)
        return
    partition = fibs.find(result["partition"])
    if partition is None:
        emit("error", {"message": f"unknown partition '{result['partition']}'", "field": "partition", "code": "unknown"})
        return
    join_room(SocketIOHost.room_for(partition.id))
    watchers[request.sid] = Viewer(request.sid, partition, tags=result.get("tags"))
    emit("status", {"msg": f"watching {partition.id}", "partition": partition.id})
    _log.info(event="watch_partition", partition=partition.id, sid=request.sid)


@socketio.on("unwatch_partition", namespace=NAMESPACE)
def handle_unwatch_partition(data):
    ok, result = validate(data or {}, UNWATCH_PARTITION)
    if not ok:
        _error("unwatch_partition", result)
        return
    leave_room(SocketIOHost.room_for(result["partition"]))
    watchers.pop(request.sid, None)
    emit("status", {"msg": f"stopped watching {result['partition']}", "partition": result["partition"]})
    _log.info(event="unwatch_partition", partition=result["partition"], sid=request.sid)


@socketio.on("query_cell", namespace=NAMESPACE)
def handle_query_cell(data):
    ok, result = validate(data or {}, QUERY_CELL)
    if not ok:
        _error("query_cell", result)
        return
    partition = fibs.find(result["partition"])
    if partition is None:
        emit("error", {"message": f"unknown partition '{result['partition']}'", "field": "partition", "code": "unknown"})
        return
    pos = (result["x"], result["y"], result["z"])
    state = partition.cell_at(pos)
    viewer = watchers.get(request.sid)
    if viewer is None or viewer.partition is not partition:
        viewer = Viewer(request.sid, partition)
    displayed = fibs.resolve(state, viewer) if state is not None else None
    emit(
        "cell",
        {
            "partition": partition.id,
            "pos": list(pos),
            "state": displayed.to_dict() if displayed is not None else None,
        },
    )


@socketio.on("disconnect", namespace=NAMESPACE)
def handle_disconnect(*args):
    watchers.pop(request.sid, None)
