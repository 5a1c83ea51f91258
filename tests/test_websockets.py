import pytest

from cellfib import app, socketio
from cellfib.fib import SocketIOHost
from tests.factories import make_partition

NS = app.config["CELLFIB_SOCKET_NAMESPACE"]


@pytest.fixture()
def world(live_registry, kinds):
    ore, stone = kinds.require("ore"), kinds.require("stone")
    world = make_partition("overworld-1", "overworld", {(0, 0, 0): ore})
    live_registry.register(world, ore, lambda s, v: s if "miner" in v.tags else s.with_kind(stone))
    live_registry.put(ore, (0, 0, 0), world)
    return world


@pytest.fixture()
def ws(test_app, world):
    test_client = socketio.test_client(test_app, namespace=NS, flask_test_client=test_app.test_client())
    yield test_client
    test_client.disconnect(namespace=NS)


def _extract(event_name, received):
    return [p["args"][0] for p in received if p["name"] == event_name]


def test_watch_and_unwatch(ws):
    ws.emit("watch_partition", {"partition": "overworld-1"}, namespace=NS)
    status = _extract("status", ws.get_received(NS))
    assert any(s["msg"] == "watching overworld-1" for s in status)

    ws.emit("unwatch_partition", {"partition": "overworld-1"}, namespace=NS)
    status = _extract("status", ws.get_received(NS))
    assert any("stopped watching" in s["msg"] for s in status)


def test_watch_validation_errors(ws):
    ws.emit("watch_partition", {}, namespace=NS)
    errors = _extract("error", ws.get_received(NS))
    assert errors and errors[0]["code"] == "required"

    ws.emit("watch_partition", {"partition": "nowhere"}, namespace=NS)
    errors = _extract("error", ws.get_received(NS))
    assert errors and errors[0]["code"] == "unknown"


def test_query_cell_uses_viewer_tags(ws):
    ws.emit("query_cell", {"partition": "overworld-1", "x": 0, "y": 0, "z": 0}, namespace=NS)
    cells = _extract("cell", ws.get_received(NS))
    assert cells[0]["state"]["kind"] == "stone"

    ws.emit("watch_partition", {"partition": "overworld-1", "tags": ["miner"]}, namespace=NS)
    ws.get_received(NS)
    ws.emit("query_cell", {"partition": "overworld-1", "x": 0, "y": 0, "z": 0}, namespace=NS)
    cells = _extract("cell", ws.get_received(NS))
    assert cells[0]["state"]["kind"] == "ore"


def test_query_cell_rejects_non_integer_coordinates(ws):
    ws.emit("query_cell", {"partition": "overworld-1", "x": "0", "y": 0, "z": 0}, namespace=NS)
    errors = _extract("error", ws.get_received(NS))
    assert errors and errors[0]["field"] == "x"


def test_socketio_host_emits_redraw_to_watchers(ws, world):
    ws.emit("watch_partition", {"partition": "overworld-1"}, namespace=NS)
    ws.get_received(NS)
    host = SocketIOHost(socketio, event="cell_update", namespace=NS)
    host.notify(world, (0, 0, 0))
    updates = _extract("cell_update", ws.get_received(NS))
    assert updates == [{"partition": "overworld-1", "pos": [0, 0, 0]}]


def test_socketio_host_swallows_emit_failures(world):
    class DeadSocket:
        def emit(self, *args, **kwargs):
            raise ConnectionError("transport closed")

    SocketIOHost(DeadSocket()).notify(world, (0, 0, 0))
