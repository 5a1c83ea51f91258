import pytest

from tests.factories import make_partition


@pytest.fixture()
def seeded(live_registry, kinds):
    ore, stone = kinds.require("ore"), kinds.require("stone")
    world = make_partition("overworld-1", "overworld", {(0, 0, 0): ore, (1, 0, 0): stone})
    live_registry.register(world, ore, lambda s, v: s if v.id == "admin" else s.with_kind(stone))
    live_registry.put(ore, (0, 0, 0), world)
    return world


def test_list_partitions(client, seeded):
    r = client.get("/api/fib/partitions")
    assert r.status_code == 200
    data = r.get_json()
    assert data["partitions"] == [{"id": "overworld-1", "class": "overworld", "tracked": 1, "dirty": True}]


def test_partition_detail_and_unknown(client, seeded):
    r = client.get("/api/fib/partitions/overworld-1")
    assert r.status_code == 200
    assert r.get_json()["kinds"] == {"ore": 1}
    assert client.get("/api/fib/partitions/nowhere").status_code == 404


def test_refresh_all_and_by_kind(client, seeded, host):
    r = client.post("/api/fib/partitions/overworld-1/refresh")
    assert r.status_code == 200
    assert r.get_json()["updated"] == 1
    r2 = client.post("/api/fib/partitions/overworld-1/refresh", json={"kinds": ["stone"]})
    assert r2.get_json()["updated"] == 0
    assert host.notified == [("overworld-1", (0, 0, 0))]


@pytest.mark.parametrize("payload", [{"kinds": "ore"}, {"kinds": [1]}, {"kinds": ["unobtainium"]}])
def test_refresh_rejects_bad_kinds(client, seeded, payload):
    r = client.post("/api/fib/partitions/overworld-1/refresh", json=payload)
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_save_endpoint_persists(client, seeded):
    from cellfib.models import PartitionState

    r = client.post("/api/fib/partitions/overworld-1/save")
    assert r.status_code == 200
    assert r.get_json() == {"saved": True, "tracked": 1}
    assert PartitionState.query.filter_by(partition_id="overworld-1").count() == 1


def test_cell_is_fibbed_per_viewer(client, seeded):
    r = client.get("/api/fib/partitions/overworld-1/cell?x=0&y=0&z=0&viewer=alice")
    assert r.status_code == 200
    data = r.get_json()
    assert data["actual"]["kind"] == "ore"
    assert data["displayed"]["kind"] == "stone"
    assert data["tracked"] is True

    admin = client.get("/api/fib/partitions/overworld-1/cell?x=0&y=0&z=0&viewer=admin").get_json()
    assert admin["displayed"]["kind"] == "ore"


def test_cell_errors(client, seeded):
    assert client.get("/api/fib/partitions/overworld-1/cell?x=0&y=0").status_code == 400
    assert client.get("/api/fib/partitions/overworld-1/cell?x=a&y=0&z=0").status_code == 400
    assert client.get("/api/fib/partitions/overworld-1/cell?x=9&y=9&z=9").status_code == 404
