import os
import sys
import tempfile

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp(prefix='cellfib-')}/test.db")
os.environ.setdefault("CELLFIB_SUPPRESS_ROUTE_MAP", "1")
os.environ.setdefault("CELLFIB_AUTOSAVE_SECONDS", "0")

from cellfib import create_app, db  # noqa: E402
from cellfib.fib import PartitionRegistry  # noqa: E402
from cellfib.services.persistence import SQLStorage  # noqa: E402
from tests.factories import RecordingHost, make_kinds  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True})
    return app


@pytest.fixture()
def app_ctx(test_app):
    ctx = test_app.app_context()
    ctx.push()
    db.drop_all()
    db.create_all()
    try:
        yield test_app
    finally:
        db.session.remove()
        ctx.pop()


@pytest.fixture()
def host():
    return RecordingHost()


@pytest.fixture()
def kinds():
    return make_kinds("stone", "ore", "glass", "air")


@pytest.fixture()
def registry(host, kinds):
    return PartitionRegistry(host=host, kinds=kinds)


@pytest.fixture()
def sql_registry(app_ctx, host, kinds):
    """Registry persisting through the real SQL storage inside an app context."""
    return PartitionRegistry(host=host, kinds=kinds, storage=SQLStorage("fiblib"))


@pytest.fixture()
def live_registry(monkeypatch, sql_registry):
    """Swap the process-wide registry seen by routes and socket handlers."""
    import cellfib.routes.fib_api as fib_api
    import cellfib.websockets.partitions as ws

    monkeypatch.setattr(fib_api, "fibs", sql_registry)
    monkeypatch.setattr(ws, "fibs", sql_registry)
    ws.watchers.clear()
    return sql_registry


@pytest.fixture()
def client(test_app, live_registry):
    return test_app.test_client()
