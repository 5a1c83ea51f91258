"""
project: cellfib
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

Wires together the Flask app, SQLAlchemy (persisted tracking documents),
Flask-SocketIO (redraw notifications to watching clients) and the process-wide
:class:`~cellfib.fib.registry.PartitionRegistry`. Configuration is sourced from
environment variables with development defaults; a local ``instance/``
directory holds the SQLite database and log file.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from cellfib.fib import KindRegistry, PartitionRegistry, SocketIOHost

# Load .env if present so DATABASE_URL, CELLFIB_* etc. can be supplied
# without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # Read-only deployments supply DATABASE_URL explicitly
    pass

secret_key = os.getenv("SECRET_KEY", "dev-secret-change-me")
database_url = os.getenv("DATABASE_URL")

# During pytest runs, isolate to a separate database file
if not database_url:
    is_pytest = bool(os.getenv("PYTEST_CURRENT_TEST"))
    db_filename = "cellfib_test.db" if is_pytest else "cellfib.db"
    db_path = Path(app.instance_path) / db_filename
    database_url = f"sqlite:///{db_path.as_posix()}"

app.config.update(
    SECRET_KEY=secret_key,
    SQLALCHEMY_DATABASE_URI=database_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    CELLFIB_SAVE_KEY=os.getenv("CELLFIB_SAVE_KEY", "fiblib"),
    CELLFIB_REDRAW_EVENT=os.getenv("CELLFIB_REDRAW_EVENT", "cell_update"),
    CELLFIB_SOCKET_NAMESPACE=os.getenv("CELLFIB_SOCKET_NAMESPACE", "/fib"),
    CELLFIB_AUTOSAVE_SECONDS=int(os.getenv("CELLFIB_AUTOSAVE_SECONDS", "60")),
)

engine_opts = {}
if database_url.startswith("sqlite:///"):
    engine_opts["connect_args"] = {
        "timeout": 10,
        "check_same_thread": False,  # socketio background tasks save from another thread
    }
db = SQLAlchemy(app, session_options={"expire_on_commit": False}, engine_options=engine_opts)

from cellfib import models as _models  # noqa: F401,E402 register tables with db.metadata

socketio = SocketIO(
    app,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
    cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*"),
    engineio_logger=bool(os.getenv("ENGINEIO_LOGGER", "0") == "1"),
    ping_interval=20,
    ping_timeout=10,
)

# Host type registry for cell kinds and the process-wide fib registry. Both
# start empty; kinds and fibs are re-registered on every process start.
from cellfib.services.persistence import SQLStorage  # noqa: E402

kinds = KindRegistry()
fibs = PartitionRegistry(
    host=SocketIOHost(
        socketio,
        event=app.config["CELLFIB_REDRAW_EVENT"],
        namespace=app.config["CELLFIB_SOCKET_NAMESPACE"],
    ),
    kinds=kinds,
    storage=SQLStorage(app.config["CELLFIB_SAVE_KEY"]),
)

from cellfib.routes.fib_api import bp_fib  # noqa: E402

app.register_blueprint(bp_fib)

# Import websocket handlers so their event decorators register with Socket.IO (side-effect)
from cellfib.websockets import partitions as _ws_partitions  # noqa: F401,E402

if not (os.getenv("CELLFIB_SUPPRESS_ROUTE_MAP") in ("1", "true", "yes") or app.config.get("SUPPRESS_ROUTE_MAP")):
    print("Registered routes:")
    print(app.url_map)


def create_app():
    """Return the Flask app instance with its tables created."""
    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": "internal error", "error_id": error_id}), 500
