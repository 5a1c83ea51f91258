"""
project: cellfib
module: server.py
License: MIT

Server bootstrap helpers.

Starts the Socket.IO server with logging configured, runs a background task
that periodically writes dirty tracking stores, and flushes every store on
shutdown so tracked positions survive a restart.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from cellfib import app, db, fibs, socketio
from cellfib.logging_utils import get_logger

_log = get_logger("cellfib.server")
_autosave_started = False


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    """Create tables, configure logging and serve until interrupted."""
    with app.app_context():
        db.create_all()
        _configure_logging()
    start_autosave()
    try:
        print(f"[INFO] Starting Socket.IO server on {host}:{port} (async_mode={socketio.async_mode})")
        socketio.run(app, host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
    finally:
        flush_tracking(force=True)


def _configure_logging():
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        pass
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(file_handler)
    root.addHandler(console)


def flush_tracking(force: bool = False) -> int:
    """Write dirty (or, with ``force``, all) tracking stores. Returns rows written."""
    with app.app_context():
        try:
            return fibs.save_all(force=force)
        except Exception as exc:
            _log.error(event="flush_failed", error=exc)
            raise


def _autosave_loop(interval: int):  # pragma: no cover - background loop
    while True:
        socketio.sleep(interval)
        try:
            flush_tracking()
        except Exception:
            logging.exception("Periodic tracking save failed")


def start_autosave() -> bool:
    """Start the periodic save task once; disabled when the interval is 0."""
    global _autosave_started
    interval = int(app.config.get("CELLFIB_AUTOSAVE_SECONDS") or 0)
    if interval <= 0 or _autosave_started:
        return False
    socketio.start_background_task(_autosave_loop, interval)
    _autosave_started = True
    _log.info(event="autosave_started", interval=interval)
    return True
