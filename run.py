"""cellfib CLI entry point.

Runs the Socket.IO server that hosts the fib registry, and offers a couple of
maintenance commands for persisted tracking documents. Accepts configuration
via flags and environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from dotenv import load_dotenv


def _load_version() -> str:
    try:
        with open("VERSION", "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    cellfib server

    Hosts viewer-dependent cell transformations and the persisted set of
    tracked cell positions per partition. CLI flags take precedence over
    environment variables.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                      Bind address for the web server (default: 0.0.0.0)
          PORT                      Port for the web server (default: 5000)
          DATABASE_URL              SQLAlchemy database URI (default: sqlite:///instance/cellfib.db)
          CELLFIB_SAVE_KEY          Namespace of the tracking document (default: fiblib)
          CELLFIB_AUTOSAVE_SECONDS  Periodic save interval, 0 disables (default: 60)

        Examples:
          python run.py server --port 8080
          python run.py --env-file .env server
          python run.py show overworld
          python run.py reset overworld
        """
    )

    parser = argparse.ArgumentParser(
        prog="cellfib",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--env-file", dest="env_file", help="Path to a .env file to load before processing flags")
    parser.add_argument("--version", action="version", version=f"cellfib {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser("server", help="Run the Socket.IO web server")
    server_parser.add_argument("--host", default=None, help="Host interface to bind (default: env HOST or 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: env PORT or 5000)")
    server_parser.add_argument("--db", dest="db_uri", default=None, help="Database URI (default: env DATABASE_URL)")
    server_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    server_parser.set_defaults(command="server")

    show_parser = subparsers.add_parser("show", help="Print the persisted tracking document of a partition")
    show_parser.add_argument("partition_id", help="Partition id")
    show_parser.set_defaults(command="show")

    reset_parser = subparsers.add_parser("reset", help="Delete the persisted state row of a partition")
    reset_parser.add_argument("partition_id", help="Partition id")
    reset_parser.set_defaults(command="reset")

    if len(argv) == 0:
        argv = ["server"]
    return parser.parse_args(argv)


def _show(partition_id: str) -> int:
    from cellfib import app, create_app
    from cellfib.fib import decode_pos
    from cellfib.models import PartitionState

    create_app()
    with app.app_context():
        row = PartitionState.query.filter_by(partition_id=partition_id).first()
        if row is None:
            print("[NOT FOUND]")
            return 1
        doc = (row.data or {}).get(app.config["CELLFIB_SAVE_KEY"]) or {}
        decoded = {kind_id: [list(decode_pos(v)) for v in values] for kind_id, values in doc.items()}
        print(json.dumps({"partition": row.partition_id, "class": row.partition_class, "tracked": decoded}, indent=2))
    return 0


def _reset(partition_id: str) -> int:
    from cellfib import app, create_app, fibs

    create_app()
    with app.app_context():
        if not fibs.storage.delete(partition_id):
            print("[NOT FOUND]")
            return 1
    print("[OK]")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))
    db_uri_cli = getattr(args, "db_uri", None)

    # DATABASE_URL must be set before the app module is imported
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "show":
        return _show(args.partition_id)
    if mode == "reset":
        return _reset(args.partition_id)

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    from cellfib.logging_utils import log
    from cellfib.server import start_server

    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")
    db_banner = db_uri_cli or os.getenv("DATABASE_URL") or "auto (instance/cellfib.db)"
    divider = "=" * 40
    print("\n".join([divider, "  cellfib server", divider, f"  Host:      {host}", f"  Port:      {port}", f"  Database:  {db_banner}", divider, ""]))
    log.info(event="startup", mode=mode, host=host, port=port, db=db_banner, debug=debug)
    start_server(host=host, port=port, debug=debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
