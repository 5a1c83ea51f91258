"""Structured event logging for the fib registry.

Most of what the registry has to report is a count attached to a lifecycle
step: how many queued cells a partition drained, how many preloaded fibs it
picked up, how many cells a refresh redrew. Emitting those as one line of
``key=value`` fields (or one JSON object with ``CELLFIB_LOG_JSON=1``) keeps
the partition id and the count in separate fields, so they can be grepped
or summed per partition without parsing prose.

    log = get_logger("cellfib.registry")
    log.info(event="pending_drained", partition="overworld-1", registered="3 pre-loaded cells")

Fields set to None are omitted. ``level``, ``ts`` and ``logger`` are filled in.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("CELLFIB_LOG_LEVEL", "info"), 20)
JSON_MODE = os.getenv("CELLFIB_LOG_JSON", "0") in ("1", "true", "TRUE", "yes", "on")


def _render_json(record: dict) -> str:
    try:
        return json.dumps(record, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return json.dumps({"level": record["level"], "ts": record["ts"], "error": "json_encode_failed"})


def _render_kv(record: dict) -> str:
    def value(v):
        return str(v) if isinstance(v, (int, float)) else str(v).replace(" ", "_")

    return " ".join(f"{k}={value(v)}" for k, v in record.items())


class _Logger:
    def __init__(self, name: str):
        self.name = name

    def _emit(self, level: str, fields: dict):
        if LEVELS[level] < CURRENT_LEVEL:
            return
        record = {"level": level, "ts": int(time.time())}
        record.update((k, v) for k, v in fields.items() if v is not None)
        record.setdefault("logger", self.name)
        line = _render_json(record) if JSON_MODE else _render_kv(record)
        print(line, file=sys.stderr if level == "error" else sys.stdout)

    def debug(self, **fields):
        self._emit("debug", fields)

    def info(self, **fields):
        self._emit("info", fields)

    def warn(self, **fields):
        self._emit("warn", fields)

    def error(self, **fields):
        self._emit("error", fields)


_LOGGERS = {}


def get_logger(name: str) -> _Logger:
    return _LOGGERS.setdefault(name, _Logger(name))


def plural(count: int, word: str) -> str:
    """Return ``"<count> <word>"`` with a trailing ``s`` unless count is 1."""
    return f"{count} {word}{'' if count == 1 else 's'}"


log = get_logger("cellfib")
