"""Lightweight websocket payload validation.

Minimal schema-like checking with consistent error responses; not a general
JSON Schema implementation. Returns ``(ok, value_or_error)`` tuples and the
caller decides whether to emit an error event.

Schema mini-language (Python dict)::

    {'field_name': ('type', required: bool, extras: dict)}

Supported types: 'str', 'int', 'list'.
Extras: min_len / max_len (str), min / max (int), item_type (list).

If invalid: (False, {'field': 'partition', 'error': 'too long', 'code': 'max_len'})
If valid: (True, normalized_data)
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

PRIMITIVES = {
    "str": str,
    "int": int,
    "list": list,
}


def _fail(field: str, message: str, code: str) -> Tuple[bool, Dict[str, Any]]:
    return False, {"field": field, "error": message, "code": code}


def validate(payload: Any, schema: Dict[str, tuple]) -> Tuple[bool, Dict[str, Any]]:
    if not isinstance(payload, dict):
        return _fail("__root__", "payload must be an object", "type")
    out = {}
    for name, spec in schema.items():
        type_name, required = spec[0], spec[1]
        extras = spec[2] if len(spec) > 2 else {}
        if name not in payload:
            if required:
                return _fail(name, "missing required field", "required")
            continue
        value = payload[name]
        py_type = PRIMITIVES[type_name]
        # bool is an int subclass; coordinates must be real integers
        if not isinstance(value, py_type) or (type_name == "int" and isinstance(value, bool)):
            return _fail(name, f"expected {type_name}", "type")
        if type_name == "str":
            value = value.strip()
            if not value:
                return _fail(name, "must not be empty", "empty")
            if "max_len" in extras and len(value) > extras["max_len"]:
                return _fail(name, "too long", "max_len")
            if "min_len" in extras and len(value) < extras["min_len"]:
                return _fail(name, "too short", "min_len")
        elif type_name == "int":
            if "min" in extras and value < extras["min"]:
                return _fail(name, "too small", "min")
            if "max" in extras and value > extras["max"]:
                return _fail(name, "too large", "max")
        elif type_name == "list":
            item_type = PRIMITIVES.get(extras.get("item_type", ""))
            if item_type:
                for idx, elem in enumerate(value):
                    if not isinstance(elem, item_type):
                        return _fail(name, f"element {idx} not {extras['item_type']}", "item_type")
        out[name] = value
    return True, out


WATCH_PARTITION = {
    "partition": ("str", True, {"min_len": 1, "max_len": 128}),
    "tags": ("list", False, {"item_type": "str"}),
}
UNWATCH_PARTITION = {
    "partition": ("str", True, {"min_len": 1, "max_len": 128}),
}
QUERY_CELL = {
    "partition": ("str", True, {"min_len": 1, "max_len": 128}),
    "x": ("int", True),
    "y": ("int", True),
    "z": ("int", True),
}
