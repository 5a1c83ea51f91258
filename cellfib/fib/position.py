"""Packing of 3D cell positions into a single signed 64-bit integer.

Layout (most significant bit first)::

    | x: 26 bits | z: 26 bits | y: 12 bits |

Each axis is stored in two's complement, so the supported range is
x, z in [-33554432, 33554431] and y in [-2048, 2047]. Values outside that
range are rejected rather than silently wrapped.
"""

from __future__ import annotations

from typing import Tuple

Position = Tuple[int, int, int]

BITS_X = 26
BITS_Z = 26
BITS_Y = 12
SHIFT_Z = BITS_Y
SHIFT_X = BITS_Y + BITS_Z

MASK_X = (1 << BITS_X) - 1
MASK_Y = (1 << BITS_Y) - 1
MASK_Z = (1 << BITS_Z) - 1

_INT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63


def _axis_range(bits: int) -> Tuple[int, int]:
    half = 1 << (bits - 1)
    return -half, half - 1


RANGE_X = _axis_range(BITS_X)
RANGE_Y = _axis_range(BITS_Y)
RANGE_Z = _axis_range(BITS_Z)


def _sign_extend(value: int, bits: int) -> int:
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def _check(name: str, value: int, bounds: Tuple[int, int]) -> None:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise ValueError(f"{name}={value} outside supported range [{lo}, {hi}]")


def encode_pos(pos: Position) -> int:
    """Return the signed 64-bit encoding of ``(x, y, z)``."""
    x, y, z = (int(v) for v in pos)
    _check("x", x, RANGE_X)
    _check("y", y, RANGE_Y)
    _check("z", z, RANGE_Z)
    packed = ((x & MASK_X) << SHIFT_X) | ((z & MASK_Z) << SHIFT_Z) | (y & MASK_Y)
    # fold to the signed int64 range so the value survives JSON/SQL bigint columns
    return packed - (1 << 64) if packed & _INT64_SIGN else packed


def decode_pos(value: int) -> Position:
    """Inverse of :func:`encode_pos`."""
    raw = int(value) & _INT64_MASK
    x = _sign_extend((raw >> SHIFT_X) & MASK_X, BITS_X)
    z = _sign_extend((raw >> SHIFT_Z) & MASK_Z, BITS_Z)
    y = _sign_extend(raw & MASK_Y, BITS_Y)
    return x, y, z


__all__ = ["Position", "encode_pos", "decode_pos", "RANGE_X", "RANGE_Y", "RANGE_Z"]
