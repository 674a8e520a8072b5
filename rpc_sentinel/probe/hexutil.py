"""Hex quantity decoding for JSON-RPC results.

Ethereum-style nodes return quantities as ``0x``-prefixed hex strings
(``"0x1b4"`` is block 436).
"""

from __future__ import annotations

import re

from rpc_sentinel.errors import DecodeError

_HEX_PREFIX = "0x"
_HEX_BODY_RE = re.compile(r"[0-9a-fA-F]+")

INT64_MAX = 2**63 - 1


def hex_to_int(value: str) -> int:
    """Decode a ``0x``-prefixed hex string into a signed 64-bit integer.

    The prefix is optional. Signs, underscores and whitespace are rejected
    even though :func:`int` would accept them.

    Raises:
        DecodeError: The body is empty, contains non-hex characters, or
            does not fit in a signed 64-bit integer.
    """
    if not isinstance(value, str):
        raise DecodeError(f"Expected a hex string, got {type(value).__name__}")

    body = value[len(_HEX_PREFIX) :] if value.startswith(_HEX_PREFIX) else value
    if not body:
        raise DecodeError(f"Empty hex quantity: {value!r}")
    if _HEX_BODY_RE.fullmatch(body) is None:
        raise DecodeError(f"Invalid hex quantity: {value!r}")

    number = int(body, 16)
    if number > INT64_MAX:
        raise DecodeError(f"Hex quantity out of int64 range: {value!r}")
    return number


def int_to_hex(value: int) -> str:
    """Encode a non-negative integer as a canonical lowercase hex quantity."""
    if value < 0:
        raise ValueError("Hex quantities must be non-negative")
    return f"{_HEX_PREFIX}{value:x}"
