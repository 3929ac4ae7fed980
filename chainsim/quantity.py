"""Helpers for Ethereum hex quantities and hex data strings."""

import re
from typing import Any

HEX_DATA_RE = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")


def to_quantity(value: int) -> str:
    """Encode a non-negative integer as a minimal-width 0x quantity."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("quantity must be an int")
    if value < 0:
        raise ValueError("quantity must be non-negative")
    return hex(value)


def parse_quantity(raw: Any) -> int:
    value = str(raw).strip()
    if not value:
        raise ValueError("quantity cannot be empty")
    if value.startswith("0x"):
        if len(value) == 2:
            raise ValueError("hex quantity cannot be empty")
        return int(value, 16)
    if not value.isdigit():
        raise ValueError("quantity must be a decimal integer or 0x-prefixed hex quantity")
    return int(value, 10)


def is_hex_data(value: Any) -> bool:
    """True for 0x-prefixed, even-length hex strings (including the empty `0x`)."""
    return isinstance(value, str) and HEX_DATA_RE.match(value) is not None
