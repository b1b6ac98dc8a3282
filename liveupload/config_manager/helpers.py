"""Helpers for parsing byte-sized configuration values."""

import re

_BYTE_VALUE = re.compile(r"(\d+)\s*([a-z]*)")

_UNIT_MULTIPLIERS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}


def parse_bytes(value: int | str) -> int:
    """Parse a chunk size such as ``5mib`` or ``5242880`` into bytes.

    Units are case-insensitive and binary: k/kb/kib, m/mb/mib and g/gb/gib
    all mean powers of 1024. A bare number or a ``b`` suffix is bytes.

    Raises:
        ValueError: If the value is not a whole number with a known unit.
    """
    if isinstance(value, int):
        return value

    match = _BYTE_VALUE.fullmatch(str(value).strip().lower())
    if match is None:
        raise ValueError(f"Invalid byte value: {value!r}")

    amount, unit = match.groups()
    if unit not in _UNIT_MULTIPLIERS:
        raise ValueError(f"Unknown byte unit in value: {value!r}")
    return int(amount) * _UNIT_MULTIPLIERS[unit]
