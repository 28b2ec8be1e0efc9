"""Size and duration helpers for the rotation configuration."""

import re
from datetime import timedelta
from typing import Union

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "B": 1,
    "k": KIB,
    "K": KIB,
    "Ki": KIB,
    "KiB": KIB,
    "m": MIB,
    "M": MIB,
    "Mi": MIB,
    "MiB": MIB,
    "g": GIB,
    "G": GIB,
    "Gi": GIB,
    "GiB": GIB,
}

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([A-Za-z]*)\s*$")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h|d)")


def parse_byte_size(value: Union[int, str]) -> int:
    """
    Parse a human friendly size like ``100Mi`` or ``2GiB`` into bytes.

    Plain integers (or digit-only strings) are taken as bytes.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid size: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"size must not be negative: {value}")
        return value

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"invalid size: {value!r}")

    number, unit = match.groups()
    if unit not in _SIZE_UNITS:
        raise ValueError(f"unknown unit {unit!r} in size {value!r}")
    return int(number) * _SIZE_UNITS[unit]


def parse_duration(value: Union[int, float, str, timedelta]) -> timedelta:
    """
    Parse a duration given as seconds or as a Go style string (``1h30m``).
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"duration must not be negative: {value}")
        return timedelta(seconds=value)

    text = str(value).strip()
    if text in ("", "0"):
        return timedelta(0)
    if re.fullmatch(r"\d+(\.\d+)?", text):
        return timedelta(seconds=float(text))

    position = 0
    total_seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        number, unit = match.groups()
        total_seconds += float(number) * _DURATION_UNITS[unit]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=total_seconds)


def format_bytes_human_readable(bytes_value: int) -> str:
    if bytes_value < KIB:
        return f"{bytes_value} B"
    elif bytes_value < MIB:
        return f"{bytes_value / KIB:.1f} KiB"
    elif bytes_value < GIB:
        return f"{bytes_value / MIB:.1f} MiB"
    else:
        return f"{bytes_value / GIB:.1f} GiB"
