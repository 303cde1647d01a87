"""Duration literals (``500ms``, ``5s``, ``2m``, ``1h30m``)"""

import re
from typing import Union

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration into seconds

    Accepts numbers (seconds), bare numeric strings (seconds) and
    Go-style unit strings such as ``1m30s`` or ``250ms``.

    Args:
        value: Duration to parse

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the value is negative or malformed
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"duration must be non-negative: {value!r}")
        return float(value)

    text = value.strip()
    if not text:
        raise ValueError("duration cannot be empty")
    if _NUMBER.fullmatch(text):
        return float(text)

    total = 0.0
    pos = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return total


def format_duration(seconds: float) -> str:
    """Render seconds compactly, rounded to 100ms (``1m2.5s``, ``800ms``)"""
    seconds = round(seconds, 1)
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"
    minutes, rest = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    rest_text = f"{rest:.1f}".rstrip("0").rstrip(".")
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if rest_text != "0" or not parts:
        parts.append(f"{rest_text}s")
    return "".join(parts)
