from __future__ import annotations

import math
import re
from typing import Dict

from ..errors import ParseError

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

POWER_STATES: Dict[str, float] = {
    "d0": 0.0,
    "d1": 1.0,
    "d2": 2.0,
    "d3hot": 3.0,
    "d3cold": 4.0,
}


def _parse_decimal(text: str, what: str, raw: str) -> float:
    if not _DECIMAL_RE.match(text):
        raise ParseError(f"invalid {what}: {raw!r}", value=raw)
    number = float(text)
    if not math.isfinite(number):
        raise ParseError(f"non-finite {what}: {raw!r}", value=raw)
    return number


def _strip_suffix(text: str, suffix: str) -> str:
    return text[: -len(suffix)] if text.endswith(suffix) else text


def parse_speed(value: str) -> float:
    """Convert a sysfs link speed such as ``8.0 GT/s PCIe`` to GT/s."""
    text = _strip_suffix(value, " GT/s PCIe")
    text = _strip_suffix(text, " GT/s")
    return _parse_decimal(text.strip(), "link speed", value)


def parse_width(value: str) -> float:
    """Convert a link width such as ``x16`` (or bare ``16``) to a lane count."""
    text = value[1:] if value.startswith("x") else value
    return _parse_decimal(text.strip(), "link width", value)


def parse_power_state(value: str) -> float:
    """Map a device power state to its ordinal, D0 = 0 through D3cold = 4.

    Numeric values are accepted directly when they fall in 0..4; otherwise the
    kernel's token (``D0``, ``D3hot``, ...) is matched case-insensitively.
    """
    text = value.strip()
    if _DECIMAL_RE.match(text):
        state = float(text)
        if state in POWER_STATES.values():
            return state
        raise ParseError(f"power state out of range: {value!r}", value=value)
    try:
        return POWER_STATES[text.lower()]
    except KeyError:
        raise ParseError(f"unknown power state: {value!r}", value=value) from None


def parse_flag(value: str) -> float:
    """Parse a boolean sysfs attribute (``0``/``1``) such as ``d3cold_allowed``."""
    flag = _parse_decimal(value.strip(), "flag", value)
    if flag not in (0.0, 1.0):
        raise ParseError(f"flag out of range: {value!r}", value=value)
    return flag
