"""Integer ranges parsed from strings such as ``"100"`` or ``"100-200"``."""

from __future__ import annotations

import re
from dataclasses import dataclass

_RANGE_RE = re.compile(r"(\d+)-(\d+)", re.ASCII)
_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class ValueRange:
    """An inclusive integer range."""

    min: int
    max: int


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"Invalid value: {text}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"Invalid value: {text}")
    return value


def value_range_from_string(instr: str) -> ValueRange:
    """Parse a single integer or a ``min-max`` range; raise ``ValueError`` if invalid."""
    match = _RANGE_RE.fullmatch(instr)
    if match:
        minval = _parse_int(match.group(1))
        maxval = _parse_int(match.group(2))
        if minval >= maxval:
            raise ValueError("Minimum has to be smaller than maximum")
        return ValueRange(minval, maxval)
    value = _parse_int(instr)
    return ValueRange(value, value)