"""A delay value that is either a single float or a range of floats."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

_FORMAT_ERROR = (
    'Delay needs to be either a single float: "0.1" or a range of floats, '
    'delimited by dash: "0.1-0.8"'
)
_RANGE_ERROR = (
    "Delay range min and max values need to be valid floats. For example: 0.1-0.5"
)


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(text)
    return float(text)


@dataclass
class OptRange:
    """A single float (stored in ``min``) or a ``min``-``max`` range."""

    min: float = 0.0
    max: float = 0.0
    is_range: bool = False
    has_delay: bool = False

    def initialize(self, value: str) -> None:
        """Set up the range from a string; raise ``ValueError`` if malformed."""
        parts = value.split("-")
        if len(parts) > 2:
            raise ValueError(_FORMAT_ERROR)
        if len(parts) == 2:
            self.is_range = True
            self.has_delay = True
            try:
                self.min = _parse_float(parts[0])
                self.max = _parse_float(parts[1])
            except ValueError:
                raise ValueError(_RANGE_ERROR) from None
        elif value:
            self.is_range = False
            self.has_delay = True
            try:
                self.min = _parse_float(value)
            except ValueError:
                raise ValueError(_FORMAT_ERROR) from None

    def to_json(self) -> dict[str, str]:
        """Return a JSON-serialisable mapping describing the range."""
        if self.min == self.max:
            value = f"{self.min:.2f}"
        else:
            value = f"{self.min:.2f}-{self.max:.2f}"
        return {"value": value}

    def load_json(self, data: Any) -> None:
        """Initialise from a mapping produced by ``to_json`` or its JSON text."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if data is None:
            value = ""
        elif isinstance(data, dict):
            value = data.get("value", "")
        else:
            raise ValueError("delay must be a JSON object")
        if not isinstance(value, str):
            raise ValueError("delay value must be a string")
        self.initialize(value)