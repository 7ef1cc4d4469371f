"""Job history entries stored under the configuration directory."""

from __future__ import annotations

import hashlib
import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ffuf import util
from ffuf.config import Config
from ffuf.options import ConfigOptions, config_options_from_dict

_HEX_RE = re.compile(r"[+-]?[0-9a-fA-F]+")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class ConfigOptionsHistory:
    """Options of a past job together with the time it started."""

    options: ConfigOptions = field(default_factory=ConfigOptions)
    time: datetime = _ZERO_TIME


def _format_time(moment: datetime) -> str:
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += f".{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    seconds = int(offset / timedelta(seconds=1))
    sign = "-" if seconds < 0 else "+"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _parse_time(value: Any) -> datetime:
    if value is None:
        return _ZERO_TIME
    if not isinstance(value, str):
        raise ValueError("time must be a string")
    return datetime.fromisoformat(value)


def _encode(entry: ConfigOptionsHistory) -> bytes:
    data = entry.options.to_dict()
    data["time"] = _format_time(entry.time)
    text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in _JSON_ESCAPES.items():
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def write_history_entry(conf: Config) -> str:
    """Store the job options in the history directory and return their hash."""
    entry = ConfigOptionsHistory(
        options=conf.to_options(), time=datetime.now().astimezone()
    )
    payload = _encode(entry)
    hashstr = calculate_history_hash(payload)
    directory = Path(util.HISTORY_DIR) / hashstr
    util.create_config_dir(directory)
    fd = os.open(directory / "options", os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
    with os.fdopen(fd, "wb") as handle:
        handle.write(payload)
    return hashstr


def calculate_history_hash(options: bytes) -> str:
    """Return the hex SHA-256 digest of the serialised options."""
    return hashlib.sha256(options).hexdigest()


def search_hash(hash: str) -> tuple[list[ConfigOptionsHistory], int]:
    """Find history entries matching an FFUFHASH value and decode its position.

    Raises ``ValueError`` for a malformed hash and ``OSError`` if the history
    directory cannot be read.
    """
    if len(hash) < 6:
        raise ValueError("bad FFUFHASH value")
    historypart = hash[:5].lower()
    positional = hash[5:]
    if not _HEX_RE.fullmatch(positional):
        raise ValueError("bad positional value in FFUFHASH")
    position = int(positional, 16)
    if not _INT32_MIN <= position <= _INT32_MAX:
        raise ValueError("bad positional value in FFUFHASH")

    entries = sorted(Path(util.HISTORY_DIR).iterdir(), key=lambda p: p.name)
    found = []
    for entry in entries:
        if not entry.is_dir() or not entry.name.lower().startswith(historypart):
            continue
        try:
            found.append(config_from_history(entry))
        except (OSError, ValueError):
            continue
    return found, position


def history_replayable(conf: Config) -> tuple[bool, str]:
    """Return whether the job can be replayed, and the reason if it cannot."""
    for wordlist in conf.wordlists:
        if wordlist == "-" or wordlist.startswith("-:"):
            return False, "stdin input was used for one of the wordlists"
    return True, ""


def config_from_history(dirname: str | os.PathLike[str]) -> ConfigOptionsHistory:
    """Load a history entry from its directory; raise ``OSError`` or ``ValueError``."""
    payload = (Path(dirname) / "options").read_bytes()
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("history entry must be a JSON object")
    return ConfigOptionsHistory(
        options=config_options_from_dict(data), time=_parse_time(data.get("time"))
    )