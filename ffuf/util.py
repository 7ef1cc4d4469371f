"""Small helpers and the configuration directory locations."""

from __future__ import annotations

import os
import random
import string
from pathlib import Path
from urllib.parse import unquote, urlsplit

import platformdirs

from ffuf.request import Request

VERSION = "2.0.0"
VERSION_APPENDIX = "-dev"
CONFIG_DIR = Path(platformdirs.user_config_dir()) / "ffuf"
HISTORY_DIR = CONFIG_DIR / "history"
SCRAPER_DIR = CONFIG_DIR / "scraper"

_CHARS = string.ascii_lowercase + string.ascii_uppercase


def random_string(n: int) -> str:
    """Return a random string of ASCII letters of length ``n``."""
    return "".join(random.choices(_CHARS, k=n))


def uniq_string_slice(inslice: list[str]) -> list[str]:
    """Return the unique strings of ``inslice``; order is not guaranteed."""
    return list(set(inslice))


def file_exists(path: str | os.PathLike[str]) -> bool:
    """Return True if ``path`` exists and is not a directory."""
    try:
        return not Path(path).is_dir() and Path(path).exists()
    except OSError:
        return False


def request_contains_keyword(req: Request, kw: str) -> bool:
    """Return True if ``kw`` occurs in any part of the request."""
    if kw in req.host or kw in req.url or kw in req.method:
        return True
    if kw in req.data.decode("utf-8", "surrogateescape"):
        return True
    return any(kw in key or kw in value for key, value in req.headers.items())


def host_url_from_request(req: Request) -> str:
    """Return host plus URL path without its last segment."""
    path = unquote(urlsplit(req.url).path)
    trimmed = "/".join(path.split("/")[:-1]).strip()
    return req.host + trimmed


def version() -> str:
    """Return the version string."""
    return f"{VERSION}{VERSION_APPENDIX}"


def check_or_create_config_dir() -> None:
    """Create the configuration, history and scraper directories if missing."""
    create_config_dir(CONFIG_DIR)
    create_config_dir(HISTORY_DIR)
    create_config_dir(SCRAPER_DIR)


def create_config_dir(path: str | os.PathLike[str]) -> None:
    """Create ``path`` with its parents unless something already exists there."""
    if os.path.lexists(path):
        return
    os.makedirs(path, mode=0o750, exist_ok=True)