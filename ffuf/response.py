"""HTTP response description used by filters and output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import unquote, urljoin, urlsplit

from ffuf.request import Request

_DEFAULT_PORTS = {"http": "80", "https": "443"}
_DIGITS = set("0123456789")


@dataclass
class Response:
    """The meaningful data returned for a request."""

    status_code: int = 0
    headers: dict[str, list[str]] = field(default_factory=dict)
    data: bytes = b""
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    cancelled: bool = False
    request: Request | None = None
    raw: str = ""
    result_file: str = ""
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    time: timedelta = field(default_factory=timedelta)

    def get_redirect_location(self, absolute: bool) -> str:
        """Return the Location of a 3xx response, optionally made absolute."""
        location = ""
        if 300 <= self.status_code <= 399:
            values = self.headers.get("Location")
            if values:
                location = values[0]
        if not absolute:
            return location

        base = self.request.url if self.request is not None else ""
        try:
            redirect = urlsplit(location)
            base_parts = urlsplit(base)
        except ValueError:
            return location
        if redirect.scheme and url_equal(location, base):
            return f"{redirect.scheme}://{_host(base_parts.netloc)}{unquote(redirect.path)}"
        return urljoin(base, location)


def _host(netloc: str) -> str:
    """Strip user information from a network location."""
    return netloc.rpartition("@")[2]


def _split_host_port(hostport: str) -> tuple[str, str]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            return hostport[1:], ""
        rest = hostport[end + 1:]
        port = rest[1:] if rest.startswith(":") and set(rest[1:]) <= _DIGITS else ""
        return hostport[1:end], port
    colon = hostport.rfind(":")
    if colon != -1 and set(hostport[colon + 1:]) <= _DIGITS:
        return hostport[:colon], hostport[colon + 1:]
    return hostport, ""


def _host_port_scheme(url: str) -> tuple[str, str, str]:
    parts = urlsplit(url)
    host, port = _split_host_port(_host(parts.netloc))
    return host, port or _DEFAULT_PORTS.get(parts.scheme, ""), parts.scheme


def url_equal(url1: str, url2: str) -> bool:
    """Return True if both URLs share hostname, scheme and effective port."""
    return _host_port_scheme(url1) == _host_port_scheme(url2)