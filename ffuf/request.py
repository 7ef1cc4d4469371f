"""HTTP request description and sniper-mode template handling."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

_KEYWORD = "FUZZ"


@dataclass
class Request:
    """The data a runner needs to build and send a query."""

    method: str = ""
    host: str = ""
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: bytes = b""
    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    raw: str = ""


def _text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def new_request(conf: Any) -> Request:
    """Return a request with method and URL taken from the config."""
    return Request(method=conf.method, url=conf.url)


def base_request(conf: Any) -> Request:
    """Return a base request populated from the main config."""
    req = new_request(conf)
    req.headers = conf.headers
    req.data = _bytes(conf.data)
    return req


def recursion_request(conf: Any, path: str) -> Request:
    """Return a base request targeting a recursion URL."""
    req = base_request(conf)
    req.url = path
    return req


def copy_request(basereq: Request) -> Request:
    """Return a deep copy of a request."""
    return Request(
        method=basereq.method,
        host=basereq.host,
        url=basereq.url,
        headers=dict(basereq.headers),
        data=bytes(basereq.data),
        input=dict(basereq.input),
        position=basereq.position,
        raw=basereq.raw,
    )


def _paired(text: str, template: str) -> bool:
    count = text.count(template)
    return count > 0 and count % 2 == 0


def _injections(text: str, template: str) -> Iterator[str]:
    """Yield ``text`` with each template pair replaced by the keyword in turn."""
    if not _paired(text, template):
        return
    tokens = template_locations(template, text)
    for start, end in zip(tokens[::2], tokens[1::2]):
        yield inject_keyword(text, _KEYWORD, start, end)


def sniper_requests(basereq: Request, template: str) -> list[Request]:
    """Return one request per templated location, that location set to FUZZ."""
    reqs: list[Request] = []

    def emit(new: Request) -> None:
        scrub_templates(new, template)
        reqs.append(new)

    for method in _injections(basereq.method, template):
        new = copy_request(basereq)
        new.method = method
        emit(new)

    for url in _injections(basereq.url, template):
        new = copy_request(basereq)
        new.url = url
        emit(new)

    for data in _injections(_text(basereq.data), template):
        new = copy_request(basereq)
        new.data = _bytes(data)
        emit(new)

    for key, value in list(basereq.headers.items()):
        for new_key in _injections(key, template):
            new = copy_request(basereq)
            new.headers[new_key] = value
            del new.headers[key]
            emit(new)
        for new_value in _injections(value, template):
            new = copy_request(basereq)
            new.headers[key] = new_value
            emit(new)

    return reqs


def template_locations(template: str, input: str) -> list[int]:
    """Return the character offsets of the template's first character in input."""
    marker = template[0]
    return [index for index, char in enumerate(input) if char == marker]


def inject_keyword(input: str, keyword: str, start_offset: int, end_offset: int) -> str:
    """Replace input[start_offset:end_offset + 1] with keyword.

    The input is returned unchanged if the offsets make no sense.
    """
    if (
        start_offset < 0
        or start_offset > len(input)
        or end_offset > len(input)
        or start_offset > end_offset
    ):
        return input
    return input[:start_offset] + keyword + input[end_offset + 1:]


def scrub_templates(req: Request, template: str) -> None:
    """Remove every template marker from the request in place."""
    req.method = req.method.replace(template, "")
    req.url = req.url.replace(template, "")
    req.data = _bytes(_text(req.data).replace(template, ""))

    scrubbed: dict[str, str] = {}
    for key, value in req.headers.items():
        if _paired(key, template):
            key = key.replace(template, "")
        if _paired(value, template):
            value = value.replace(template, "")
        scrubbed[key] = value
    req.headers.clear()
    req.headers.update(scrubbed)