"""Interfaces between a job and its pluggable parts, and the records they exchange."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ffuf.request import Request
from ffuf.response import Response


class MatcherManager(ABC):
    """Manages the matchers and filters applied to responses."""

    @abstractmethod
    def set_calibrated(self, calibrated: bool) -> None:
        """Mark global autocalibration as done or not done."""

    @abstractmethod
    def set_calibrated_for_host(self, host: str, calibrated: bool) -> None:
        """Mark autocalibration for ``host`` as done or not done."""

    @abstractmethod
    def add_filter(self, name: str, option: str, replace: bool) -> None:
        """Add a filter; raise ``ValueError`` if the option is invalid."""

    @abstractmethod
    def add_per_domain_filter(self, domain: str, name: str, option: str) -> None:
        """Add a filter that applies to one domain only."""

    @abstractmethod
    def remove_filter(self, name: str) -> None:
        """Remove the filter called ``name``."""

    @abstractmethod
    def add_matcher(self, name: str, option: str) -> None:
        """Add a matcher; raise ``ValueError`` if the option is invalid."""

    @abstractmethod
    def get_filters(self) -> dict[str, FilterProvider]:
        """Return the global filters by name."""

    @abstractmethod
    def get_matchers(self) -> dict[str, FilterProvider]:
        """Return the matchers by name."""

    @abstractmethod
    def filters_for_domain(self, domain: str) -> dict[str, FilterProvider]:
        """Return the filters that apply to ``domain``."""

    @abstractmethod
    def calibrated_for_domain(self, domain: str) -> bool:
        """Return True if ``domain`` has been calibrated."""

    @abstractmethod
    def calibrated(self) -> bool:
        """Return True if global calibration has been done."""


class FilterProvider(ABC):
    """A matcher or a filter applied to a response."""

    @abstractmethod
    def filter(self, response: Response) -> bool:
        """Return True if the response matches."""

    @abstractmethod
    def repr(self) -> str:
        """Return the option string this filter was built from."""

    @abstractmethod
    def repr_verbose(self) -> str:
        """Return a human readable description."""


class RunnerProvider(ABC):
    """Prepares and executes requests."""

    @abstractmethod
    def prepare(self, input: dict[str, bytes], basereq: Request) -> Request:
        """Return a request with the input values filled in."""

    @abstractmethod
    def execute(self, req: Request) -> Response:
        """Send the request and return its response."""

    @abstractmethod
    def dump(self, req: Request) -> bytes:
        """Return the raw bytes of the request."""


class InputProvider(ABC):
    """Supplies the input values for each request."""

    @abstractmethod
    def activate_keywords(self, keywords: list[str]) -> None:
        """Enable only the providers whose keyword is listed."""

    @abstractmethod
    def add_provider(self, provider: Any) -> None:
        """Add an internal provider described by an input provider config."""

    @abstractmethod
    def keywords(self) -> list[str]:
        """Return the keywords of all providers."""

    @abstractmethod
    def next(self) -> bool:
        """Advance to the next input; return False when exhausted."""

    @abstractmethod
    def position(self) -> int:
        """Return the current position."""

    @abstractmethod
    def set_position(self, pos: int) -> None:
        """Move to position ``pos``."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the first input."""

    @abstractmethod
    def value(self) -> dict[str, bytes]:
        """Return the current values by keyword."""

    @abstractmethod
    def total(self) -> int:
        """Return the total number of inputs."""


class InternalInputProvider(ABC):
    """Supplies values for a single keyword."""

    @abstractmethod
    def keyword(self) -> str:
        """Return the keyword this provider fills in."""

    @abstractmethod
    def next(self) -> bool:
        """Return True if there are values left."""

    @abstractmethod
    def position(self) -> int:
        """Return the current position."""

    @abstractmethod
    def set_position(self, pos: int) -> None:
        """Move to position ``pos``."""

    @abstractmethod
    def reset_position(self) -> None:
        """Return to the first value."""

    @abstractmethod
    def increment_position(self) -> None:
        """Advance by one value."""

    @abstractmethod
    def value(self) -> bytes:
        """Return the current value."""

    @abstractmethod
    def total(self) -> int:
        """Return the total number of values."""

    @abstractmethod
    def active(self) -> bool:
        """Return True if the provider is enabled."""

    @abstractmethod
    def enable(self) -> None:
        """Enable the provider."""

    @abstractmethod
    def disable(self) -> None:
        """Disable the provider."""


class OutputProvider(ABC):
    """Presents progress and results."""

    @abstractmethod
    def banner(self) -> None:
        """Print the start banner."""

    @abstractmethod
    def finalize(self) -> None:
        """Write output files; raise on failure."""

    @abstractmethod
    def progress(self, status: Progress) -> None:
        """Show the current progress."""

    @abstractmethod
    def info(self, infostring: str) -> None:
        """Show an informational message."""

    @abstractmethod
    def error(self, errstring: str) -> None:
        """Show an error message."""

    @abstractmethod
    def raw(self, output: str) -> None:
        """Write text as is."""

    @abstractmethod
    def warning(self, warnstring: str) -> None:
        """Show a warning."""

    @abstractmethod
    def result(self, resp: Response) -> None:
        """Record and show a matched response."""

    @abstractmethod
    def print_result(self, res: Result) -> None:
        """Show a recorded result."""

    @abstractmethod
    def save_file(self, filename: str, format: str) -> None:
        """Write the results to ``filename`` in ``format``."""

    @abstractmethod
    def get_current_results(self) -> list[Result]:
        """Return the results recorded so far."""

    @abstractmethod
    def set_current_results(self, results: list[Result]) -> None:
        """Replace the recorded results."""

    @abstractmethod
    def reset(self) -> None:
        """Forget the current results."""

    @abstractmethod
    def cycle(self) -> None:
        """Keep the current results and start a new job cycle."""


class Scraper(ABC):
    """Extracts data from responses."""

    @abstractmethod
    def execute(self, resp: Response, matched: bool) -> list[ScraperResult]:
        """Run the scraper rules against a response."""

    @abstractmethod
    def append_from_file(self, path: str) -> None:
        """Load additional rules from a file."""


@dataclass
class ScraperResult:
    """Data extracted by one scraper rule."""

    name: str = ""
    type: str = ""
    action: list[str] = field(default_factory=list)
    results: list[str] = field(default_factory=list)


def _nanoseconds(delta: timedelta) -> int:
    return (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 1000


@dataclass
class Result:
    """A matched response as recorded by the output."""

    input: dict[str, bytes] = field(default_factory=dict)
    position: int = 0
    status_code: int = 0
    content_length: int = 0
    content_words: int = 0
    content_lines: int = 0
    content_type: str = ""
    redirect_location: str = ""
    url: str = ""
    duration: timedelta = field(default_factory=timedelta)
    scraper_data: dict[str, list[str]] = field(default_factory=dict)
    result_file: str = ""
    host: str = ""
    html_color: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation; input bytes are base64 encoded."""
        return {
            "input": {
                key: base64.b64encode(value).decode("ascii")
                for key, value in self.input.items()
            },
            "position": self.position,
            "status": self.status_code,
            "length": self.content_length,
            "words": self.content_words,
            "lines": self.content_lines,
            "content-type": self.content_type,
            "redirectlocation": self.redirect_location,
            "url": self.url,
            "duration": _nanoseconds(self.duration),
            "scraper": {key: list(value) for key, value in self.scraper_data.items()},
            "resultfile": self.result_file,
            "host": self.host,
        }


@dataclass
class Progress:
    """A snapshot of job progress."""

    started_at: datetime = field(default_factory=datetime.now)
    req_count: int = 0
    req_total: int = 0
    req_sec: int = 0
    queue_pos: int = 0
    queue_total: int = 0
    error_count: int = 0