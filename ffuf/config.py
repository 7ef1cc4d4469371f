"""The validated runtime configuration of a job."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ffuf.interfaces import MatcherManager
from ffuf.options import ConfigOptions
from ffuf.optrange import OptRange

_OPTION_FIELDS = {
    "line": "lines",
    "regexp": "regexp",
    "size": "size",
    "status": "status",
    "time": "time",
    "words": "words",
}


@dataclass
class InputProviderConfig:
    """Describes one input source and the keyword it fills in."""

    name: str = ""
    keyword: str = ""
    value: str = ""
    template: str = ""


@dataclass
class Config:
    """Runtime configuration built from validated options."""

    autocalibration: bool = False
    autocalibration_keyword: str = "FUZZ"
    autocalibration_per_host: bool = False
    autocalibration_strategy: str = "basic"
    autocalibration_strings: list[str] = field(default_factory=list)
    cancel: Callable[[], None] | None = field(default=None, repr=False, compare=False)
    colors: bool = False
    command_keywords: list[str] = field(default_factory=list)
    command_line: str = ""
    config_file: str = ""
    context: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False
    )
    data: str = ""
    debuglog: str = ""
    delay: OptRange = field(default_factory=OptRange)
    dirsearch_compat: bool = False
    extensions: list[str] = field(default_factory=list)
    filter_mode: str = "or"
    follow_redirects: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    ignore_body: bool = False
    ignore_wordlist_comments: bool = False
    input_mode: str = "clusterbomb"
    input_num: int = 0
    input_providers: list[InputProviderConfig] = field(default_factory=list)
    input_shell: str = ""
    json: bool = False
    matcher_manager: MatcherManager | None = field(default=None, compare=False)
    matcher_mode: str = "or"
    max_time: int = 0
    max_time_job: int = 0
    method: str = "GET"
    noninteractive: bool = False
    output_directory: str = ""
    output_file: str = ""
    output_format: str = ""
    output_skip_empty_file: bool = False
    progress_frequency: int = 125
    proxy_url: str = ""
    quiet: bool = False
    rate: int = 0
    recursion: bool = False
    recursion_depth: int = 0
    recursion_strategy: str = "default"
    replay_proxy_url: str = ""
    request_file: str = ""
    request_proto: str = "https"
    scraper_file: str = ""
    scrapers: str = "all"
    sni: str = ""
    stop_on_403: bool = False
    stop_on_all: bool = False
    stop_on_errors: bool = False
    threads: int = 0
    timeout: int = 10
    url: str = ""
    verbose: bool = False
    wordlists: list[str] = field(default_factory=list)
    http2: bool = False

    def __post_init__(self) -> None:
        if self.cancel is None:
            self.cancel = self.context.set

    def set_context(
        self, cancel_event: threading.Event, cancel: Callable[[], None]
    ) -> None:
        """Replace the cancellation event and the function that triggers it."""
        self.context = cancel_event
        self.cancel = cancel

    def to_options(self) -> ConfigOptions:
        """Return the options that would reproduce this configuration."""
        o = ConfigOptions()

        o.http.cookies = []
        o.http.data = self.data
        o.http.follow_redirects = self.follow_redirects
        o.http.headers = [f"{key}: {value}" for key, value in self.headers.items()]
        o.http.ignore_body = self.ignore_body
        o.http.method = self.method
        o.http.proxy_url = self.proxy_url
        o.http.recursion = self.recursion
        o.http.recursion_depth = self.recursion_depth
        o.http.recursion_strategy = self.recursion_strategy
        o.http.replay_proxy_url = self.replay_proxy_url
        o.http.sni = self.sni
        o.http.timeout = self.timeout
        o.http.url = self.url
        o.http.http2 = self.http2

        g = o.general
        g.autocalibration = self.autocalibration
        g.autocalibration_keyword = self.autocalibration_keyword
        g.autocalibration_per_host = self.autocalibration_per_host
        g.autocalibration_strategy = self.autocalibration_strategy
        g.autocalibration_strings = list(self.autocalibration_strings)
        g.colors = self.colors
        g.config_file = ""
        if self.delay.has_delay:
            if self.delay.is_range:
                g.delay = f"{self.delay.min:.2f}-{self.delay.max:.2f}"
            else:
                g.delay = f"{self.delay.min:.2f}"
        else:
            g.delay = ""
        g.json = self.json
        g.max_time = self.max_time
        g.max_time_job = self.max_time_job
        g.noninteractive = self.noninteractive
        g.quiet = self.quiet
        g.rate = int(self.rate)
        g.scraper_file = self.scraper_file
        g.scrapers = self.scrapers
        g.stop_on_403 = self.stop_on_403
        g.stop_on_all = self.stop_on_all
        g.stop_on_errors = self.stop_on_errors
        g.threads = self.threads
        g.verbose = self.verbose

        i = o.input
        i.dirsearch_compat = self.dirsearch_compat
        i.extensions = ",".join(self.extensions)
        i.ignore_wordlist_comments = self.ignore_wordlist_comments
        i.input_mode = self.input_mode
        i.input_num = self.input_num
        i.input_shell = self.input_shell
        i.input_commands = [
            f"{p.value}:{p.keyword}" for p in self.input_providers if p.name == "command"
        ]
        i.request = self.request_file
        i.request_proto = self.request_proto
        i.wordlists = list(self.wordlists)

        o.output.debug_log = self.debuglog
        o.output.output_directory = self.output_directory
        o.output.output_file = self.output_file
        o.output.output_format = self.output_format
        o.output.output_skip_empty_file = self.output_skip_empty_file

        o.filter.mode = self.filter_mode
        o.matcher.mode = self.matcher_mode
        o.matcher.status = ""
        if self.matcher_manager is not None:
            for name, flt in self.matcher_manager.get_filters().items():
                attr = _OPTION_FIELDS.get(name)
                if attr is not None:
                    setattr(o.filter, attr, flt.repr())
            for name, flt in self.matcher_manager.get_matchers().items():
                attr = _OPTION_FIELDS.get(name)
                if attr is not None:
                    setattr(o.matcher, attr, flt.repr())
        return o

    def _matchers_dict(self) -> dict[str, dict[str, str]] | None:
        if self.matcher_manager is None:
            return None
        return {
            "matchers": {
                name: m.repr() for name, m in self.matcher_manager.get_matchers().items()
            },
            "filters": {
                name: f.repr() for name, f in self.matcher_manager.get_filters().items()
            },
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the configuration."""
        return {
            "autocalibration": self.autocalibration,
            "autocalibration_keyword": self.autocalibration_keyword,
            "autocalibration_perhost": self.autocalibration_per_host,
            "autocalibration_strategy": self.autocalibration_strategy,
            "autocalibration_strings": list(self.autocalibration_strings),
            "colors": self.colors,
            "cmdline": self.command_line,
            "configfile": self.config_file,
            "postdata": self.data,
            "debuglog": self.debuglog,
            "delay": self.delay.to_json(),
            "dirsearch_compatibility": self.dirsearch_compat,
            "extensions": list(self.extensions),
            "fmode": self.filter_mode,
            "follow_redirects": self.follow_redirects,
            "headers": dict(self.headers),
            "ignorebody": self.ignore_body,
            "ignore_wordlist_comments": self.ignore_wordlist_comments,
            "inputmode": self.input_mode,
            "cmd_inputnum": self.input_num,
            "inputproviders": [
                {
                    "name": p.name,
                    "keyword": p.keyword,
                    "value": p.value,
                    "template": p.template,
                }
                for p in self.input_providers
            ],
            "inputshell": self.input_shell,
            "json": self.json,
            "matchers": self._matchers_dict(),
            "mmode": self.matcher_mode,
            "maxtime": self.max_time,
            "maxtime_job": self.max_time_job,
            "method": self.method,
            "noninteractive": self.noninteractive,
            "outputdirectory": self.output_directory,
            "outputfile": self.output_file,
            "outputformat": self.output_format,
            "OutputSkipEmptyFile": self.output_skip_empty_file,
            "proxyurl": self.proxy_url,
            "quiet": self.quiet,
            "rate": self.rate,
            "recursion": self.recursion,
            "recursion_depth": self.recursion_depth,
            "recursion_strategy": self.recursion_strategy,
            "replayproxyurl": self.replay_proxy_url,
            "requestfile": self.request_file,
            "requestproto": self.request_proto,
            "scraperfile": self.scraper_file,
            "scrapers": self.scrapers,
            "sni": self.sni,
            "stop_403": self.stop_on_403,
            "stop_all": self.stop_on_all,
            "stop_errors": self.stop_on_errors,
            "threads": self.threads,
            "timeout": self.timeout,
            "url": self.url,
            "verbose": self.verbose,
            "wordlists": list(self.wordlists),
            "http2": self.http2,
        }