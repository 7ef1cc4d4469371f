"""User-facing option sets, with TOML and JSON loading."""

from __future__ import annotations

import contextlib
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from ffuf import util


def _opt(default: Any, go: str, json_key: str | None, *, toml: bool = True) -> Any:
    meta = {"go": go, "json": json_key, "toml": toml, "kind": type(default)}
    if isinstance(default, list):
        items = list(default)
        return field(default_factory=lambda: list(items), metadata=meta)
    return field(default=default, metadata=meta)


@dataclass
class FilterOptions:
    """Options describing response filters."""

    mode: str = _opt("or", "Mode", "mode")
    lines: str = _opt("", "Lines", "lines")
    regexp: str = _opt("", "Regexp", "regexp")
    size: str = _opt("", "Size", "size")
    status: str = _opt("", "Status", "status")
    time: str = _opt("", "Time", "time")
    words: str = _opt("", "Words", "words")


@dataclass
class MatcherOptions:
    """Options describing response matchers."""

    mode: str = _opt("or", "Mode", "mode")
    lines: str = _opt("", "Lines", "lines")
    regexp: str = _opt("", "Regexp", "regexp")
    size: str = _opt("", "Size", "size")
    status: str = _opt("200,204,301,302,307,401,403,405,500", "Status", "status")
    time: str = _opt("", "Time", "time")
    words: str = _opt("", "Words", "words")


@dataclass
class GeneralOptions:
    """General behaviour options."""

    autocalibration: bool = _opt(False, "AutoCalibration", "autocalibration")
    autocalibration_keyword: str = _opt(
        "FUZZ", "AutoCalibrationKeyword", "autocalibration_keyword"
    )
    autocalibration_per_host: bool = _opt(
        False, "AutoCalibrationPerHost", "autocalibration_per_host"
    )
    autocalibration_strategy: str = _opt(
        "basic", "AutoCalibrationStrategy", "autocalibration_strategy"
    )
    autocalibration_strings: list[str] = _opt(
        [], "AutoCalibrationStrings", "autocalibration_strings"
    )
    colors: bool = _opt(False, "Colors", "colors")
    config_file: str = _opt("", "ConfigFile", "config_file", toml=False)
    delay: str = _opt("", "Delay", "delay")
    json: bool = _opt(False, "Json", "json")
    max_time: int = _opt(0, "MaxTime", "maxtime")
    max_time_job: int = _opt(0, "MaxTimeJob", "maxtime_job")
    noninteractive: bool = _opt(False, "Noninteractive", "noninteractive")
    quiet: bool = _opt(False, "Quiet", "quiet")
    rate: int = _opt(0, "Rate", "rate")
    scraper_file: str = _opt("", "ScraperFile", "scraperfile")
    scrapers: str = _opt("all", "Scrapers", "scrapers")
    searchhash: str = _opt("", "Searchhash", None)
    show_version: bool = _opt(False, "ShowVersion", None, toml=False)
    stop_on_403: bool = _opt(False, "StopOn403", "stop_on_403")
    stop_on_all: bool = _opt(False, "StopOnAll", "stop_on_all")
    stop_on_errors: bool = _opt(False, "StopOnErrors", "stop_on_errors")
    threads: int = _opt(40, "Threads", "threads")
    verbose: bool = _opt(False, "Verbose", "verbose")


@dataclass
class HTTPOptions:
    """Options controlling the HTTP request."""

    cookies: list[str] = _opt([], "Cookies", None)
    data: str = _opt("", "Data", "data")
    follow_redirects: bool = _opt(False, "FollowRedirects", "follow_redirects")
    headers: list[str] = _opt([], "Headers", "headers")
    ignore_body: bool = _opt(False, "IgnoreBody", "ignore_body")
    method: str = _opt("", "Method", "method")
    proxy_url: str = _opt("", "ProxyURL", "proxy_url")
    recursion: bool = _opt(False, "Recursion", "recursion")
    recursion_depth: int = _opt(0, "RecursionDepth", "recursion_depth")
    recursion_strategy: str = _opt("default", "RecursionStrategy", "recursion_strategy")
    replay_proxy_url: str = _opt("", "ReplayProxyURL", "replay_proxy_url")
    sni: str = _opt("", "SNI", "sni")
    timeout: int = _opt(10, "Timeout", "timeout")
    url: str = _opt("", "URL", "url")
    http2: bool = _opt(False, "Http2", "http2")


@dataclass
class InputOptions:
    """Options for input data."""

    dirsearch_compat: bool = _opt(False, "DirSearchCompat", "dirsearch_compat")
    extensions: str = _opt("", "Extensions", "extensions")
    ignore_wordlist_comments: bool = _opt(
        False, "IgnoreWordlistComments", "ignore_wordlist_comments"
    )
    input_mode: str = _opt("clusterbomb", "InputMode", "input_mode")
    input_num: int = _opt(100, "InputNum", "input_num")
    input_shell: str = _opt("", "InputShell", "input_shell")
    input_commands: list[str] = _opt([], "Inputcommands", "input_commands")
    request: str = _opt("", "Request", "request_file")
    request_proto: str = _opt("https", "RequestProto", "request_proto")
    wordlists: list[str] = _opt([], "Wordlists", "wordlists")


@dataclass
class OutputOptions:
    """Options for output files."""

    debug_log: str = _opt("", "DebugLog", "debug_log")
    output_directory: str = _opt("", "OutputDirectory", "output_directory")
    output_file: str = _opt("", "OutputFile", "output_file")
    output_format: str = _opt("json", "OutputFormat", "output_format")
    output_skip_empty_file: bool = _opt(False, "OutputSkipEmptyFile", "output_skip_empty")


def _section(cls: type, go: str, json_key: str) -> Any:
    return field(default_factory=cls, metadata={"go": go, "json": json_key})


@dataclass
class ConfigOptions:
    """All options, grouped in sections."""

    filter: FilterOptions = _section(FilterOptions, "Filter", "filters")
    general: GeneralOptions = _section(GeneralOptions, "General", "general")
    http: HTTPOptions = _section(HTTPOptions, "HTTP", "http")
    input: InputOptions = _section(InputOptions, "Input", "input")
    matcher: MatcherOptions = _section(MatcherOptions, "Matcher", "matchers")
    output: OutputOptions = _section(OutputOptions, "Output", "output")

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return the JSON representation of the options."""
        result: dict[str, dict[str, Any]] = {}
        for sf in fields(self):
            section = getattr(self, sf.name)
            result[sf.metadata["json"]] = {
                f.metadata["json"]: _export(getattr(section, f.name))
                for f in fields(section)
                if f.metadata["json"] is not None
            }
        return result


def _export(value: Any) -> Any:
    return list(value) if isinstance(value, list) else value


def _checked(value: Any, kind: type, key: str) -> Any:
    if kind is list:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"option {key} must be a list of strings")
        return list(value)
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"option {key} must be an integer")
        return value
    if not isinstance(value, kind):
        raise ValueError(f"option {key} must be of type {kind.__name__}")
    return value


def config_options_from_dict(data: Mapping[str, Any]) -> ConfigOptions:
    """Build options from their JSON representation; raise ``ValueError`` on bad types."""
    if not isinstance(data, Mapping):
        raise ValueError("options must be a JSON object")
    opts = ConfigOptions()
    for sf in fields(opts):
        raw = data.get(sf.metadata["json"])
        if raw is None:
            continue
        if not isinstance(raw, Mapping):
            raise ValueError(f"section {sf.metadata['json']} must be a JSON object")
        section = getattr(opts, sf.name)
        for f in fields(section):
            key = f.metadata["json"]
            if key is None or key not in raw:
                continue
            value = raw[key]
            kind = f.metadata["kind"]
            if value is None:
                if kind is list:
                    setattr(section, f.name, [])
                continue
            setattr(section, f.name, _checked(value, kind, key))
    return opts


def new_config_options() -> ConfigOptions:
    """Return options holding the default values."""
    return ConfigOptions()


def _toml_lookup(table: Mapping[str, Any], name: str) -> tuple[bool, Any]:
    candidates = (name, name.lower(), name.upper(), name[0].lower() + name[1:])
    for candidate in candidates:
        if candidate in table:
            return True, table[candidate]
    return False, None


def _apply_toml(opts: ConfigOptions, data: Mapping[str, Any]) -> None:
    for sf in fields(opts):
        found, raw = _toml_lookup(data, sf.metadata["go"])
        if not found:
            continue
        if not isinstance(raw, Mapping):
            raise ValueError(f"section {sf.metadata['go']} must be a table")
        section = getattr(opts, sf.name)
        for f in fields(section):
            if not f.metadata["toml"]:
                continue
            found, value = _toml_lookup(raw, f.metadata["go"])
            if found:
                setattr(section, f.name, _checked(value, f.metadata["kind"], f.metadata["go"]))


def read_config(config_file: str | os.PathLike[str]) -> ConfigOptions:
    """Read a TOML configuration file over the default options.

    Raises ``OSError`` if the file cannot be read and ``ValueError`` if it is malformed.
    """
    opts = new_config_options()
    with open(config_file, "rb") as handle:
        data = tomllib.load(handle)
    _apply_toml(opts, data)
    return opts


def read_default_config() -> ConfigOptions:
    """Read the default configuration file from the config or home directory."""
    with contextlib.suppress(OSError):
        util.check_or_create_config_dir()
    conffile = Path(util.CONFIG_DIR) / "ffufrc"
    if not util.file_exists(conffile):
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            pass
        else:
            conffile = home / ".ffufrc"
    return read_config(conffile)