"""Validation of user options and construction of the runtime configuration."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from ffuf import util
from ffuf.config import Config, InputProviderConfig
from ffuf.multierror import Multierror
from ffuf.options import ConfigOptions
from ffuf.optrange import OptRange

_INPUT_MODES = ("clusterbomb", "pitchfork", "sniper")
_OUTPUT_FORMATS = ("all", "json", "ejson", "html", "md", "csv", "ecsv")
_OP_MODES = ("and", "or")
_PROXY_SCHEMES = frozenset({"http", "https", "socks5"})
_REPLAY_PROXY_SCHEMES = frozenset({"http", "https", "socks5", "socks5h"})
_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_SNIPER_TEMPLATE = "§"


@dataclass(frozen=True)
class _ParsedURL:
    scheme: str
    opaque: str
    host: str


def _split_scheme(raw: str) -> tuple[str, str]:
    for index, char in enumerate(raw):
        if char.isascii() and char.isalpha():
            continue
        if char.isascii() and (char.isdigit() or char in "+-."):
            if index == 0:
                return "", raw
            continue
        if char == ":":
            if index == 0:
                raise ValueError("missing protocol scheme")
            return raw[:index].lower(), raw[index + 1:]
        return "", raw
    return "", raw


def _valid_optional_port(port: str) -> bool:
    if port == "":
        return True
    return port.startswith(":") and all(c in "0123456789" for c in port[1:])


def _parse_authority(authority: str) -> str:
    host = authority.rpartition("@")[2]
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            raise ValueError("missing ']' in host")
        if not _valid_optional_port(host[end + 1:]):
            raise ValueError(f"invalid port after host: {host[end + 1:]}")
    else:
        colon = host.rfind(":")
        if colon != -1 and not _valid_optional_port(host[colon:]):
            raise ValueError(f"invalid port {host[colon:]} after host")
    return host


def _parse_url(raw: str) -> _ParsedURL:
    """Split a URL into scheme, opaque part and host, rejecting malformed input."""
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in raw):
        raise ValueError("invalid control character in URL")
    raw = raw.partition("#")[0]
    scheme, rest = _split_scheme(raw)
    rest = rest.partition("?")[0]
    if not rest.startswith("/"):
        if scheme:
            return _ParsedURL(scheme, rest, "")
        if ":" in rest.partition("/")[0]:
            raise ValueError("first path segment in URL cannot contain colon")
    host = ""
    if (scheme or not rest.startswith("///")) and rest.startswith("//"):
        authority = rest[2:].partition("/")[0]
        host = _parse_authority(authority)
    return _ParsedURL(scheme, "", host)


def _valid_proxy(url: str, schemes: frozenset[str]) -> bool:
    try:
        parsed = _parse_url(url)
    except ValueError:
        return False
    return parsed.opaque == "" and parsed.scheme in schemes


def _canonical_header_key(key: str) -> str:
    """Canonicalise a MIME header key; keys with non-token characters stay as is."""
    if any(char not in _TOKEN_CHARS for char in key):
        return key
    out = []
    upper = True
    for char in key:
        if upper and "a" <= char <= "z":
            char = char.upper()
        elif not upper and "A" <= char <= "Z":
            char = char.lower()
        out.append(char)
        upper = char == "-"
    return "".join(out)


def _split_wordlist(value: str) -> list[str]:
    if os.name != "nt":
        return value.split(":", 1)
    # Windows paths contain a drive colon, so look for the file first.
    if util.file_exists(value):
        return [value]
    cut = value.rfind(":")
    filepart = value[:cut] if cut != -1 else value
    if util.file_exists(filepart):
        return [filepart, value[cut + 1:]]
    return [value]


def config_from_options(parse_opts: ConfigOptions) -> Config:
    """Validate options and build a ``Config``; raise ``AggregateError`` on problems."""
    errs = Multierror()
    conf = Config()

    if not parse_opts.http.url and not parse_opts.input.request:
        errs.add("-u flag or -request flag is required")

    if parse_opts.input.extensions:
        conf.extensions = parse_opts.input.extensions.split(",")

    headers = list(parse_opts.http.headers)
    if parse_opts.http.cookies:
        headers.append("Cookie: " + "; ".join(parse_opts.http.cookies))

    conf.input_mode = parse_opts.input.input_mode
    if conf.input_mode not in _INPUT_MODES:
        errs.add(f"Input mode (-mode) {conf.input_mode} not recognized")

    template = ""
    if conf.input_mode == "sniper":
        template = _SNIPER_TEMPLATE
        if len(parse_opts.input.wordlists) > 1:
            errs.add("sniper mode only supports one wordlist")
        if len(parse_opts.input.input_commands) > 1:
            errs.add("sniper mode only supports one input command")

    wordlists = []
    for value in parse_opts.input.wordlists:
        wl = _split_wordlist(value)
        if wl[0] != "-":
            wl[0] = os.path.abspath(wl[0])
        if len(wl) == 2:
            if conf.input_mode == "sniper":
                errs.add("sniper mode does not support wordlist keywords")
            else:
                conf.input_providers.append(
                    InputProviderConfig(name="wordlist", value=wl[0], keyword=wl[1])
                )
        else:
            conf.input_providers.append(
                InputProviderConfig(
                    name="wordlist", value=wl[0], keyword="FUZZ", template=template
                )
            )
        wordlists.append(":".join(wl))
    conf.wordlists = wordlists

    for value in parse_opts.input.input_commands:
        ic = value.split(":", 1)
        if len(ic) == 2:
            if conf.input_mode == "sniper":
                errs.add("sniper mode does not support command keywords")
            else:
                conf.input_providers.append(
                    InputProviderConfig(name="command", value=ic[0], keyword=ic[1])
                )
                conf.command_keywords.append(ic[0])
        else:
            conf.input_providers.append(
                InputProviderConfig(
                    name="command", value=ic[0], keyword="FUZZ", template=template
                )
            )
            conf.command_keywords.append("FUZZ")

    if not conf.input_providers:
        errs.add("Either -w or --input-cmd flag is required")

    if parse_opts.input.request:
        try:
            parse_raw_request(parse_opts, conf)
        except ValueError as exc:
            errs.add(f"Could not parse raw request: {exc}")

    if parse_opts.http.url:
        conf.url = parse_opts.http.url
    if parse_opts.http.sni:
        conf.sni = parse_opts.http.sni

    for header in headers:
        hs = header.split(":", 1)
        if len(hs) != 2:
            errs.add(
                'Header defined by -H needs to have a value. ":" should be used as a separator'
            )
            continue
        name, value = hs
        canonical = not any(kw in name for kw in conf.command_keywords) and not any(
            p.keyword in name for p in conf.input_providers
        )
        if canonical:
            conf.headers[_canonical_header_key(name.strip())] = value.strip()
        else:
            conf.headers[name.strip()] = value.strip()

    delay = OptRange()
    try:
        delay.initialize(parse_opts.general.delay)
    except ValueError as exc:
        errs.add(exc)
    conf.delay = delay

    if parse_opts.http.proxy_url:
        if _valid_proxy(parse_opts.http.proxy_url, _PROXY_SCHEMES):
            conf.proxy_url = parse_opts.http.proxy_url
        else:
            errs.add("Bad proxy url (-x) format. Expected http, https or socks5 url")

    if parse_opts.http.replay_proxy_url:
        if _valid_proxy(parse_opts.http.replay_proxy_url, _REPLAY_PROXY_SCHEMES):
            conf.replay_proxy_url = parse_opts.http.replay_proxy_url
        else:
            errs.add(
                "Bad replay-proxy url (-replay-proxy) format. "
                "Expected http, https or socks5 url"
            )

    if parse_opts.output.output_file:
        if parse_opts.output.output_format in _OUTPUT_FORMATS:
            conf.output_format = parse_opts.output.output_format
        else:
            errs.add(
                f"Unknown output file format (-of): {parse_opts.output.output_format}"
            )

    if parse_opts.general.autocalibration_strings:
        conf.autocalibration_strings = list(parse_opts.general.autocalibration_strings)
        conf.autocalibration = True

    conf.rate = max(0, parse_opts.general.rate)

    if conf.method == "":
        conf.method = parse_opts.http.method or "GET"
    elif parse_opts.http.method:
        conf.method = parse_opts.http.method

    if parse_opts.http.data:
        conf.data = parse_opts.http.data

    conf.ignore_wordlist_comments = parse_opts.input.ignore_wordlist_comments
    conf.dirsearch_compat = parse_opts.input.dirsearch_compat
    conf.colors = parse_opts.general.colors
    conf.input_num = parse_opts.input.input_num
    conf.input_shell = parse_opts.input.input_shell
    conf.output_file = parse_opts.output.output_file
    conf.output_directory = parse_opts.output.output_directory
    conf.output_skip_empty_file = parse_opts.output.output_skip_empty_file
    conf.ignore_body = parse_opts.http.ignore_body
    conf.quiet = parse_opts.general.quiet
    conf.scraper_file = parse_opts.general.scraper_file
    conf.scrapers = parse_opts.general.scrapers
    conf.stop_on_403 = parse_opts.general.stop_on_403
    conf.stop_on_all = parse_opts.general.stop_on_all
    conf.stop_on_errors = parse_opts.general.stop_on_errors
    conf.follow_redirects = parse_opts.http.follow_redirects
    conf.recursion = parse_opts.http.recursion
    conf.recursion_depth = parse_opts.http.recursion_depth
    conf.recursion_strategy = parse_opts.http.recursion_strategy
    conf.autocalibration = parse_opts.general.autocalibration
    conf.autocalibration_per_host = parse_opts.general.autocalibration_per_host
    conf.autocalibration_strategy = parse_opts.general.autocalibration_strategy
    conf.threads = parse_opts.general.threads
    conf.timeout = parse_opts.http.timeout
    conf.max_time = parse_opts.general.max_time
    conf.max_time_job = parse_opts.general.max_time_job
    conf.noninteractive = parse_opts.general.noninteractive
    conf.verbose = parse_opts.general.verbose
    conf.json = parse_opts.general.json
    conf.http2 = parse_opts.http.http2

    if parse_opts.filter.mode not in _OP_MODES:
        errs.add(
            f"Unrecognized value for parameter fmode: {parse_opts.filter.mode}, "
            "valid values are: and, or"
        )
    if parse_opts.matcher.mode not in _OP_MODES:
        errs.add(
            f"Unrecognized value for parameter mmode: {parse_opts.matcher.mode}, "
            "valid values are: and, or"
        )
    conf.filter_mode = parse_opts.filter.mode
    conf.matcher_mode = parse_opts.matcher.mode

    if conf.autocalibration_per_host:
        conf.autocalibration = True

    # A --data flag implies POST unless a raw request file set the method.
    if conf.data and conf.method == "GET" and not parse_opts.input.request:
        conf.method = "POST"

    conf.command_line = " ".join(sys.argv)

    for provider in conf.input_providers:
        if provider.template:
            if not template_present(provider.template, conf):
                errs.add(
                    f"Template {provider.template} defined, but not found in pairs "
                    "in headers, method, URL or POST data."
                )
        elif not keyword_present(provider.keyword, conf):
            errs.add(
                f"Keyword {provider.keyword} defined, but not found in headers, "
                "method, URL or POST data."
            )

    if conf.input_mode == "sniper" and keyword_present("FUZZ", conf):
        errs.add("FUZZ keyword defined, but we are using sniper mode.")

    if parse_opts.http.recursion and not conf.url.endswith("FUZZ"):
        errs.add("When using -recursion the URL (-u) must end with FUZZ keyword.")

    if parse_opts.general.verbose and parse_opts.general.json:
        errs.add("Cannot have -json and -v")

    errs.raise_for_errors()
    return conf


def _read_line(content: bytes, pos: int) -> tuple[bytes, int, bool]:
    """Return the next line including its newline, the new position and completeness."""
    end = content.find(b"\n", pos)
    if end == -1:
        return content[pos:], len(content), False
    return content[pos:end + 1], end + 1, True


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def parse_raw_request(parse_opts: ConfigOptions, conf: Config) -> None:
    """Fill method, URL, headers and body of ``conf`` from a raw request file.

    Raises ``ValueError`` if the file cannot be read or is malformed.
    """
    conf.request_file = parse_opts.input.request
    conf.request_proto = parse_opts.input.request_proto
    try:
        with open(parse_opts.input.request, "rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise ValueError(f"could not open request file: {exc}") from exc

    first, pos, complete = _read_line(content, 0)
    if not complete:
        raise ValueError("could not read request: EOF")
    parts = _decode(first).split(" ")
    if len(parts) < 3:
        raise ValueError("malformed request supplied")
    conf.method = parts[0]

    while True:
        raw_line, pos, complete = _read_line(content, pos)
        line = _decode(raw_line).strip()
        if not complete or line == "":
            break
        pair = line.split(":", 1)
        if len(pair) != 2:
            continue
        if pair[0].lower() == "content-length":
            continue
        conf.headers[pair[0].strip()] = pair[1].strip()

    target = parts[1]
    if target.startswith("http"):
        try:
            parsed = _parse_url(target)
        except ValueError as exc:
            raise ValueError(f"could not parse request URL: {exc}") from exc
        conf.url = target
        conf.headers["Host"] = parsed.host
    else:
        conf.url = parse_opts.input.request_proto + "://" + conf.headers.get("Host", "") + target

    data = _decode(content[pos:])
    if data.endswith("\r\n"):
        data = data[:-2]
    elif data.endswith("\n"):
        data = data[:-1]
    conf.data = data


def keyword_present(keyword: str, conf: Config) -> bool:
    """Return True if the keyword appears in method, URL, data or headers."""
    if keyword in conf.method or keyword in conf.url or keyword in conf.data:
        return True
    return any(keyword in key or keyword in value for key, value in conf.headers.items())


def template_present(template: str, conf: Config) -> bool:
    """Return True if template markers appear, and only in pairs, somewhere in the request."""
    places = [conf.method, conf.url, conf.data]
    for key, value in conf.headers.items():
        places.extend((key, value))
    sane = False
    for text in places:
        count = text.count(template)
        if count > 0:
            if count % 2 != 0:
                return False
            sane = True
    return sane