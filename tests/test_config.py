import json
import threading

from ffuf.config import Config, InputProviderConfig
from ffuf.interfaces import FilterProvider, MatcherManager
from ffuf.options import config_options_from_dict
from ffuf.optrange import OptRange


class _Filter(FilterProvider):
    def __init__(self, value):
        self.value = value

    def filter(self, response):
        return False

    def repr(self):
        return self.value

    def repr_verbose(self):
        return f"Value: {self.value}"


class _Manager(MatcherManager):
    def __init__(self, filters, matchers):
        self.filters = filters
        self.matchers = matchers

    def set_calibrated(self, calibrated):
        self.is_calibrated = calibrated

    def set_calibrated_for_host(self, host, calibrated):
        self.host_calibrated = (host, calibrated)

    def add_filter(self, name, option, replace):
        self.filters[name] = _Filter(option)

    def add_per_domain_filter(self, domain, name, option):
        self.filters[name] = _Filter(option)

    def remove_filter(self, name):
        self.filters.pop(name, None)

    def add_matcher(self, name, option):
        self.matchers[name] = _Filter(option)

    def get_filters(self):
        return self.filters

    def get_matchers(self):
        return self.matchers

    def filters_for_domain(self, domain):
        return self.filters

    def calibrated_for_domain(self, domain):
        return False

    def calibrated(self):
        return False


def test_defaults():
    conf = Config()
    assert conf.method == "GET"
    assert conf.input_mode == "clusterbomb"
    assert conf.progress_frequency == 125
    assert conf.request_proto == "https"
    assert conf.timeout == 10
    assert conf.scrapers == "all"
    assert conf.autocalibration_keyword == "FUZZ"
    assert conf.recursion_strategy == "default"


def test_cancel_sets_context():
    conf = Config()
    assert not conf.context.is_set()
    conf.cancel()
    assert conf.context.is_set()


def test_set_context():
    conf = Config()
    event = threading.Event()
    conf.set_context(event, event.set)
    conf.cancel()
    assert event.is_set()
    assert conf.context is event


def test_to_options_headers_and_commands():
    conf = Config(
        headers={"Content-Type": "application/json"},
        input_providers=[
            InputProviderConfig(name="command", keyword="FUZZ", value="seq 1 10"),
            InputProviderConfig(name="wordlist", keyword="W2", value="/tmp/w.txt"),
        ],
        extensions=[".php", ".html"],
        url="https://example.com/FUZZ",
    )
    opts = conf.to_options()
    assert opts.http.headers == ["Content-Type: application/json"]
    assert opts.input.input_commands == ["seq 1 10:FUZZ"]
    assert opts.input.extensions == ".php,.html"
    assert opts.http.url == "https://example.com/FUZZ"
    assert opts.general.config_file == ""


def test_to_options_delay():
    conf = Config(delay=OptRange(min=0.1, max=0.5, is_range=True, has_delay=True))
    assert conf.to_options().general.delay == "0.10-0.50"
    conf = Config(delay=OptRange(min=0.1, max=0.1, is_range=False, has_delay=True))
    assert conf.to_options().general.delay == "0.10"
    assert Config().to_options().general.delay == ""


def test_to_options_filters_and_matchers():
    manager = _Manager(
        filters={"size": _Filter("42"), "regexp": _Filter("error")},
        matchers={"status": _Filter("200,301")},
    )
    opts = Config(matcher_manager=manager).to_options()
    assert opts.filter.size == "42"
    assert opts.filter.regexp == "error"
    assert opts.matcher.status == "200,301"
    assert opts.filter.status == ""


def test_options_dict_round_trip():
    conf = Config(
        url="https://example.com/FUZZ",
        wordlists=["/tmp/words.txt:FUZZ"],
        threads=40,
        autocalibration_strings=["abc"],
    )
    opts = conf.to_options()
    assert config_options_from_dict(opts.to_dict()) == opts


def test_to_dict_json_serialisable():
    conf = Config(
        command_line="ffuf -u https://example.com/FUZZ",
        output_skip_empty_file=True,
        input_providers=[InputProviderConfig(name="wordlist", keyword="FUZZ", value="w")],
    )
    data = json.loads(json.dumps(conf.to_dict()))
    assert data["cmdline"] == "ffuf -u https://example.com/FUZZ"
    assert data["OutputSkipEmptyFile"] is True
    assert data["delay"] == conf.delay.to_json()
    assert data["inputproviders"][0]["keyword"] == "FUZZ"
    assert data["matchers"] is None
    assert "cancel" not in data and "progress_frequency" not in data