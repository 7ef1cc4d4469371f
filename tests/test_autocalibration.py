import threading
from types import SimpleNamespace

import pytest

from ffuf.autocalibration import CalibrationMixin
from ffuf.config import Config
from ffuf.interfaces import FilterProvider, MatcherManager
from ffuf.request import copy_request
from ffuf.util import host_url_from_request

_ATTRS = {"size": "content_length", "word": "content_words", "line": "content_lines"}


class FakeFilter(FilterProvider):
    def __init__(self, name, option):
        self.name = name
        self.option = option

    def filter(self, response):
        attr = _ATTRS.get(self.name)
        if attr is None:
            return True
        return getattr(response, attr) == int(self.option)

    def repr(self):
        return self.option

    def repr_verbose(self):
        return f"{self.name}: {self.option}"


class FakeManager(MatcherManager):
    def __init__(self):
        self.filters = {}
        self.domain_filters = {}
        self.is_calibrated = False
        self.hosts = {}

    def set_calibrated(self, calibrated):
        self.is_calibrated = calibrated

    def set_calibrated_for_host(self, host, calibrated):
        self.hosts[host] = calibrated

    def add_filter(self, name, option, replace):
        self.filters[name] = FakeFilter(name, option)

    def add_per_domain_filter(self, domain, name, option):
        self.domain_filters.setdefault(domain, {})[name] = FakeFilter(name, option)

    def remove_filter(self, name):
        self.filters.pop(name, None)

    def add_matcher(self, name, option):
        pass

    def get_filters(self):
        return self.filters

    def get_matchers(self):
        return {}

    def filters_for_domain(self, domain):
        return self.domain_filters.get(domain, {})

    def calibrated_for_domain(self, domain):
        return self.hosts.get(domain, False)

    def calibrated(self):
        return self.is_calibrated


class FakeRunner:
    def __init__(self, make_response, fail_prepare=False):
        self.make_response = make_response
        self.fail_prepare = fail_prepare
        self.calls = 0

    def prepare(self, input, basereq):
        if self.fail_prepare:
            raise ValueError("broken")
        req = copy_request(basereq)
        req.input = dict(input)
        req.host = "example.com"
        return req

    def execute(self, req):
        self.calls += 1
        value = req.input["FUZZ"].decode()
        length, words, lines = self.make_response(value)
        return SimpleNamespace(
            content_length=length, content_words=words, content_lines=lines, request=req
        )


class FakeOutput:
    def __init__(self):
        self.errors = []

    def error(self, errstring):
        self.errors.append(errstring)


class FakeJob(CalibrationMixin):
    def __init__(self, config, runner, match=True):
        self.config = config
        self.runner = runner
        self.output = FakeOutput()
        self.error_count = 0
        self._calib_lock = threading.Lock()
        self._match = match

    def _inc_error(self):
        self.error_count += 1

    def is_match(self, resp):
        return self._match


def make_config(**kwargs):
    kwargs.setdefault("autocalibration", True)
    return Config(
        url="http://example.com/dir/FUZZ",
        matcher_manager=FakeManager(),
        **kwargs,
    )


def test_basic_strings():
    job = FakeJob(make_config(), FakeRunner(lambda v: (1, 1, 1)))
    strings = job.autocalibration_strings()
    assert set(strings) == {"basic_admin", "htaccess", "basic_random"}
    assert all(len(v) == 2 for v in strings.values())
    assert all(s.startswith("admin") for s in strings["basic_admin"])
    assert all(s.startswith(".htaccess") for s in strings["htaccess"])
    assert sorted(len(s) for s in strings["basic_random"]) == [8, 16]


def test_advanced_strings_add_directories():
    conf = make_config(autocalibration_strategy="advanced")
    strings = FakeJob(conf, FakeRunner(lambda v: (1, 1, 1))).autocalibration_strings()
    assert {"admin_dir", "random_dir"} <= set(strings)
    assert all(s.endswith("/") for s in strings["admin_dir"] + strings["random_dir"])


def test_custom_strings():
    conf = make_config(autocalibration_strings=["one", "two"])
    strings = FakeJob(conf, FakeRunner(lambda v: (1, 1, 1))).autocalibration_strings()
    assert strings == {"custom": ["one", "two"]}


def test_calibrate_adds_size_filter():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (42, len(v), 3)))
    job.calibrate({"FUZZ": b"x"})
    manager = conf.matcher_manager
    assert manager.filters["size"].repr() == "42"
    assert manager.is_calibrated is True


def test_calibrate_falls_back_to_words():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (len(v), 7, len(v))))
    job.calibrate({"FUZZ": b"x"})
    assert set(conf.matcher_manager.filters) == {"word"}
    assert conf.matcher_manager.filters["word"].repr() == "7"


def test_calibrate_without_common_values_adds_nothing():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (len(v), len(v), len(v))))
    job.calibrate({"FUZZ": b"x"})
    assert conf.matcher_manager.filters == {}
    assert conf.matcher_manager.is_calibrated is True


def test_existing_filter_prevents_new_one():
    conf = make_config()
    conf.matcher_manager.add_filter("status", "200", False)
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1)))
    job.calibrate({"FUZZ": b"x"})
    assert set(conf.matcher_manager.filters) == {"status"}


def test_unmatched_responses_are_ignored():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1)), match=False)
    job.calibrate({"FUZZ": b"x"})
    assert conf.matcher_manager.filters == {}


def test_calibrate_skipped_when_already_calibrated():
    conf = make_config()
    conf.matcher_manager.set_calibrated(True)
    runner = FakeRunner(lambda v: (42, 1, 1))
    job = FakeJob(conf, runner)
    assert job.calibrate({"FUZZ": b"x"}) is None
    assert runner.calls == 0
    assert conf.matcher_manager.filters == {}
    assert job.output.errors == []


def test_calibrate_does_not_change_callers_input():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1)))
    given = {"FUZZ": b"original"}
    job.calibrate(given)
    assert given == {"FUZZ": b"original"}


def test_calibrate_if_needed_disabled():
    conf = make_config(autocalibration=False)
    runner = FakeRunner(lambda v: (42, 1, 1))
    FakeJob(conf, runner).calibrate_if_needed("example.com", {"FUZZ": b"x"})
    assert runner.calls == 0
    assert conf.matcher_manager.is_calibrated is False


def test_calibrate_for_host_requires_keyword():
    conf = make_config(autocalibration_per_host=True)
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1)))
    with pytest.raises(ValueError, match="FUZZ"):
        job.calibrate_if_needed("example.com", {"OTHER": b"x"})


def test_calibrate_per_host_adds_domain_filter():
    conf = make_config(autocalibration_per_host=True)
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1)))
    job.calibrate_if_needed("example.com/dir", {"FUZZ": b"x"})
    manager = conf.matcher_manager
    assert manager.filters == {}
    assert len(manager.domain_filters) == 1
    domain, filters = next(iter(manager.domain_filters.items()))
    req = copy_request(next(iter([job.runner.prepare({"FUZZ": b"x"}, _base(conf))])))
    assert domain == host_url_from_request(req)
    assert filters["size"].repr() == "42"
    assert manager.hosts["example.com/dir"] is True


def _base(conf):
    from ffuf.request import base_request

    return base_request(conf)


def test_prepare_failure_is_reported():
    conf = make_config()
    job = FakeJob(conf, FakeRunner(lambda v: (42, 1, 1), fail_prepare=True))
    job.calibrate({"FUZZ": b"x"})
    assert job.error_count == 6
    assert all("preparing autocalibration request" in e for e in job.output.errors)
    assert conf.matcher_manager.filters == {}