import pytest

from ffuf import util
from ffuf.options import (
    ConfigOptions,
    config_options_from_dict,
    new_config_options,
    read_config,
    read_default_config,
)


def test_defaults():
    opts = new_config_options()
    assert opts.general.threads == 40
    assert opts.matcher.status == "200,204,301,302,307,401,403,405,500"
    assert opts.input.input_num == 100
    assert opts.input.input_mode == "clusterbomb"
    assert opts.output.output_format == "json"
    assert opts.http.timeout == 10
    assert opts.general.autocalibration_keyword == "FUZZ"


def test_to_dict_sections_in_order():
    data = new_config_options().to_dict()
    assert list(data) == ["filters", "general", "http", "input", "matchers", "output"]


def test_to_dict_excluded_fields():
    opts = new_config_options()
    opts.http.cookies = ["a=b"]
    opts.general.searchhash = "abcdef1"
    opts.general.config_file = "/tmp/ffufrc"
    data = opts.to_dict()
    assert "cookies" not in data["http"]
    assert "searchhash" not in data["general"]
    assert "show_version" not in data["general"]
    assert data["general"]["config_file"] == "/tmp/ffufrc"
    assert data["input"]["request_file"] == ""


def test_dict_round_trip():
    opts = new_config_options()
    opts.http.url = "https://example.com/FUZZ"
    opts.http.headers = ["Host: FUZZ"]
    opts.general.threads = 5
    opts.general.stop_on_all = True
    opts.input.wordlists = ["/tmp/words.txt:FUZZ"]
    opts.filter.size = "42"
    assert config_options_from_dict(opts.to_dict()) == opts


def test_from_dict_null_list_becomes_empty():
    opts = config_options_from_dict({"http": {"headers": None, "url": "x"}})
    assert opts.http.headers == []
    assert opts.http.url == "x"


def test_from_dict_bad_type_raises():
    with pytest.raises(ValueError):
        config_options_from_dict({"general": {"threads": True}})
    with pytest.raises(ValueError):
        config_options_from_dict({"general": "nope"})


def test_read_config(tmp_path):
    path = tmp_path / "ffufrc"
    path.write_text(
        "[http]\n"
        'url = "https://example.com/FUZZ"\n'
        "followRedirects = true\n"
        'headers = ["Host: example.com"]\n'
        "[general]\n"
        "threads = 10\n"
        'configfile = "/ignored"\n'
        "[matcher]\n"
        'status = "all"\n'
    )
    opts = read_config(path)
    assert opts.http.url == "https://example.com/FUZZ"
    assert opts.http.follow_redirects is True
    assert opts.http.headers == ["Host: example.com"]
    assert opts.general.threads == 10
    assert opts.general.config_file == ""
    assert opts.matcher.status == "all"
    assert opts.input.input_num == 100


def test_read_config_bad_type(tmp_path):
    path = tmp_path / "ffufrc"
    path.write_text('[general]\nthreads = "many"\n')
    with pytest.raises(ValueError):
        read_config(path)


def test_read_config_section_not_table(tmp_path):
    path = tmp_path / "ffufrc"
    path.write_text("general = 5\n")
    with pytest.raises(ValueError):
        read_config(path)


def test_read_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_config(tmp_path / "missing")


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    cfg = tmp_path / "cfg"
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(util, "CONFIG_DIR", cfg)
    monkeypatch.setattr(util, "HISTORY_DIR", cfg / "history")
    monkeypatch.setattr(util, "SCRAPER_DIR", cfg / "scraper")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return cfg, home


def test_read_default_config_from_config_dir(config_home):
    cfg, _home = config_home
    cfg.mkdir()
    (cfg / "ffufrc").write_text("[general]\nthreads = 7\n")
    opts = read_default_config()
    assert opts.general.threads == 7
    assert (cfg / "history").is_dir()


def test_read_default_config_from_home(config_home):
    _cfg, home = config_home
    (home / ".ffufrc").write_text("[http]\ntimeout = 3\n")
    opts = read_default_config()
    assert opts.http.timeout == 3
    assert isinstance(opts, ConfigOptions) and opts.general.threads == 40