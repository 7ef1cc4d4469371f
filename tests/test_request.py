from types import SimpleNamespace

from ffuf.request import (
    Request,
    base_request,
    copy_request,
    inject_keyword,
    recursion_request,
    scrub_templates,
    sniper_requests,
    template_locations,
)


def _config(**kwargs):
    return SimpleNamespace(**kwargs)


def test_base_request():
    headers = {"foo": "bar", "baz": "wibble", "Content-Type": "application/json"}
    data = "{\"quote\":\"I'll still be here tomorrow to high five you yesterday, my friend. Peace.\"}"
    expected = Request(
        method="POST", url="http://example.com/aaaa", headers=headers, data=data.encode()
    )
    conf = _config(method="POST", url="http://example.com/aaaa", headers=headers, data=data)
    assert base_request(conf) == expected


def test_recursion_request_overrides_url():
    conf = _config(method="GET", url="http://example.com/FUZZ", headers={}, data="")
    req = recursion_request(conf, "http://example.com/dir/FUZZ")
    assert req.url == "http://example.com/dir/FUZZ"
    assert req.method == "GET"


def test_copy_request():
    headers = {"foo": "bar", "omg": "bbq"}
    data = "line=Is+that+where+creativity+comes+from?+From+sad+biz?"
    inp = {
        "matthew": "If you are the head that floats atop the §ziggurat§, then the stairs "
        "that lead to you must be infinite.".encode()
    }
    basereq = Request(
        method="POST",
        host="testhost.local",
        url="http://example.com/aaaa",
        headers=headers,
        data=data.encode(),
        input=inp,
        position=2,
        raw="We're not oil and water, we're oil and vinegar! It's good. It's yummy.",
    )
    copied = copy_request(basereq)
    assert copied == basereq
    copied.headers["new"] = "value"
    assert "new" not in basereq.headers


def _sniper_source():
    return Request(
        method="§POST§",
        url="http://example.com/aaaa?param=§lemony§",
        headers={"foo": "§bar§", "§omg§": "bbq"},
        data="line=§yo yo, it's grease§".encode(),
    )


def test_sniper_requests_count():
    assert len(sniper_requests(_sniper_source(), "§")) == 5


def test_sniper_requests_values():
    requests = sniper_requests(_sniper_source(), "§")
    plain = {"foo": "bar", "omg": "bbq"}
    grease = "line=yo yo, it's grease".encode()
    expected = [
        Request(method="FUZZ", url="http://example.com/aaaa?param=lemony",
                headers=plain, data=grease),
        Request(method="POST", url="http://example.com/aaaa?param=FUZZ",
                headers=plain, data=grease),
        Request(method="POST", url="http://example.com/aaaa?param=lemony",
                headers=plain, data=b"line=FUZZ"),
        Request(method="POST", url="http://example.com/aaaa?param=lemony",
                headers={"foo": "FUZZ", "omg": "bbq"}, data=grease),
        Request(method="POST", url="http://example.com/aaaa?param=lemony",
                headers={"foo": "bar", "FUZZ": "bbq"}, data=grease),
    ]
    for exp in expected:
        assert exp in requests


def test_template_locations():
    assert template_locations("§", "this is my 1§template locator§ test") == [12, 29]
    assert template_locations("§", "§template locator§") == [0, 17]
    assert len(template_locations("§", "te§st2")) == 1


def test_inject_keyword():
    text = "§Greetings, creator§"
    offsets = template_locations("§", text)
    assert inject_keyword(text, "FUZZ", offsets[0], offsets[1]) == "FUZZ"

    assert inject_keyword(text, "FUZZ", -32, 44) == text
    assert inject_keyword(text, "FUZZ", 12, 2) == text
    assert inject_keyword(text, "FUZZ", 0, 25) == text

    text = "id=§a§&sort=desc"
    offsets = template_locations("§", text)
    assert inject_keyword(text, "FUZZ", offsets[0], offsets[1]) == "id=FUZZ&sort=desc"

    text = "feature=aaa&thingie=bbb&array[§0§]=baz"
    offsets = template_locations("§", text)
    assert (
        inject_keyword(text, "FUZZ", offsets[0], offsets[1])
        == "feature=aaa&thingie=bbb&array[FUZZ]=baz"
    )


def test_scrub_templates():
    req = _sniper_source()
    expected = Request(
        method="POST",
        url="http://example.com/aaaa?param=lemony",
        headers={"foo": "bar", "omg": "bbq"},
        data="line=yo yo, it's grease".encode(),
    )
    scrub_templates(req, "§")
    assert req == expected