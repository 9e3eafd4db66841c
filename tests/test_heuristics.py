import re

import pytest
import requests
import responses

from ferox.constants import OutputLevel
from ferox.context import ScanContext
from ferox.filters import U64_MAX, StatusCodeFilter, WildcardFilter
from ferox.heuristics import HeuristicTests

ANY_PATH = re.compile(r"http://localhost/\w+")


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def _tester(**kwargs):
    context = ScanContext(**kwargs)
    return HeuristicTests(context), context


@pytest.mark.parametrize("count", range(10))
def test_unique_string_returns_correct_length(count):
    tester, _ = _tester()
    assert len(tester.unique_string(count)) == count * 32


def test_unique_string_is_lowercase_hex_and_random():
    tester, _ = _tester()
    first = tester.unique_string(2)
    second = tester.unique_string(2)
    assert re.fullmatch(r"[0-9a-f]{64}", first)
    assert first != second
    assert len({first, second}) == 2


def test_wildcard_with_dont_filter_makes_no_requests(mocked):
    tester, context = _tester(dont_filter=True)
    assert tester.wildcard("http://localhost/") == 0
    assert len(mocked.calls) == 0
    assert context.filters.filters == []


def test_wildcard_with_uninteresting_status_raises(mocked):
    mocked.add(responses.GET, ANY_PATH, status=404, body="nope")
    tester, context = _tester()
    with pytest.raises(ValueError, match="uninteresting status code"):
        tester.wildcard("http://localhost/")
    assert context.filters.filters == []


def test_wildcard_with_empty_body_returns_one(mocked):
    mocked.add(responses.GET, ANY_PATH, status=200, body="")
    tester, context = _tester()
    assert tester.wildcard("http://localhost/") == 1
    assert len(mocked.calls) == 1
    assert context.filters.filters == [WildcardFilter()]


def test_wildcard_static_sets_size(mocked):
    body = "this page is always the same"
    mocked.add(responses.GET, ANY_PATH, status=200, body=body)
    tester, context = _tester()
    assert tester.wildcard("http://localhost/") == 2
    [wildcard] = context.filters.filters
    assert wildcard.size == len(body)
    assert wildcard.dynamic == U64_MAX
    assert len(context.reported) == 2
    assert all(resp.wildcard for resp in context.reported)


def test_wildcard_dynamic_sets_dynamic(mocked):
    def reflect(request):
        segment = request.path_url.rsplit("/", 1)[-1]
        return 200, {}, "prefix-" + segment

    mocked.add_callback(responses.GET, ANY_PATH, callback=reflect)
    tester, context = _tester()
    assert tester.wildcard("http://localhost/") == 2
    [wildcard] = context.filters.filters
    assert wildcard.dynamic == 39
    assert wildcard.size == U64_MAX


def test_wildcard_silent_does_not_report(mocked):
    mocked.add(responses.GET, ANY_PATH, status=200, body="static body")
    tester, context = _tester(output_level=OutputLevel.SILENT)
    assert tester.wildcard("http://localhost/") == 2
    assert context.reported == []


def test_make_wildcard_request_raises_when_filtered(mocked):
    mocked.add(responses.GET, ANY_PATH, status=200, body="hi")
    tester, context = _tester()
    context.filters.push(StatusCodeFilter(filter_code=200))
    with pytest.raises(ValueError, match="filtered response"):
        tester.make_wildcard_request("http://localhost/", 1)
    assert context.reported == []


def test_make_wildcard_request_marks_wildcard(mocked):
    mocked.add(responses.GET, ANY_PATH, status=200, body="hello")
    tester, _ = _tester()
    response = tester.make_wildcard_request("http://localhost/", 2)
    assert response.wildcard is True
    assert response.status == 200
    requested = mocked.calls[0].request.url
    assert re.fullmatch(r"http://localhost/[0-9a-f]{64}", requested)


def test_connectivity_keeps_only_live_targets(mocked, capsys):
    mocked.add(responses.GET, "http://localhost/", status=200, body="up")
    mocked.add(
        responses.GET,
        "http://down.example.com/",
        body=requests.ConnectionError("refused"),
    )
    tester, _ = _tester()
    good = tester.connectivity(["http://localhost/", "http://down.example.com/"])
    assert good == ["http://localhost/"]
    assert "Could not connect to http://down.example.com/, skipping..." in capsys.readouterr().out


def test_connectivity_reports_ssl_errors(mocked, capsys):
    mocked.add(responses.GET, "http://localhost/", status=200, body="up")
    mocked.add(
        responses.GET,
        "https://tls.example.com/",
        body=requests.exceptions.SSLError("certificate verify failed"),
    )
    tester, _ = _tester()
    good = tester.connectivity(["https://tls.example.com/", "http://localhost/"])
    assert good == ["http://localhost/"]
    assert "due to SSL errors" in capsys.readouterr().out


def test_connectivity_raises_when_nothing_answers(mocked):
    mocked.add(
        responses.GET,
        "http://down.example.com/",
        body=requests.ConnectionError("refused"),
    )
    tester, _ = _tester()
    with pytest.raises(ConnectionError, match="Could not connect to any target provided"):
        tester.connectivity(["http://down.example.com/", "not a url"])


def test_connectivity_skips_invalid_urls(mocked):
    mocked.add(responses.GET, "http://localhost/", status=500, body="oops")
    tester, _ = _tester()
    assert tester.connectivity(["not a url", "http://localhost/"]) == ["http://localhost/"]