import json
import re

import pytest
import requests
import responses

from ferox.constants import OutputLevel
from ferox.response import (
    DEFAULT_URL,
    FeroxResponse,
    path_length_of_url,
    url_depth,
)

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def strip(text):
    return ANSI.sub("", text)


def make(url):
    resp = FeroxResponse()
    resp.set_url(url)
    return resp


def test_reached_max_depth_returns_early_on_zero():
    assert make("http://localhost").reached_max_depth(0, 0) is False


def test_reached_max_depth_current_depth_equals_max():
    assert make("http://localhost/one/two").reached_max_depth(0, 2) is True


def test_reached_max_depth_current_depth_less_than_max():
    assert make("http://localhost").reached_max_depth(0, 2) is False


def test_reached_max_depth_base_depth_equals_max_depth():
    assert make("http://localhost/one/two").reached_max_depth(2, 2) is False


def test_reached_max_depth_current_greater_than_max():
    assert make("http://localhost/one/two/three").reached_max_depth(0, 2) is True


def test_url_depth_grows_with_each_directory():
    assert url_depth("http://localhost/one/two") == url_depth("http://localhost/one") + 1


def test_url_depth_invalid_url_is_zero():
    assert url_depth("\\\\\\") == 0


def test_path_length_uses_last_segment():
    assert path_length_of_url("http://localhost/stuff") == len("stuff")
    assert path_length_of_url("http://localhost/a/stuff/") == len("stuff")


def test_path_length_of_root_is_zero():
    assert path_length_of_url("http://localhost/") == 0


def test_default_display():
    assert str(FeroxResponse()) == (
        "FeroxResponse { url: http://localhost/, status: 200 OK, content-length: 0 }"
    )


def test_set_url_normalizes_and_rejects_invalid():
    resp = make("http://localhost")
    assert resp.url == DEFAULT_URL
    resp.set_url("\\\\\\")
    assert resp.url == DEFAULT_URL
    resp.set_url("http://localhost/stuff")
    assert resp.url == "http://localhost/stuff"


def test_set_text_counts_lines_words_and_bytes():
    lines = ["nulla pharetra diam", "sit amet", "nisl"]
    text = "\n".join(lines) + "\n"
    resp = FeroxResponse()
    resp.set_text(text)
    assert resp.line_count == len(lines)
    assert resp.word_count == sum(len(line.split()) for line in lines)
    assert resp.content_length == len(text.encode())


def test_set_text_empty_has_no_lines():
    resp = FeroxResponse()
    resp.set_text("")
    assert (resp.line_count, resp.word_count, resp.content_length) == (0, 0, 0)


def test_drop_text_keeps_counts():
    resp = FeroxResponse()
    resp.set_text("some body text")
    length = resp.content_length
    resp.drop_text()
    assert resp.text == ""
    assert resp.content_length == length


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://localhost/some/path/stuff.js", True),
        ("http://localhost/some/path?x=1", True),
        ("http://localhost/some/path/", False),
        ("http://localhost/some/path", False),
    ],
)
def test_is_file(url, expected):
    assert make(url).is_file() is expected


def test_is_directory_for_success_with_slash():
    assert make("http://localhost/dir/").is_directory() is True
    assert make("http://localhost/dir").is_directory() is False


def test_is_directory_for_forbidden_with_slash():
    resp = make("http://localhost/dir/")
    resp.status = 403
    assert resp.is_directory() is True


def test_is_directory_redirect_to_slash():
    resp = make("http://localhost/dir")
    resp.status = 301
    resp.headers = {"location": "/dir/"}
    assert resp.is_directory() is True
    resp.headers = {"location": "/elsewhere/"}
    assert resp.is_directory() is False


def test_is_directory_redirect_without_location():
    resp = make("http://localhost/dir/")
    resp.status = 302
    assert resp.is_directory() is False


def test_as_str_normal_report():
    resp = make("http://localhost/stuff")
    resp.set_text("one two\nthree")
    line = strip(resp.as_str())
    assert line.endswith("http://localhost/stuff\n")
    assert line.startswith("200")
    assert f"{resp.line_count}l" in line
    assert f"{resp.word_count}w" in line
    assert f"{resp.content_length}c" in line


def test_as_str_silent_is_just_url():
    resp = make("http://localhost/stuff")
    resp.output_level = OutputLevel.SILENT
    assert resp.as_str() == "http://localhost/stuff\n"


def test_as_str_wildcard_with_redirect():
    resp = make("http://localhost/stuff")
    resp.wildcard = True
    resp.status = 302
    resp.headers = {"location": "/login"}
    text = strip(resp.as_str())
    lines = text.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("WLD")
    assert f"(url length: {len('stuff')})" in lines[0]
    assert lines[1].endswith("http://localhost/stuff redirects to => /login")


def test_as_str_wildcard_silent_uses_plain_report():
    resp = make("http://localhost/stuff")
    resp.wildcard = True
    resp.output_level = OutputLevel.SILENT
    assert resp.as_str() == "http://localhost/stuff\n"


def test_to_dict_fields():
    resp = make("http://localhost/images")
    resp.headers = {"location": "/images/"}
    data = resp.to_dict()
    assert data["type"] == "response"
    assert data["path"] == "/images"
    assert data["status"] == resp.status
    assert data["headers"] == {"location": "/images/"}


def test_json_round_trip():
    resp = make("http://localhost/api/users")
    resp.status = 301
    resp.set_text("moved to\nsomewhere else")
    resp.wildcard = True
    resp.headers = {"location": "/api/users/", "server": "nginx"}
    encoded = resp.as_json()
    assert encoded.endswith("\n")
    back = FeroxResponse.from_json(encoded)
    assert back.to_dict() == resp.to_dict()
    assert back.text == ""


def test_from_json_ignores_bad_values():
    payload = json.dumps(
        {
            "url": "\\\\\\",
            "status": 70000,
            "content_length": -1,
            "wildcard": "yes",
            "headers": {"bad name": "value", "x-ok": 7},
        }
    )
    resp = FeroxResponse.from_json(payload)
    assert resp.url == DEFAULT_URL
    assert resp.status == 200
    assert resp.content_length == 0
    assert resp.wildcard is False
    assert resp.headers == {"unknown": "value", "x-ok": ""}


def test_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        FeroxResponse.from_json("[1, 2]")


def test_from_http_reads_body():
    with responses.RequestsMock() as mock:
        mock.add(
            responses.GET,
            "http://localhost/login.php",
            body="this is a test",
            status=200,
        )
        raw = requests.get("http://localhost/login.php")
    resp = FeroxResponse.from_http(raw, True, OutputLevel.DEFAULT)
    assert resp.status == 200
    assert resp.content_length == 14
    assert resp.text == "this is a test"
    assert resp.word_count == len("this is a test".split())
    assert resp.url == "http://localhost/login.php"
    assert resp.wildcard is False


def test_from_http_without_body():
    with responses.RequestsMock() as mock:
        mock.add(
            responses.GET,
            "http://localhost/robots.txt",
            body="this is also a test",
            status=404,
            headers={"Content-Length": "19"},
        )
        raw = requests.get("http://localhost/robots.txt")
    resp = FeroxResponse.from_http(raw, False, OutputLevel.QUIET)
    assert resp.text == ""
    assert resp.line_count == 0
    assert resp.content_length == len("this is also a test")
    assert resp.status == 404
    assert resp.output_level is OutputLevel.QUIET