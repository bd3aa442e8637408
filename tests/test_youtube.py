"""Tests for utils.youtube — oEmbed lookups are mocked."""

import io
import urllib.error

import pytest
from unittest.mock import patch, MagicMock

from core.errors import InputValidationError
from utils.youtube import (
    extract_video_id, get_thumbnail_url, get_youtube_embed_url, validate_youtube_url,
)

VID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    f"https://www.youtube.com/watch?v={VID}",
    f"https://youtube.com/watch?v={VID}&t=42s",
    f"https://m.youtube.com/watch?feature=share&v={VID}",
    f"https://youtu.be/{VID}",
    f"https://youtu.be/{VID}?si=abc",
    f"https://www.youtube.com/embed/{VID}",
    f"https://www.youtube.com/shorts/{VID}",
    f"https://www.youtube.com/live/{VID}?feature=share",
])
def test_extract_video_id(url):
    assert extract_video_id(url) == VID


@pytest.mark.parametrize("url", [
    "",
    None,
    "not a url",
    f"ftp://youtube.com/watch?v={VID}",
    f"https://vimeo.com/{VID}",
    "https://www.youtube.com/watch?v=short",
    "https://www.youtube.com/channel/UC1234567890",
    f"https://notyoutube.com/watch?v={VID}",
])
def test_extract_video_id_rejects(url):
    assert extract_video_id(url) is None


def test_embed_url():
    assert get_youtube_embed_url(f"https://youtu.be/{VID}") == f"https://www.youtube.com/embed/{VID}"


def test_embed_url_invalid():
    with pytest.raises(InputValidationError):
        get_youtube_embed_url("https://example.com")


def test_thumbnail_url():
    assert get_thumbnail_url("https://youtu.be/dQw4w9WgXcQ") == \
        "https://img.youtube.com/vi/dQw4w9WgXcQ/mqdefault.jpg"
    assert get_thumbnail_url("https://example.com/video") == ""


def test_validate_empty():
    with pytest.raises(InputValidationError, match="enter a YouTube URL"):
        validate_youtube_url("   ")


def test_validate_malformed():
    with pytest.raises(InputValidationError, match="Invalid YouTube URL"):
        validate_youtube_url("https://example.com/video")


def test_validate_without_existence_check():
    assert validate_youtube_url(f"https://youtu.be/{VID}", check_exists=False) == \
        f"https://www.youtube.com/watch?v={VID}"


def _ok_response():
    resp = MagicMock()
    resp.read.return_value = b'{"title": "Never Gonna Give You Up"}'
    resp.__enter__.return_value = resp
    return resp


@patch("utils.youtube.urllib.request.urlopen")
def test_validate_existing_video(urlopen):
    urlopen.return_value = _ok_response()
    assert validate_youtube_url(f"https://youtu.be/{VID}") == f"https://www.youtube.com/watch?v={VID}"
    called_url = urlopen.call_args.args[0]
    assert called_url.startswith("https://www.youtube.com/oembed?")
    assert VID in called_url


@patch("utils.youtube.urllib.request.urlopen")
def test_validate_missing_video(urlopen):
    urlopen.side_effect = urllib.error.HTTPError(
        "https://www.youtube.com/oembed", 404, "Not Found", {}, io.BytesIO(b""))
    with pytest.raises(InputValidationError, match="not found"):
        validate_youtube_url(f"https://youtu.be/{VID}")


@patch("utils.youtube.urllib.request.urlopen")
def test_validate_network_failure(urlopen):
    urlopen.side_effect = urllib.error.URLError("no route")
    with pytest.raises(InputValidationError, match="Could not validate URL"):
        validate_youtube_url(f"https://youtu.be/{VID}")


@patch("utils.youtube.urllib.request.urlopen")
def test_validate_server_error(urlopen):
    urlopen.side_effect = urllib.error.HTTPError(
        "https://www.youtube.com/oembed", 503, "Unavailable", {}, io.BytesIO(b""))
    with pytest.raises(InputValidationError, match="Could not validate URL"):
        validate_youtube_url(f"https://youtu.be/{VID}")
