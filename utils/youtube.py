"""YouTube URL validation."""

import json
import re
import urllib.error
import urllib.parse
import urllib.request

from config.defaults import DEFAULTS
from core.errors import InputValidationError

OEMBED_URL = "https://www.youtube.com/oembed"

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
_PATH_PREFIXES = ("/embed/", "/shorts/", "/live/", "/v/")


def extract_video_id(url):
    """Return the 11-character video id of a YouTube URL, or None."""
    if not url:
        return None
    parsed = urllib.parse.urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        return None
    host = (parsed.hostname or "").lower()

    candidate = None
    if host in ("youtu.be", "www.youtu.be"):
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in _YOUTUBE_HOSTS:
        if parsed.path == "/watch":
            candidate = urllib.parse.parse_qs(parsed.query).get("v", [None])[0]
        else:
            for prefix in _PATH_PREFIXES:
                if parsed.path.startswith(prefix):
                    candidate = parsed.path[len(prefix):].split("/")[0]
                    break

    if candidate and _VIDEO_ID_RE.match(candidate):
        return candidate
    return None


def get_youtube_embed_url(url):
    video_id = extract_video_id(url)
    if video_id is None:
        raise InputValidationError("Invalid YouTube URL")
    return f"https://www.youtube.com/embed/{video_id}"


def get_thumbnail_url(url):
    """Medium-quality thumbnail for a video URL, or "" if it has no id."""
    video_id = extract_video_id(url)
    if video_id is None:
        return ""
    return f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg"


def validate_youtube_url(url, check_exists=True):
    """Check that ``url`` points at a public YouTube video.

    Returns the canonical watch URL. Raises InputValidationError with a
    user-facing message otherwise.
    """
    if not url or not url.strip():
        raise InputValidationError("Please enter a YouTube URL.")
    video_id = extract_video_id(url)
    if video_id is None:
        raise InputValidationError("Invalid YouTube URL")
    watch_url = f"https://www.youtube.com/watch?v={video_id}"
    if not check_exists:
        return watch_url

    query = urllib.parse.urlencode({"url": watch_url, "format": "json"})
    try:
        with urllib.request.urlopen(f"{OEMBED_URL}?{query}",
                                    timeout=DEFAULTS["oembed_timeout"]) as resp:
            json.loads(resp.read().decode("utf-8", errors="replace"))
    except urllib.error.HTTPError as e:
        if e.code in (400, 401, 403, 404):
            raise InputValidationError(
                "Video not found, private, or not embeddable."
            ) from e
        raise InputValidationError(
            "Could not validate URL. Please check the link and try again."
        ) from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise InputValidationError(
            "Could not validate URL. Please check the link and try again."
        ) from e
    return watch_url
