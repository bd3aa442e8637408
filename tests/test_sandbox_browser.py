"""Integration tests for core.sandbox against a real headless Chromium.

These run the actual console-bridge script and host page. They are skipped
when the Playwright browser is not installed (``playwright install chromium``).
"""

import threading

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from core.bridge import UNSERIALIZABLE_FALLBACK, ConsoleBridge
from core.preview import compose_preview
from core.sandbox import SandboxProbe
from core.state import SourceFile

pytestmark = pytest.mark.integration

INDEX = """<!DOCTYPE html>
<html><head><title>bridge</title></head>
<body><h1>bridge</h1></body></html>"""

SCRIPT = """
console.log('ready', [1, [2, [3]]]);
console.info('info line');
console.warn('careful');
console.error('nested', {a: [1, 2, [3]]}, [[1], [2, [3]]]);
console.error(new TypeError('bad input'));
var loop = {};
loop.self = loop;
console.error(loop);
Promise.reject(new RangeError('out of range'));
setTimeout(function () { undefinedFunction(); }, 0);
"""


@pytest.fixture(scope="module", autouse=True)
def chromium_available():
    try:
        with sync_playwright() as pw:
            pw.chromium.launch(headless=True).close()
    except PlaywrightError as e:
        pytest.skip(f"Chromium not available: {e}")


def _page(script):
    files = [SourceFile("index.html", INDEX), SourceFile("script.js", script)]
    return compose_preview(files, instrument=True)


def _find(errors, predicate):
    matches = [m for m in errors if predicate(m.args)]
    assert matches, [m.args for m in errors]
    return matches[0]


def test_probe_captures_only_errors_from_real_page():
    result = SandboxProbe(settle_delay=1.0, timeout=10.0).run(_page(SCRIPT))

    assert result.loaded is True
    assert result.timed_out is False
    assert result.errors
    assert all(m.kind == "error" for m in result.errors)
    flat = repr([m.args for m in result.errors])
    assert "ready" not in flat
    assert "info line" not in flat
    assert "careful" not in flat


def test_nested_values_survive_the_bridge():
    result = SandboxProbe(settle_delay=1.0, timeout=10.0).run(_page(SCRIPT))
    nested = _find(result.errors, lambda args: args[:1] == ["nested"])
    assert nested.args == ["nested", {"a": [1, 2, [3]]}, [[1], [2, [3]]]]


def test_errors_reduced_to_name_message_stack():
    result = SandboxProbe(settle_delay=1.0, timeout=10.0).run(_page(SCRIPT))

    logged = _find(result.errors, lambda args: isinstance(args[0], dict)
                   and args[0].get("name") == "TypeError")
    assert set(logged.args[0]) == {"name", "message", "stack"}
    assert logged.args[0]["message"] == "bad input"

    rejected = _find(result.errors,
                     lambda args: args[0] == "Unhandled promise rejection:")
    assert rejected.args[1]["name"] == "RangeError"
    assert rejected.args[1]["message"] == "out of range"
    assert set(rejected.args[1]) == {"name", "message", "stack"}

    uncaught = _find(result.errors, lambda args: isinstance(args[0], str)
                     and args[0].startswith("Uncaught"))
    assert "undefinedFunction is not defined" in uncaught.args[0]
    assert uncaught.args[1]["name"] == "ReferenceError"


def test_unserializable_arguments_fall_back_to_warning():
    result = SandboxProbe(settle_delay=1.0, timeout=10.0).run(_page(SCRIPT))
    _find(result.errors, lambda args: args == [UNSERIALIZABLE_FALLBACK])


def test_page_without_errors_reports_none():
    result = SandboxProbe(settle_delay=0.5, timeout=10.0).run(
        _page("console.log('all good');"))
    assert result.loaded is True
    assert result.errors == []


def test_overlapping_probes_keep_their_own_errors():
    bridge = ConsoleBridge()
    results = {}

    def run(tag):
        script = "".join(f"console.error('from {tag}', {i});\n" for i in range(5))
        results[tag] = SandboxProbe(bridge=bridge, settle_delay=1.0,
                                    timeout=10.0).run(_page(script))

    threads = [threading.Thread(target=run, args=(tag,)) for tag in ("A", "B")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)

    for tag in ("A", "B"):
        assert [m.args for m in results[tag].errors] == [
            [f"from {tag}", i] for i in range(5)
        ]
    assert bridge.subscriber_count() == 0
