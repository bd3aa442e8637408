"""Tests for core.sandbox — probe window and bridge wiring (Playwright faked)."""

import contextlib
import time

from playwright.sync_api import Error as PlaywrightError

from core.bridge import BRIDGE_SOURCE, ConsoleBridge, make_envelope
from core.sandbox import HOST_PAGE, SandboxProbe, observation_deadline


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakePage:
    def __init__(self, on_wait):
        self.functions = {}
        self.on_wait = on_wait
        self.channel = None
        self.html = None
        self.host = None
        self.waits = 0

    def expose_function(self, name, fn):
        self.functions[name] = fn

    def set_content(self, html):
        self.host = html

    def evaluate(self, _js, args):
        self.channel, self.html = args

    def wait_for_timeout(self, ms):
        self.waits += 1
        self.on_wait(self)
        time.sleep(ms / 1000)

    # helpers used by scenarios
    def send(self, envelope, channel=None):
        self.functions["__bridgeReceive"](channel or self.channel, envelope)

    def loaded(self):
        self.functions["__probeLoaded"](self.channel)


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False

    def new_page(self):
        return self.page

    def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error

    def launch(self, headless=True):
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, browser, launch_error=None):
        self.chromium = FakeChromium(browser, launch_error)


def _factory(browser, launch_error=None):
    @contextlib.contextmanager
    def factory():
        yield FakePlaywright(browser, launch_error)
    return factory


def _run(on_wait, settle=0.05, timeout=2.0, bridge=None, launch_error=None):
    page = FakePage(on_wait)
    browser = FakeBrowser(page)
    bridge = bridge or ConsoleBridge()
    probe = SandboxProbe(bridge=bridge, settle_delay=settle, timeout=timeout,
                         playwright_factory=_factory(browser, launch_error))
    result = probe.run("<html><body>app</body></html>")
    return result, page, browser, bridge


# ---------------------------------------------------------------------------
# observation_deadline
# ---------------------------------------------------------------------------

def test_deadline_is_failsafe_before_load():
    assert observation_deadline(100.0, None, 1.5, 8.0) == 108.0


def test_deadline_is_settle_after_load():
    assert observation_deadline(100.0, 101.0, 1.5, 8.0) == 102.5


def test_deadline_never_exceeds_failsafe():
    assert observation_deadline(100.0, 107.5, 1.5, 8.0) == 108.0


# ---------------------------------------------------------------------------
# SandboxProbe.run
# ---------------------------------------------------------------------------

def test_collects_only_error_messages():
    def scenario(page):
        if page.waits == 1:
            page.send(make_envelope("log", ["hello"]))
            page.send(make_envelope("warn", ["careful"]))
            page.send(make_envelope("error", ["Uncaught ReferenceError: foo is not defined"]))
            page.loaded()

    result, page, browser, bridge = _run(scenario)
    assert [m.args for m in result.errors] == [["Uncaught ReferenceError: foo is not defined"]]
    assert result.loaded is True
    assert result.timed_out is False
    assert page.html == "<html><body>app</body></html>"
    assert browser.closed is True


def test_errors_after_load_within_settle_window_are_kept():
    def scenario(page):
        if page.waits == 1:
            page.loaded()
        elif page.waits == 2:
            page.send(make_envelope("error", ["late but in time"]))

    result, *_ = _run(scenario, settle=0.3)
    assert [m.args[0] for m in result.errors] == ["late but in time"]


def test_other_channels_are_ignored():
    def scenario(page):
        if page.waits == 1:
            page.send(make_envelope("error", ["someone else's frame"]), channel="probe-other")
            page.loaded()

    result, *_ = _run(scenario)
    assert result.errors == []


def test_unmarked_messages_are_ignored():
    def scenario(page):
        if page.waits == 1:
            page.send({"type": "error", "args": ["spoof"]})
            page.loaded()

    result, *_ = _run(scenario)
    assert result.errors == []


def test_failsafe_resolves_with_partial_errors():
    def scenario(page):
        if page.waits == 1:
            page.send(make_envelope("error", ["before hang"]))

    start = time.monotonic()
    result, _, browser, bridge = _run(scenario, timeout=0.3)
    assert time.monotonic() - start < 2.0
    assert result.timed_out is True
    assert result.loaded is False
    assert [m.args[0] for m in result.errors] == ["before hang"]
    assert browser.closed is True


def test_listener_removed_after_run():
    bridge = ConsoleBridge()
    _run(lambda page: page.loaded() if page.waits == 1 else None, bridge=bridge)
    assert bridge.subscriber_count() == 0


def test_listener_removed_after_timeout():
    bridge = ConsoleBridge()
    _run(lambda page: None, timeout=0.1, bridge=bridge)
    assert bridge.subscriber_count() == 0


def test_browser_failure_degrades_to_no_errors():
    bridge = ConsoleBridge()
    result, _, browser, _ = _run(lambda page: None, bridge=bridge,
                                 launch_error=PlaywrightError("Executable doesn't exist"))
    assert result.errors == []
    assert result.loaded is False
    assert bridge.subscriber_count() == 0


def test_each_probe_gets_its_own_channel():
    channels = []

    def scenario(page):
        if page.waits == 1:
            channels.append(page.channel)
            page.loaded()

    _run(scenario)
    _run(scenario)
    assert len(set(channels)) == 2


def test_host_page_filters_marker_and_frame():
    assert BRIDGE_SOURCE in HOST_PAGE
    assert "event.source" in HOST_PAGE
    assert "contentWindow" in HOST_PAGE
