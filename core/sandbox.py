"""Hidden sandbox probe — runs generated HTML in headless Chromium and
collects the runtime errors it reports through the console bridge."""

import itertools
import json
import logging
import threading
import time
from dataclasses import dataclass, field

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from config.defaults import DEFAULTS
from core.bridge import BRIDGE_SOURCE, ConsoleBridge

log = logging.getLogger(__name__)

_POLL_MS = 50
_channel_ids = itertools.count(1)

# The host document owns the probe frames. A message is forwarded only when
# it carries the bridge marker and comes from one of the registered frames,
# tagged with that frame's channel id.
HOST_PAGE = """<!DOCTYPE html>
<html><head><meta charset="utf-8"></head><body>
<script>
window.__probeFrames = {};
window.addEventListener('message', function (event) {
  var data = event.data;
  if (!data || data.source !== %s) return;
  for (var channel in window.__probeFrames) {
    if (window.__probeFrames[channel].contentWindow === event.source) {
      window.__bridgeReceive(channel, data);
      return;
    }
  }
});
</script>
</body></html>""" % json.dumps(BRIDGE_SOURCE)

_MOUNT_FRAME_JS = """([channel, html]) => {
  const frame = document.createElement('iframe');
  frame.setAttribute('sandbox', 'allow-scripts');
  frame.setAttribute('aria-hidden', 'true');
  frame.style.cssText = 'position:absolute;left:-10000px;width:1024px;height:768px;border:0;visibility:hidden';
  frame.addEventListener('load', () => window.__probeLoaded(channel));
  window.__probeFrames[channel] = frame;
  frame.srcdoc = html;
  document.body.appendChild(frame);
}"""


@dataclass
class ProbeResult:
    errors: list = field(default_factory=list)
    loaded: bool = False
    timed_out: bool = False


def observation_deadline(started, loaded_at, settle_delay, timeout):
    """End of the observation window: the earlier of load + settle and the failsafe."""
    failsafe = started + timeout
    if loaded_at is None:
        return failsafe
    return min(loaded_at + settle_delay, failsafe)


class SandboxProbe:
    """Loads a document into an invisible, script-only sandbox and watches it.

    ``run`` never raises for problems inside the generated app and never
    blocks past the failsafe timeout; a timeout just returns whatever errors
    arrived so far with ``timed_out`` set.
    """

    def __init__(self, bridge=None, settle_delay=None, timeout=None,
                 playwright_factory=sync_playwright):
        self.bridge = bridge or ConsoleBridge()
        self.settle_delay = (DEFAULTS["probe_settle_delay"]
                             if settle_delay is None else settle_delay)
        self.timeout = DEFAULTS["probe_timeout"] if timeout is None else timeout
        self._playwright_factory = playwright_factory

    def run(self, html: str) -> ProbeResult:
        channel = f"probe-{next(_channel_ids)}"
        result = ProbeResult()
        lock = threading.Lock()
        loaded_at = []

        def on_message(message, _channel):
            if message.kind == "error":
                with lock:
                    result.errors.append(message)

        def on_loaded(frame_channel):
            if frame_channel == channel and not loaded_at:
                loaded_at.append(time.monotonic())

        def on_receive(frame_channel, data):
            self.bridge.publish(data, channel=frame_channel)

        token = self.bridge.subscribe(on_message, channel=channel)
        try:
            with self._playwright_factory() as pw:
                browser = pw.chromium.launch(headless=True)
                try:
                    page = browser.new_page()
                    page.expose_function("__bridgeReceive", on_receive)
                    page.expose_function("__probeLoaded", on_loaded)
                    page.set_content(HOST_PAGE)
                    started = time.monotonic()
                    page.evaluate(_MOUNT_FRAME_JS, [channel, html])
                    result.timed_out = self._observe(page, started, loaded_at)
                finally:
                    browser.close()
        except PlaywrightError as e:
            log.warning("Sandbox probe aborted: %s", e)
        finally:
            self.bridge.unsubscribe(token)

        result.loaded = bool(loaded_at)
        log.info("Sandbox probe finished: %d error(s), loaded=%s",
                 len(result.errors), result.loaded)
        return result

    def _observe(self, page, started, loaded_at):
        """Wait out the observation window. Returns True if the failsafe ended it."""
        # Bridge callbacks are dispatched while Playwright waits.
        while True:
            end = observation_deadline(
                started, loaded_at[0] if loaded_at else None,
                self.settle_delay, self.timeout,
            )
            remaining = end - time.monotonic()
            if remaining <= 0:
                return end >= started + self.timeout
            page.wait_for_timeout(min(_POLL_MS, remaining * 1000))
