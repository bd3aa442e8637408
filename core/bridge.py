"""Console bridge — forwards console activity out of sandboxed generated code.

Generated apps run in an iframe with ``sandbox="allow-scripts"`` and no
same-origin access, so the only way out is ``window.parent.postMessage``.
The instrumentation script below overrides the console entry points and the
global error hooks and posts a tagged envelope for each call:

    {"source": BRIDGE_SOURCE, "type": "log|info|warn|error", "args": [...]}

On the Python side ``ConsoleBridge`` is the receiving end: whoever listens to
the frame (the Playwright host page for probes, the browser shell for the
live preview) publishes envelopes into it, and subscribers receive parsed
``ConsoleMessage`` objects. Subscribers may be scoped to a channel so that
overlapping probes only ever see their own frame's output.
"""

import itertools
import json
import logging
import threading
import time
import traceback

from core.state import CONSOLE_KINDS, ConsoleMessage

log = logging.getLogger(__name__)

BRIDGE_SOURCE = "video-to-app-console"
UNSERIALIZABLE_FALLBACK = "[console bridge] arguments could not be serialized"

INSTRUMENTATION_SCRIPT = """<script>
(function () {
  var SOURCE = '%(source)s';
  var FALLBACK = '%(fallback)s';
  function reduce(value) {
    if (value instanceof Error) {
      return {name: value.name, message: value.message, stack: value.stack};
    }
    return value;
  }
  function forward(type, args) {
    var payload;
    try {
      payload = JSON.parse(JSON.stringify(Array.prototype.map.call(args, reduce)));
    } catch (e) {
      payload = [FALLBACK];
    }
    try {
      window.parent.postMessage({source: SOURCE, type: type, args: payload}, '*');
    } catch (e) {}
  }
  ['log', 'info', 'warn', 'error'].forEach(function (type) {
    var original = console[type];
    console[type] = function () {
      if (original) {
        original.apply(console, arguments);
      }
      forward(type, arguments);
    };
  });
  window.addEventListener('error', function (event) {
    var where = event.filename
      ? ' at ' + event.filename + ':' + event.lineno + ':' + event.colno
      : (event.lineno ? ' at line ' + event.lineno + ':' + event.colno : '');
    forward('error', ['Uncaught ' + event.message + where, reduce(event.error)]);
  });
  window.addEventListener('unhandledrejection', function (event) {
    forward('error', ['Unhandled promise rejection:', reduce(event.reason)]);
  });
})();
</script>""" % {"source": BRIDGE_SOURCE, "fallback": UNSERIALIZABLE_FALLBACK}


def exception_to_dict(exc):
    """Reduce an exception to the {name, message, stack} shape."""
    return {
        "name": type(exc).__name__,
        "message": str(exc),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def to_json_safe(value):
    """Convert ``value`` into nested lists/dicts/primitives.

    Exceptions become ``{name, message, stack}``. Raises TypeError for values
    with no JSON representation.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseException):
        return exception_to_dict(value)
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    raise TypeError(f"Cannot forward {type(value).__name__} through the console bridge")


def serialize_args(args):
    """Best-effort serialization of console arguments.

    Never raises: arguments that still fail to serialize collapse into a
    single fallback warning string.
    """
    try:
        return json.loads(json.dumps(to_json_safe(list(args))))
    except (TypeError, ValueError):
        return [UNSERIALIZABLE_FALLBACK]


def make_envelope(kind, args):
    return {"source": BRIDGE_SOURCE, "type": kind, "args": serialize_args(args)}


def parse_envelope(data, timestamp=None):
    """Return a ConsoleMessage for a bridge envelope, or None to ignore it."""
    if not isinstance(data, dict) or data.get("source") != BRIDGE_SOURCE:
        return None
    kind = data.get("type")
    if kind not in CONSOLE_KINDS:
        return None
    args = data.get("args")
    if not isinstance(args, list):
        args = [] if args is None else [args]
    return ConsoleMessage(
        kind=kind,
        args=serialize_args(args),
        timestamp=time.time() if timestamp is None else timestamp,
    )


def format_args(args):
    """Render console arguments as one human-readable line."""
    parts = []
    for arg in args:
        if isinstance(arg, str):
            parts.append(arg)
        elif isinstance(arg, dict) and {"name", "message"} <= set(arg):
            parts.append(f"{arg['name']}: {arg['message']}")
        else:
            parts.append(json.dumps(arg))
    return " ".join(parts)


class ConsoleBridge:
    """Publish/subscribe hub for console envelopes.

    A subscriber registered with ``channel=None`` sees every envelope; one
    registered with a channel id only sees envelopes published on that
    channel. Callbacks run on the publisher's thread.
    """

    def __init__(self):
        self._subscribers = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, callback, channel=None):
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = (channel, callback)
        return token

    def unsubscribe(self, token):
        with self._lock:
            self._subscribers.pop(token, None)

    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def publish(self, data, channel=None):
        """Deliver an envelope; returns the parsed message or None if ignored."""
        message = parse_envelope(data)
        if message is None:
            log.debug("Ignoring message without bridge marker: %r", data)
            return None
        with self._lock:
            targets = [cb for ch, cb in self._subscribers.values()
                       if ch is None or ch == channel]
        for callback in targets:
            callback(message, channel)
        return message
