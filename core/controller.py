"""Run controller — the single owner of the active generation run.

Starting a run supersedes the previous one: the old state is flagged as
cancelled, and anything it reports afterwards (step changes, completion,
console output) is dropped because it no longer carries the current run id.
Readers only ever get snapshots.
"""

import copy
import logging
import threading
from collections import deque

from config.defaults import DEFAULTS
from core.bridge import ConsoleBridge
from core.orchestrator import Orchestrator
from core.sandbox import SandboxProbe
from core.state import message_to_dict, state_to_dict

log = logging.getLogger(__name__)


def live_channel(run_id):
    """Bridge channel used by the visible preview of ``run_id``."""
    return f"live-{run_id}"


class RunController:

    def __init__(self, orchestrator=None, bridge=None, history=None, background=True):
        self.bridge = bridge or ConsoleBridge()
        self.orchestrator = orchestrator or Orchestrator(
            probe=SandboxProbe(bridge=self.bridge))
        self.history = history
        self.background = background

        self._lock = threading.Lock()
        self._generation = 0
        self._state = None
        self._snapshot = None
        self._console = self._new_console()
        self._thread = None
        self.bridge.subscribe(self._on_console)

    @property
    def current_run_id(self):
        with self._lock:
            return self._generation if self._state is not None else None

    def start(self, request):
        """Begin a new run for ``request``, superseding any run in flight."""
        with self._lock:
            if self._state is not None:
                self._state.cancelled = True
            self._generation += 1
            run_id = self._generation
            state = self.orchestrator.create_state(request)
            self._state = state
            self._snapshot = state_to_dict(state)
            self._console = self._new_console()

        log.info("Run %d started for %s", run_id, request.video_url)
        if self.background:
            thread = threading.Thread(
                target=self._run, args=(run_id, state),
                name=f"generation-{run_id}", daemon=True,
            )
            self._thread = thread
            thread.start()
        else:
            self._run(run_id, state)
        return run_id

    def wait(self, timeout=None):
        """Block until the most recently started background run finishes."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def snapshot(self):
        """Read-only view of the current run, or None before the first run."""
        with self._lock:
            if self._snapshot is None:
                return None
            view = copy.deepcopy(self._snapshot)
            view["run_id"] = self._generation
            view["console"] = [message_to_dict(m) for m in self._console]
        return view

    def publish_console(self, run_id, envelope):
        """Feed an envelope from the visible preview of ``run_id``."""
        return self.bridge.publish(envelope, channel=live_channel(run_id))

    @staticmethod
    def _new_console():
        # Oldest messages drop off once the cap is reached.
        return deque(maxlen=DEFAULTS["console_limit"])

    def _is_current(self, run_id):
        return run_id == self._generation

    def _run(self, run_id, state):
        def on_step(s):
            with self._lock:
                if not self._is_current(run_id):
                    log.debug("Dropping step %s from stale run %d", s.step.value, run_id)
                    return
                self._snapshot = state_to_dict(s)

        def on_complete(title, spec, files):
            with self._lock:
                if not self._is_current(run_id):
                    log.info("Run %d finished after being superseded; result discarded",
                             run_id)
                    return
                if self.history is not None:
                    self.history.add(title=title, video_url=state.request.video_url,
                                     spec=spec, files=files)

        self.orchestrator.run(state, on_step=on_step, on_complete=on_complete)

    def _on_console(self, message, channel):
        with self._lock:
            if channel != live_channel(self._generation):
                return
            self._console.append(message)
