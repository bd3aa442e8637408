"""Generation pipeline — linear state machine from video to reviewed app.

    idle -> planning -> coding -> reviewing -> ready
                \\          \\          \\
                 +----------+----------+--> error

``ready`` and ``error`` are terminal. Every run gets its own PipelineState;
nothing carries over between runs.
"""

import logging
import os

from agents.generator import GeneratorAgent
from agents.planner import PlannerAgent
from agents.reviewer import ReviewerAgent
from core.preview import compose_preview
from core.state import GenerationStep, PipelineState

log = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred"


class RunCancelled(Exception):
    """Raised between stages when a newer run has superseded this one."""


class Orchestrator:
    """Runs plan -> code -> probe + review for one GenerationRequest."""

    def __init__(self, probe=None):
        self.planner = PlannerAgent()
        self.generator = GeneratorAgent()
        self.reviewer = ReviewerAgent(probe=probe)

    def create_state(self, request):
        return PipelineState(request=request)

    def _advance(self, state, step, on_step):
        if state.cancelled:
            raise RunCancelled()
        state.step = step
        state.transitions.append(step)
        log.info("[%s] -> %s", state.request.video_url, step.value)
        if on_step:
            on_step(state)

    def run(self, state, on_step=None, on_complete=None):
        """Drive ``state`` to a terminal step.

        Args:
            state: Fresh PipelineState from create_state().
            on_step: Callback(state) after every transition.
            on_complete: Callback(title, spec, files) once a generated run
                reaches ready. Not called for pre-seeded runs.

        Returns:
            The same PipelineState, in ready or error (or left where it was
            if the run was cancelled).
        """
        request = state.request

        if request.is_pre_seeded:
            state.spec = request.spec
            state.files = list(request.files)
            state.render_html = compose_preview(state.files, instrument=True)
            try:
                self._advance(state, GenerationStep.READY, on_step)
            except RunCancelled:
                log.info("[%s] pre-seeded run superseded", request.video_url)
            return state

        try:
            self._advance(state, GenerationStep.PLANNING, on_step)
            self.planner.run(state)

            self._advance(state, GenerationStep.CODING, on_step)
            self.generator.run(state)

            self._advance(state, GenerationStep.REVIEWING, on_step)
            self.reviewer.capture_errors(state)
            if state.cancelled:
                raise RunCancelled()
            self.reviewer.run(state)

            state.render_html = compose_preview(state.files, instrument=True)
            self._advance(state, GenerationStep.READY, on_step)
        except RunCancelled:
            log.info("[%s] run superseded at %s", request.video_url, state.step.value)
            return state
        except Exception as e:
            log.exception("Generation failed during %s", state.step.value)
            self._fail(state, str(e) or UNKNOWN_ERROR, on_step)
            return state

        if on_complete:
            on_complete(state.title, state.spec, list(state.files))
        return state

    def _fail(self, state, message, on_step):
        # Artifacts of the failed stage are not kept.
        if state.step == GenerationStep.PLANNING:
            state.analysis, state.spec, state.plan = None, "", None
        elif state.step == GenerationStep.CODING:
            state.draft_files = []
        elif state.step == GenerationStep.REVIEWING:
            state.files = []
        state.render_html = ""
        state.error = message
        state.step = GenerationStep.ERROR
        state.transitions.append(GenerationStep.ERROR)
        if on_step:
            on_step(state)

    def write_files(self, state, output_dir):
        """Write final files to disk."""
        os.makedirs(output_dir, exist_ok=True)
        written = []
        for f in state.files:
            full_path = os.path.join(output_dir, f.name)
            resolved = os.path.realpath(full_path)
            if not resolved.startswith(os.path.realpath(output_dir) + os.sep):
                raise ValueError(f"Path escapes output directory: {f.name}")
            os.makedirs(os.path.dirname(resolved), exist_ok=True)
            with open(resolved, "w") as fp:
                fp.write(f.content)
            written.append(f.name)
        return written
