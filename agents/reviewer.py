"""Reviewer agent — test-runs the draft in a hidden sandbox, then fixes it."""

import logging

from agents.base import BaseAgent, files_from_payload, format_code_bundle
from core.bridge import format_args
from core.preview import compose_preview
from core.sandbox import SandboxProbe
from core.state import PipelineState

log = logging.getLogger(__name__)

NO_ERRORS_SENTINEL = "No runtime errors were detected during the test run."


def format_runtime_errors(messages):
    """Render captured error messages as a numbered block for the prompt."""
    if not messages:
        return NO_ERRORS_SENTINEL
    lines = [f"{i}. {format_args(m.args)}" for i, m in enumerate(messages, start=1)]
    return "\n".join(lines)


class ReviewerAgent(BaseAgent):
    """Captures runtime errors from the draft and asks the model to fix them."""

    name = "reviewer"
    prompt_file = "reviewer.txt"
    system_instruction = (
        "You are a world-class senior frontend engineer specializing in code "
        "review and debugging. Fix bugs, errors and inconsistencies in the "
        "provided HTML, CSS and JavaScript, guided by the original "
        "specification and the runtime errors captured during a test run."
    )
    model_setting = "review_model"

    def __init__(self, probe=None):
        self.probe = probe or SandboxProbe()

    def capture_errors(self, state: PipelineState) -> PipelineState:
        html = compose_preview(state.draft_files, instrument=True)
        result = self.probe.run(html)
        if result.timed_out:
            log.info("Probe window hit the failsafe; using %d error(s) seen so far",
                     len(result.errors))
        state.probe_errors = list(result.errors)
        return state

    def run(self, state: PipelineState) -> PipelineState:
        parts = [
            self.load_prompt(),
            f"\nSPECIFICATION:\n---\n{state.spec}\n---",
            f"RUNTIME ERRORS:\n---\n{format_runtime_errors(state.probe_errors)}\n---",
            f"CODE TO REVIEW:\n---\n{format_code_bundle(state.draft_files)}\n---",
        ]
        state.files = files_from_payload(self.call_json("\n".join(parts)))
        return state
