"""Generator agent — writes the app's source files from spec and plan."""

import json

from agents.base import BaseAgent, files_from_payload
from core.state import PipelineState


class GeneratorAgent(BaseAgent):
    """Generates HTML/CSS/JS files from the spec and implementation plan."""

    name = "generator"
    prompt_file = "generator.txt"
    system_instruction = "You are a world-class senior frontend engineer."
    model_setting = "code_model"

    def run(self, state: PipelineState) -> PipelineState:
        plan = {}
        if state.plan is not None:
            plan = {
                "files_to_create": list(state.plan.files_to_create),
                "implementation_notes": state.plan.implementation_notes,
            }
        parts = [
            self.load_prompt(),
            f"\nSPECIFICATION:\n---\n{state.spec}\n---",
            f"IMPLEMENTATION PLAN:\n---\n{json.dumps(plan, indent=2)}\n---",
        ]
        state.draft_files = files_from_payload(self.call_json("\n".join(parts)))
        return state
