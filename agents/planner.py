"""Planner agent — analyzes the video and produces analysis, spec and plan."""

from agents.base import BaseAgent
from core.errors import ExtractionError
from core.state import Analysis, Plan, PipelineState


def _str_list(value):
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    return ()


class PlannerAgent(BaseAgent):
    """Produces analysis + spec + implementation plan from a video reference."""

    name = "planner"
    prompt_file = "planner.txt"
    system_instruction = "You are an expert learning experience designer and a senior frontend engineer."
    model_setting = "plan_model"

    def run(self, state: PipelineState) -> PipelineState:
        result = self.call_json(self.load_prompt(), video_url=state.request.video_url)
        if not isinstance(result, dict):
            raise ExtractionError("Planner output must be a JSON object.")

        spec = result.get("spec")
        if not isinstance(spec, str) or not spec.strip():
            raise ExtractionError("Planner output is missing the \"spec\" string.")

        raw_analysis = result.get("analysis") or {}
        raw_plan = result.get("plan") or {}
        if not isinstance(raw_analysis, dict) or not isinstance(raw_plan, dict):
            raise ExtractionError("\"analysis\" and \"plan\" must be JSON objects.")

        state.analysis = Analysis(
            title=str(raw_analysis.get("title", "")),
            summary=str(raw_analysis.get("summary", "")),
            key_topics=_str_list(raw_analysis.get("key_topics")),
            target_audience=str(raw_analysis.get("target_audience", "")),
            learning_goals=_str_list(raw_analysis.get("learning_goals")),
        )
        state.spec = spec
        state.plan = Plan(
            files_to_create=_str_list(raw_plan.get("files_to_create")),
            implementation_notes=str(raw_plan.get("implementation_notes", "")),
        )
        return state
