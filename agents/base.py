"""Base class shared by the pipeline agents."""

import os

from config.defaults import DEFAULTS
from core.errors import ExtractionError
from core.state import SourceFile, unique_files
from utils.llm import generate_text
from utils.parse import parse_json

_PROMPTS_DIR = os.path.join(os.path.dirname(__file__), "prompts")


class BaseAgent:
    """One AI call with a fixed instruction, read back as JSON."""

    name = "base"
    prompt_file = ""            # file under agents/prompts/
    system_instruction = ""
    model_setting = ""          # key in DEFAULTS

    def load_prompt(self):
        with open(os.path.join(_PROMPTS_DIR, self.prompt_file)) as f:
            return f.read().strip()

    def call_json(self, prompt, video_url=None):
        """Send ``prompt`` to the configured model and parse the JSON reply."""
        response = generate_text(
            prompt,
            model=DEFAULTS[self.model_setting],
            system_instruction=self.system_instruction,
            video_url=video_url,
        )
        return parse_json(response)


def files_from_payload(payload):
    """Read the ``{"files": [{"name", "content"}, ...]}`` shape."""
    if not isinstance(payload, dict):
        raise ExtractionError("Expected a JSON object with a \"files\" key.")
    raw = payload.get("files") or []
    if not isinstance(raw, list):
        raise ExtractionError("\"files\" must be an array of {name, content} objects.")

    files = []
    for item in raw:
        if not isinstance(item, dict):
            raise ExtractionError("Each file must be an object with name and content.")
        name = item.get("name")
        content = item.get("content", "")
        if not isinstance(name, str) or not name.strip():
            raise ExtractionError("A generated file is missing its name.")
        if not isinstance(content, str):
            raise ExtractionError(f"Content of {name} is not a string.")
        files.append(SourceFile(name=name.strip(), content=content))
    return unique_files(files)


def format_code_bundle(files):
    """Render files as fenced blocks for a prompt."""
    return "\n\n".join(f"```{f.name}\n{f.content}\n```" for f in files)
