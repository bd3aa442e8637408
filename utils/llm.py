"""AI text-generation client (Gemini by default, Claude for text-only stages)."""

import enum
import logging
import os

import anthropic
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from config.defaults import DEFAULTS
from core.errors import UpstreamGenerationError

log = logging.getLogger(__name__)

VIDEO_MIME_TYPE = "video/mp4"
_CLAUDE_NORMAL_STOPS = {"end_turn", "stop_sequence"}


def _reason_name(reason):
    if isinstance(reason, enum.Enum):
        return reason.name
    return str(reason)


def get_gemini_client():
    """Return a Gemini client. Raises if no API key is set."""
    api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    if not api_key:
        raise UpstreamGenerationError(
            "API key is missing or empty. Please set the GEMINI_API_KEY "
            "(or API_KEY) environment variable."
        )
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=DEFAULTS["request_timeout"] * 1000),
    )


def get_anthropic_client():
    """Return an Anthropic client. Raises if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise UpstreamGenerationError(
            "API key is missing or empty. Please set the ANTHROPIC_API_KEY "
            "environment variable."
        )
    return anthropic.Anthropic(api_key=api_key, timeout=DEFAULTS["request_timeout"])


def generate_text(prompt, model, system_instruction=None, video_url=None,
                  temperature=None):
    """Send one prompt to the AI text service and return the response text.

    Args:
        prompt: User prompt text.
        model: Model identifier. Ids starting with "claude" use Anthropic.
        system_instruction: Optional system prompt.
        video_url: Optional video reference (Gemini only).
        temperature: Sampling temperature (default from config).

    Raises:
        UpstreamGenerationError: credentials missing, prompt blocked, no
            candidates, abnormal finish, or transport failure.
    """
    if temperature is None:
        temperature = DEFAULTS["temperature"]
    log.info("Calling %s (video=%s, %d prompt chars)", model, bool(video_url), len(prompt))
    if model.startswith("claude"):
        if video_url:
            raise UpstreamGenerationError(
                f"Model {model} cannot read video input; use a Gemini model for planning."
            )
        return _generate_claude(prompt, model, system_instruction, temperature)
    return _generate_gemini(prompt, model, system_instruction, video_url, temperature)


def _generate_gemini(prompt, model, system_instruction, video_url, temperature):
    client = get_gemini_client()

    parts = [types.Part(text=prompt)]
    if video_url:
        parts.append(types.Part(
            file_data=types.FileData(file_uri=video_url, mime_type=VIDEO_MIME_TYPE),
        ))

    config_kwargs = {"temperature": temperature}
    if system_instruction:
        config_kwargs["system_instruction"] = system_instruction

    try:
        response = client.models.generate_content(
            model=model,
            contents=types.Content(role="user", parts=parts),
            config=types.GenerateContentConfig(**config_kwargs),
        )
    except genai_errors.APIError as e:
        raise UpstreamGenerationError(
            f"Content generation failed: API error {e.code}: {e.message or e}"
        ) from e
    except httpx.HTTPError as e:
        raise UpstreamGenerationError(
            f"Content generation failed: network error ({type(e).__name__}: {e})"
        ) from e

    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason:
        raise UpstreamGenerationError(
            "Content generation failed: Prompt blocked "
            f"(reason: {_reason_name(feedback.block_reason)})"
        )

    if not response.candidates:
        raise UpstreamGenerationError("Content generation failed: No candidates returned.")

    finish = response.candidates[0].finish_reason
    if finish is not None and _reason_name(finish) != "STOP":
        if _reason_name(finish) == "SAFETY":
            raise UpstreamGenerationError(
                "Content generation failed: Response blocked due to safety settings."
            )
        raise UpstreamGenerationError(
            f"Content generation failed: Stopped due to {_reason_name(finish)}."
        )

    return response.text or ""


def _generate_claude(prompt, model, system_instruction, temperature):
    client = get_anthropic_client()

    kwargs = {
        "model": model,
        "max_tokens": DEFAULTS["max_tokens"],
        "temperature": min(temperature, 1.0),
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_instruction:
        kwargs["system"] = system_instruction

    try:
        response = client.messages.create(**kwargs)
    except anthropic.APIConnectionError as e:
        raise UpstreamGenerationError(
            f"Content generation failed: network error ({e})"
        ) from e
    except anthropic.APIError as e:
        raise UpstreamGenerationError(f"Content generation failed: API error: {e}") from e

    stop = response.stop_reason
    if stop == "refusal":
        raise UpstreamGenerationError(
            "Content generation failed: Response blocked due to safety settings."
        )
    if stop is not None and stop not in _CLAUDE_NORMAL_STOPS:
        raise UpstreamGenerationError(f"Content generation failed: Stopped due to {stop}.")

    text = "".join(block.text for block in response.content if block.type == "text")
    if not text:
        raise UpstreamGenerationError("Content generation failed: No candidates returned.")
    return text
