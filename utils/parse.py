"""Pull a JSON value out of free-form model output."""

import json
import re

from core.errors import ExtractionError

_JSON_FENCE_RE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)


def parse_json(text):
    """Return the JSON object or array embedded in ``text``.

    Searches the first ```json fenced block when there is one, otherwise the
    whole text. The value spans from the first ``{`` or ``[`` to the last
    ``}`` or ``]``. This is a textual scan, not a parser: brackets inside
    string literals that sit before the real start or after the real end
    will produce a bad slice.

    Raises:
        ExtractionError: no opener/closer found, or the slice is not JSON.
    """
    body = text or ""
    match = _JSON_FENCE_RE.search(body)
    if match and match.group(1):
        body = match.group(1)

    openers = [i for i in (body.find("{"), body.find("[")) if i != -1]
    if not openers:
        raise ExtractionError("No valid JSON object or array found in the string.")
    start = min(openers)

    end = max(body.rfind("}"), body.rfind("]")) + 1
    if end == 0:
        raise ExtractionError("No valid JSON object or array found in the string.")

    try:
        return json.loads(body[start:end])
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Model output is not valid JSON: {e}") from e
