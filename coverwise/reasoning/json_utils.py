"""Extract the JSON object from free-form model output."""
import json
import re
from typing import Any, Dict

from coverwise.reasoning.exceptions import MalformedJsonError

_FENCE_PATTERN = re.compile(r"```json|```", re.IGNORECASE)


def clean_model_json(raw: str) -> str:
    """
    Strip code fences and commentary around a JSON object.

    Returns the substring between the first ``{`` and the last ``}`` when
    both exist in that order, otherwise the trimmed text unchanged.
    """
    trimmed = _FENCE_PATTERN.sub("", raw or "").strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start >= 0 and end > start:
        return trimmed[start:end + 1]
    return trimmed


def extract_json_from_text(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object embedded in ``text``.

    Raises:
        MalformedJsonError: If the cleaned text is not a JSON object
    """
    cleaned = clean_model_json(text)
    try:
        parsed = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        raise MalformedJsonError(f"Model output is not valid JSON: {e}", raw_text=text) from e
    if not isinstance(parsed, dict):
        raise MalformedJsonError(
            f"Model output is JSON {type(parsed).__name__}, expected an object",
            raw_text=text,
        )
    return parsed
