import json
from functools import partial

from langchain_core.utils.json import parse_json_markdown

# literal newlines inside string values are tolerated; truncated JSON is not
_strict_object = partial(json.loads, strict=False)


def extract_json_payload(text: str) -> dict:
    """
    Pull the JSON object out of a model reply.

    Replies may arrive wrapped in ```json fences or with a sentence of prose
    around the object. Raises ValueError when no JSON object can be parsed.
    """
    if not text or not text.strip():
        raise ValueError("Empty model response")

    try:
        payload = parse_json_markdown(text, parser=_strict_object)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError(f"No JSON object in model response: {text.strip()[:120]!r}")
        payload = parse_json_markdown(text[start:end + 1], parser=_strict_object)

    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload
