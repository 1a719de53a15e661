"""Response helpers shared by the completion operations."""

import json
from typing import Any


def response_json(response: dict[str, Any]) -> dict[str, Any]:
    """Extract the first choice's content and parse it as a JSON object.

    Tolerates a markdown code fence around the payload.

    Raises:
        ValueError: empty content, invalid JSON, or a non-object payload
    """
    choices = response.get("choices") or []
    if not choices:
        raise ValueError("completion response has no choices")
    content = (choices[0].get("message") or {}).get("content") or ""
    text = content.strip()
    if not text:
        raise ValueError("empty completion content")

    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"completion returned {type(data).__name__}, expected object")
    return data
