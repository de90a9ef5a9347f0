"""Permissive extraction of structured answers from model text."""

import json

from supportdesk.models.llm import MAX_PROPOSED_ACTIONS, StructuredLLMResponse
from supportdesk.utils.logging import get_logger

logger = get_logger(__name__)


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring, or ``None``.

    Braces inside JSON string literals (including escaped quotes) are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def parse_structured_response(text: str) -> StructuredLLMResponse:
    """Parse model text into an answer and proposed actions.

    Falls back to the raw text with no actions whenever the text holds no
    usable JSON object. Never raises.
    """
    candidate = extract_json_object(text or "")
    if candidate is not None:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"Structured response is not valid JSON: {e}")
            data = None

        if isinstance(data, dict) and isinstance(data.get("answer"), str):
            raw_actions = data.get("proposed_actions")
            actions = [a for a in raw_actions if isinstance(a, str)] if isinstance(raw_actions, list) else []
            return StructuredLLMResponse(answer=data["answer"], proposed_actions=actions[:MAX_PROPOSED_ACTIONS])

    return StructuredLLMResponse(answer=text or "", proposed_actions=[])
