"""Anthropic client utilities and LLM output parsing."""

import json
import re
from typing import Any, TypeVar

from anthropic import AsyncAnthropic
from pydantic import BaseModel

from analyst_pro.core.config import get_settings

T = TypeVar("T", bound=BaseModel)


def get_anthropic_client(api_key: str | None = None) -> AsyncAnthropic:
    """
    Get an async Anthropic client.

    Retries are disabled; the engine never retries a failed call.
    """
    settings = get_settings()
    return AsyncAnthropic(api_key=api_key or settings.ANTHROPIC_API_KEY, max_retries=0)


def response_text(response: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = []
    for block in getattr(response, "content", None) or []:
        text = getattr(block, "text", None)
        if isinstance(text, str):
            parts.append(text)
    return "".join(parts)


def strip_code_fence(text: str) -> str:
    """Remove a single code fence wrapping the whole text, if present."""
    cleaned = text.strip()
    match = re.match(r"^```[\w-]*[ \t]*\n(.*?)\n?```$", cleaned, re.DOTALL)
    if match:
        return match.group(1)
    return cleaned


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    # Extract JSON from markdown code fences
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    # Fallback: strip leading/trailing fences without regex
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json(raw_output: str, model: type[T]) -> T:
    """
    Parse LLM output as JSON and validate against a Pydantic model.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```)
    - Leading/trailing whitespace
    - JSON encoded twice as a string

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        pydantic.ValidationError: If parsed JSON doesn't match schema
    """
    parsed = parse_llm_json_value(raw_output)
    return model.model_validate(parsed)


def parse_llm_json_value(raw_output: str) -> Any:
    """Parse LLM output as JSON, returning the raw value (dict or list)."""
    parsed = json.loads(_strip_llm_fences(raw_output))
    if isinstance(parsed, str):
        # Anthropic string bug guard
        parsed = json.loads(parsed)
    return parsed
