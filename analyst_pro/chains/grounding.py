"""Best-effort external research for document generation.

Two independent calls, each using Anthropic's server-side web search tool:
general business research (when the project name is meaningful) and a
location lookup (when the project text mentions a physical place). Each
call's failure is logged and swallowed; grounding never fails generation.
"""

import time
from typing import Any

from anthropic import AsyncAnthropic

from analyst_pro.core.config import get_settings
from analyst_pro.core.llm import get_anthropic_client, response_text
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

MIN_NAME_LENGTH = 3

LOCATION_KEYWORDS = (
    "location",
    "address",
    "site",
    "city",
    "region",
    "venue",
    "campus",
    "logistics",
    "delivery",
    "store",
    "facility",
    "warehouse",
)

RESEARCH_PROMPT = """Perform high-level business research for this project:
Project Name: "{name}"
Description: "{description}"

Identify:
1. Key market trends or standards relevant to this domain.
2. Common compliance or regulatory requirements (e.g., GDPR, ISO).
3. Potential risks or competitor examples.

Keep the summary concise and professional."""

LOCATION_PROMPT = """Identify the specific physical locations or geographical context mentioned in:
"{name} - {description}"

Provide details on the location, nearby relevant infrastructure, or place attributes."""


def needs_research(name: str) -> bool:
    return len(name or "") > MIN_NAME_LENGTH


def needs_location_context(name: str, description: str) -> bool:
    combined = f"{name} {description}".lower()
    return any(keyword in combined for keyword in LOCATION_KEYWORDS)


def _web_search_tool(max_uses: int) -> dict[str, Any]:
    return {"type": "web_search_20250305", "name": "web_search", "max_uses": max_uses}


def _source_links(response: Any) -> list[str]:
    """Markdown links for every web search result cited in the response."""
    links = []
    seen = set()
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) != "web_search_tool_result":
            continue
        results = getattr(block, "content", None)
        if not isinstance(results, list):
            continue
        for result in results:
            url = getattr(result, "url", None)
            title = getattr(result, "title", None)
            if url and title and url not in seen:
                seen.add(url)
                links.append(f"[{title}]({url})")
    return links


async def _search(
    client: AsyncAnthropic,
    chain: str,
    prompt: str,
    model: str,
    max_uses: int,
) -> tuple[str, list[str]]:
    start = time.time()
    response = await client.messages.create(
        model=model,
        max_tokens=2048,
        messages=[{"role": "user", "content": prompt}],
        tools=[_web_search_tool(max_uses)],
    )
    duration_ms = int((time.time() - start) * 1000)
    log_llm_usage(chain, model, response.usage, duration_ms=duration_ms)
    return response_text(response).strip(), _source_links(response)


async def fetch_external_context(
    name: str,
    description: str,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
) -> str | None:
    """
    Gather external research for a project.

    Args:
        name: Project name
        description: Project description
        client: Optional Anthropic client
        model: Model override

    Returns:
        Markdown research block, or None when nothing was gathered
    """
    settings = get_settings()
    model = model or settings.FAST_MODEL
    max_uses = settings.GROUNDING_MAX_SEARCHES
    parts: list[str] = []

    do_research = needs_research(name)
    do_location = needs_location_context(name, description)
    if not do_research and not do_location:
        return None

    try:
        client = client or get_anthropic_client()
    except Exception as e:
        logger.warning(f"Grounding skipped, no client: {e}")
        return None

    if do_research:
        try:
            text, links = await _search(
                client,
                "grounding_research",
                RESEARCH_PROMPT.format(name=name, description=description),
                model,
                max_uses,
            )
            if text:
                parts.append(f"### EXTERNAL RESEARCH (Web Search):\n{text}")
                if links:
                    parts.append(f"**Sources:** {', '.join(links)}")
        except Exception as e:
            logger.warning(f"Search grounding error: {e}")

    if do_location:
        try:
            text, links = await _search(
                client,
                "grounding_location",
                LOCATION_PROMPT.format(name=name, description=description),
                model,
                max_uses,
            )
            if text:
                parts.append(f"### LOCATION DATA (Web Search):\n{text}")
                if links:
                    parts.append(f"**Location Sources:** {', '.join(links)}")
        except Exception as e:
            logger.warning(f"Location grounding error: {e}")

    if not parts:
        return None
    return "\n\n".join(parts)
