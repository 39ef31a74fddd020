"""LLM chain for section-scoped document rewrites."""

import time

from anthropic import AsyncAnthropic

from analyst_pro.core.config import get_settings
from analyst_pro.core.errors import RefinementFailedError
from analyst_pro.core.llm import get_anthropic_client, response_text
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger
from analyst_pro.core.refinement import WHOLE_DOCUMENT

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a Senior Business Analyst revising a Markdown business document.

Apply the user's instruction to the targeted section only. Every heading and every line \
outside the targeted section must be returned exactly as given, character for character. \
Return the complete revised document in Markdown, with no commentary and no code fences."""

USER_TEMPLATE = """Targeted section: {section}

Instruction:
{instruction}

Current document:
{content}"""


async def refine_section(
    content: str,
    section: str,
    instruction: str,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
) -> str:
    """
    Rewrite one section of a document.

    Args:
        content: Full current document
        section: Heading line of the target section, or "Entire Document"
        instruction: What to change
        client: Optional Anthropic client
        model: Model override

    Returns:
        Raw model output (the full revised document, possibly fenced)

    Raises:
        RefinementFailedError: If the call fails
    """
    settings = get_settings()
    client = client or get_anthropic_client()
    model = model or settings.GENERATION_MODEL

    try:
        start = time.time()
        response = await client.messages.create(
            model=model,
            max_tokens=settings.REFINE_MAX_TOKENS,
            temperature=0.2,
            system=SYSTEM_PROMPT,
            messages=[
                {
                    "role": "user",
                    "content": USER_TEMPLATE.format(
                        section=section or WHOLE_DOCUMENT,
                        instruction=instruction,
                        content=content,
                    ),
                }
            ],
        )
        duration_ms = int((time.time() - start) * 1000)
        log_llm_usage("refine_document", model, response.usage, duration_ms=duration_ms)
    except Exception as e:
        logger.error(f"Refinement of '{section}' failed: {e}")
        raise RefinementFailedError("Failed to refine document.") from e

    return response_text(response)
