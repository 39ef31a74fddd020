"""Streaming document generation chain."""

import time
from typing import Callable

from anthropic import AsyncAnthropic

from analyst_pro.core.config import get_settings
from analyst_pro.core.context_assembler import GenerationPayload
from analyst_pro.core.errors import GenerationFailedError
from analyst_pro.core.llm import get_anthropic_client
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

TextCallback = Callable[[str], None]


async def stream_document(
    payload: GenerationPayload,
    on_text: TextCallback | None = None,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
    project_id: str | None = None,
) -> str:
    """
    Generate a document, streaming progress to ``on_text``.

    The callback always receives the full text accumulated so far, never a
    delta, so a consumer can simply replace what it displays.

    Args:
        payload: Assembled system prompt and content blocks
        on_text: Progress callback (accumulated text)
        client: Optional Anthropic client
        model: Model override
        project_id: For usage logging only

    Returns:
        The complete generated document

    Raises:
        GenerationFailedError: If the call fails at any point
    """
    settings = get_settings()
    client = client or get_anthropic_client()
    model = model or settings.GENERATION_MODEL

    full_text = ""
    try:
        start = time.time()
        async with client.messages.stream(
            model=model,
            max_tokens=settings.GENERATION_MAX_TOKENS,
            system=payload.system,
            messages=[{"role": "user", "content": payload.content}],
        ) as stream:
            async for event in stream:
                if getattr(event, "type", None) != "content_block_delta":
                    continue
                chunk = getattr(getattr(event, "delta", None), "text", None)
                if not chunk:
                    continue
                full_text += chunk
                if on_text is not None:
                    on_text(full_text)
            final_message = await stream.get_final_message()
        duration_ms = int((time.time() - start) * 1000)
        log_llm_usage(
            "generate_document",
            model,
            final_message.usage,
            duration_ms=duration_ms,
            project_id=project_id,
        )
    except Exception as e:
        logger.error(f"Error generating {payload.doc_type_name}: {e}", exc_info=True)
        raise GenerationFailedError("Failed to generate document.") from e

    if not full_text.strip():
        raise GenerationFailedError("Generation returned an empty document.")

    logger.info(
        f"Generated {payload.doc_type_name} ({len(full_text)} chars, {duration_ms}ms)",
        extra={"project_id": project_id},
    )
    return full_text
