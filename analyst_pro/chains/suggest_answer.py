"""Low-latency single-answer suggestion for an interview question."""

from anthropic import AsyncAnthropic

from analyst_pro.core.config import get_settings
from analyst_pro.core.llm import get_anthropic_client, response_text
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import Project

logger = get_logger(__name__)

FALLBACK_SUGGESTION = "To be determined based on stakeholder feedback."

PROMPT_TEMPLATE = """Context: Project "{name}" - {description}.
Question: "{question}"

Provide a professional, realistic and specific answer to this question that a Business \
Analyst would write for this project. Keep it concise (1-2 sentences). Reply with the \
answer only."""


async def suggest_answer(
    question: str,
    project: Project,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
) -> str:
    """Suggest an answer. Never raises; falls back to a placeholder answer."""
    settings = get_settings()
    model = model or settings.LITE_MODEL

    try:
        client = client or get_anthropic_client()
        response = await client.messages.create(
            model=model,
            max_tokens=300,
            temperature=0.7,
            messages=[
                {
                    "role": "user",
                    "content": PROMPT_TEMPLATE.format(
                        name=project.name,
                        description=project.description or "No description",
                        question=question,
                    ),
                }
            ],
        )
        log_llm_usage("suggest_answer", model, response.usage, project_id=project.id)
        return response_text(response).strip()
    except Exception as e:
        logger.warning(f"Answer suggestion failed: {e}")
        return FALLBACK_SUGGESTION
