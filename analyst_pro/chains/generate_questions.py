"""LLM chain for generating interview questions for a custom document type."""

import time

from anthropic import AsyncAnthropic
from pydantic import BaseModel, Field

from analyst_pro.core.config import get_settings
from analyst_pro.core.errors import QuestionGenerationError
from analyst_pro.core.llm import get_anthropic_client, parse_llm_json, response_text
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a Senior Business Analyst preparing a stakeholder interview.

Given a document type, write the 7 to 10 questions you would need answered to draft that \
document well. Order them the way the interview should flow. Mark a question as required \
only if the document cannot be written without it.

Return ONLY valid JSON, no markdown fences:
{"questions": [{"text": "...", "required": true}]}"""


class GeneratedQuestion(BaseModel):
    text: str
    required: bool = True


class GeneratedQuestionSet(BaseModel):
    questions: list[GeneratedQuestion] = Field(default_factory=list)


async def generate_questions(
    doc_type_name: str,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
) -> list[GeneratedQuestion]:
    """
    Ask the model for an interview question list.

    Args:
        doc_type_name: Display name of the (custom) document type
        client: Optional Anthropic client (created from settings otherwise)
        model: Model override

    Returns:
        Generated questions in interview order (unnumbered)

    Raises:
        QuestionGenerationError: If the call fails or the reply is not valid JSON
    """
    settings = get_settings()
    client = client or get_anthropic_client()
    model = model or settings.FAST_MODEL

    try:
        start = time.time()
        response = await client.messages.create(
            model=model,
            max_tokens=2048,
            temperature=0.3,
            system=SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": f'Document type: "{doc_type_name}"'},
            ],
        )
        duration_ms = int((time.time() - start) * 1000)
        log_llm_usage("generate_questions", model, response.usage, duration_ms=duration_ms)

        result = parse_llm_json(response_text(response), GeneratedQuestionSet)
    except Exception as e:
        logger.error(f"Question generation failed for '{doc_type_name}': {e}")
        raise QuestionGenerationError(f"Failed to generate questions for {doc_type_name}") from e

    logger.info(f"Generated {len(result.questions)} questions for '{doc_type_name}'")
    return result.questions
