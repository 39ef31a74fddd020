"""LLM chain that pre-fills interview answers from a project's reference files.

Only answers the model finds in the files are returned. Question text always
comes from the question set; the model only supplies ids and answer text.
"""

import json
import time

from anthropic import AsyncAnthropic
from pydantic import BaseModel, Field

from analyst_pro.core.config import get_settings
from analyst_pro.core.context_assembler import file_blocks
from analyst_pro.core.errors import TransientServiceError
from analyst_pro.core.llm import get_anthropic_client, parse_llm_json, response_text
from analyst_pro.core.llm_usage import log_llm_usage
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import Answer, Project, Question

logger = get_logger(__name__)

SYSTEM_PROMPT = """You extract interview answers from project reference documents.

For each question, answer ONLY if the attached documents contain the information. Quote or \
closely paraphrase the documents; do not guess. Skip questions the documents do not cover.

Return ONLY valid JSON, no markdown fences:
{"answers": [{"question_id": 0, "text": "..."}]}"""


class ExtractedAnswer(BaseModel):
    question_id: int
    text: str = ""


class ExtractedAnswerSet(BaseModel):
    answers: list[ExtractedAnswer] = Field(default_factory=list)


def _question_list(questions: list[Question]) -> str:
    return json.dumps([{"question_id": q.id, "question": q.text} for q in questions], indent=2)


async def auto_answer(
    questions: list[Question],
    project: Project,
    client: AsyncAnthropic | None = None,
    model: str | None = None,
) -> list[Answer]:
    """
    Pre-fill answers from the project's reference files.

    Args:
        questions: Current question set
        project: Project whose files are searched
        client: Optional Anthropic client
        model: Model override

    Returns:
        Answers in question order; unknown ids and blank answers are dropped

    Raises:
        TransientServiceError: If the call fails or the reply cannot be parsed
    """
    attachments = file_blocks(project.files)
    if not attachments or not questions:
        return []

    settings = get_settings()
    client = client or get_anthropic_client()
    model = model or settings.FAST_MODEL

    user_text = (
        f"Project: {project.name}\n"
        f"Description: {project.description or 'Not provided'}\n\n"
        f"Questions:\n{_question_list(questions)}"
    )

    try:
        start = time.time()
        response = await client.messages.create(
            model=model,
            max_tokens=4096,
            temperature=0.0,
            system=SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": [*attachments, {"type": "text", "text": user_text}]},
            ],
        )
        duration_ms = int((time.time() - start) * 1000)
        log_llm_usage(
            "auto_answer", model, response.usage, duration_ms=duration_ms, project_id=project.id
        )

        extracted = parse_llm_json(response_text(response), ExtractedAnswerSet)
    except Exception as e:
        logger.error(f"Auto-answer failed for project {project.id}: {e}")
        raise TransientServiceError("Failed to auto-answer questions") from e

    by_id = {}
    for item in extracted.answers:
        text = (item.text or "").strip()
        if text:
            by_id[item.question_id] = text

    answers = [
        Answer(question_id=q.id, question_text=q.text, text=by_id[q.id])
        for q in questions
        if q.id in by_id
    ]

    logger.info(
        f"Auto-answered {len(answers)}/{len(questions)} questions",
        extra={"project_id": project.id},
    )
    return answers
