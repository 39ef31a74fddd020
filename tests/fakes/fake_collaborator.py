"""Scriptable in-memory stand-in for the AI collaborator."""

import asyncio
from typing import Any, Callable

from analyst_pro.chains.generate_questions import GeneratedQuestion
from analyst_pro.core.context_assembler import GenerationPayload
from analyst_pro.core.errors import GenerationFailedError, RefinementFailedError
from analyst_pro.core.schemas_documents import Answer, Project, Question

DEFAULT_DOCUMENT = """# Business Requirement Document

## Scope
Checkout redesign for web and mobile.

## Risks
Payment provider migration."""


class FakeCollaborator:
    """Records every call and returns configured results."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.document_chunks: list[str] = [DEFAULT_DOCUMENT]
        self.generated_questions: list[GeneratedQuestion] = []
        self.auto_answers: dict[int, str] = {}
        self.grounding: str | None = None
        self.refined_output: str | Callable[[str, str, str], str] | None = None
        self.suggestion = "Suggested answer."

        self.fail_generation = False
        self.fail_questions = False
        self.fail_auto_answer = False
        self.fail_grounding = False
        self.fail_refinement = False

        # Set to block stream_document until released
        self.generation_gate: asyncio.Event | None = None

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    @property
    def last_payload(self) -> GenerationPayload | None:
        for call, args in reversed(self.calls):
            if call == "stream_document":
                return args[0]
        return None

    async def generate_questions(self, doc_type_name: str) -> list[GeneratedQuestion]:
        self.calls.append(("generate_questions", (doc_type_name,)))
        if self.fail_questions:
            raise RuntimeError("question service unavailable")
        return list(self.generated_questions)

    async def auto_answer(self, questions: list[Question], project: Project) -> list[Answer]:
        self.calls.append(("auto_answer", (questions, project)))
        if self.fail_auto_answer:
            raise RuntimeError("auto-answer unavailable")
        return [
            Answer(question_id=q.id, question_text=q.text, text=self.auto_answers[q.id])
            for q in questions
            if q.id in self.auto_answers
        ]

    async def fetch_grounding(self, project: Project) -> str | None:
        self.calls.append(("fetch_grounding", (project,)))
        if self.fail_grounding:
            raise RuntimeError("search unavailable")
        return self.grounding

    async def stream_document(
        self,
        payload: GenerationPayload,
        on_text: Callable[[str], None] | None = None,
        project_id: str | None = None,
    ) -> str:
        self.calls.append(("stream_document", (payload, project_id)))
        if self.generation_gate is not None:
            await self.generation_gate.wait()
        if self.fail_generation:
            raise GenerationFailedError("Failed to generate document.")

        full_text = ""
        for chunk in self.document_chunks:
            full_text += chunk
            if on_text is not None:
                on_text(full_text)
        return full_text

    async def refine_section(self, content: str, section: str, instruction: str) -> str:
        self.calls.append(("refine_section", (content, section, instruction)))
        if self.fail_refinement:
            raise RefinementFailedError("Failed to refine document.")
        if callable(self.refined_output):
            return self.refined_output(content, section, instruction)
        if self.refined_output is not None:
            return self.refined_output
        return content

    async def suggest_answer(self, question: str, project: Project) -> str:
        self.calls.append(("suggest_answer", (question, project)))
        return self.suggestion
