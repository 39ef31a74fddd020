"""The AI collaborator handed to the orchestrator.

Bundles every model-backed operation behind one object so the orchestrator
and graphs never import the chains directly and tests can swap in a fake.
"""

from anthropic import AsyncAnthropic

from analyst_pro.chains.auto_answer import auto_answer
from analyst_pro.chains.generate_document import TextCallback, stream_document
from analyst_pro.chains.generate_questions import GeneratedQuestion, generate_questions
from analyst_pro.chains.grounding import fetch_external_context
from analyst_pro.chains.refine_document import refine_section
from analyst_pro.chains.suggest_answer import suggest_answer
from analyst_pro.core.context_assembler import GenerationPayload
from analyst_pro.core.llm import get_anthropic_client
from analyst_pro.core.schemas_documents import Answer, Project, Question


class AnthropicCollaborator:
    """Anthropic-backed implementation of the collaborator interface."""

    def __init__(self, client: AsyncAnthropic | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = get_anthropic_client()
        return self._client

    async def generate_questions(self, doc_type_name: str) -> list[GeneratedQuestion]:
        return await generate_questions(doc_type_name, client=self.client)

    async def auto_answer(self, questions: list[Question], project: Project) -> list[Answer]:
        return await auto_answer(questions, project, client=self.client)

    async def fetch_grounding(self, project: Project) -> str | None:
        return await fetch_external_context(project.name, project.description, client=self.client)

    async def stream_document(
        self,
        payload: GenerationPayload,
        on_text: TextCallback | None = None,
        project_id: str | None = None,
    ) -> str:
        return await stream_document(
            payload, on_text=on_text, client=self.client, project_id=project_id
        )

    async def refine_section(self, content: str, section: str, instruction: str) -> str:
        return await refine_section(content, section, instruction, client=self.client)

    async def suggest_answer(self, question: str, project: Project) -> str:
        return await suggest_answer(question, project, client=self.client)
