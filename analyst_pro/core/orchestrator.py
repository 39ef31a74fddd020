"""Document flow state machine.

PROJECTS_LIST -> PROJECT_DETAILS -> TEMPLATE_SELECT -> GENERATING_QUESTIONS
-> INTERVIEW -> GENERATING_DOC -> PREVIEW -> (save) PROJECT_DETAILS

Every async call captures the session token before it starts. Navigating
away or starting over replaces the token, and a result that comes back
carrying an old token is dropped without touching state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from analyst_pro.core.answer_cache import AnswerCache
from analyst_pro.core.errors import (
    BusyError,
    GenerationFailedError,
    InvalidTransitionError,
    MissingAnswerError,
    NotFoundError,
    PersistenceError,
    QuestionGenerationError,
)
from analyst_pro.core.logging import get_logger
from analyst_pro.core.question_bank import DEFAULT_QUESTIONS, static_questions
from analyst_pro.core.refinement import list_sections, refine
from analyst_pro.core.schemas_documents import (
    NO_ANSWER_TEXT,
    Answer,
    DocType,
    DocumentArtifact,
    Project,
    Question,
    Template,
    new_id,
    utcnow,
)
from analyst_pro.core.session_context import SessionContext
from analyst_pro.core.workspace import ProjectWorkspace
from analyst_pro.graphs.generate_document_graph import run_document_generation
from analyst_pro.graphs.interview_prep_graph import run_interview_prep

logger = get_logger(__name__)


class AppView(str, Enum):
    PROJECTS_LIST = "PROJECTS_LIST"
    PROJECT_DETAILS = "PROJECT_DETAILS"
    TEMPLATE_SELECT = "TEMPLATE_SELECT"
    GENERATING_QUESTIONS = "GENERATING_QUESTIONS"
    INTERVIEW = "INTERVIEW"
    GENERATING_DOC = "GENERATING_DOC"
    PREVIEW = "PREVIEW"


@dataclass
class GenerationSession:
    """Transient state of one document flow."""

    template: Template | None = None
    questions: list[Question] = field(default_factory=list)
    answers: list[Answer] = field(default_factory=list)
    answer_cache: AnswerCache = field(default_factory=AnswerCache)
    document_title: str | None = None
    generated_content: str | None = None
    editing_artifact_id: str | None = None
    token: str = field(default_factory=new_id)

    @property
    def has_document(self) -> bool:
        return self.generated_content is not None


class GenerationOrchestrator:
    """Drives one user's document flow against their workspace."""

    def __init__(self, ctx: SessionContext, workspace: ProjectWorkspace) -> None:
        self.ctx = ctx
        self.workspace = workspace
        self.view = AppView.PROJECTS_LIST
        self.active_project_id: str | None = None
        self.session = GenerationSession()

        self.is_generating = False
        self.is_saving = False
        self.is_refining = False

        self._content_before_generation: str | None = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def active_project(self) -> Project | None:
        if self.active_project_id is None:
            return None
        try:
            return self.workspace.get(self.active_project_id)
        except NotFoundError:
            return None

    def _require_project(self) -> Project:
        project = self.active_project
        if project is None:
            raise InvalidTransitionError("No active project")
        return project

    def _require_view(self, *views: AppView) -> None:
        if self.view not in views:
            expected = ", ".join(v.value for v in views)
            raise InvalidTransitionError(f"Not allowed from {self.view.value} (expected {expected})")

    def require_idle(self) -> None:
        if self.is_generating or self.is_saving or self.is_refining:
            raise BusyError("Another operation is in progress")

    def _is_stale(self, token: str) -> bool:
        return self.session.token != token

    def _reset_session(self) -> None:
        """Discard the flow. In-flight results for the old session are dropped."""
        self.session = GenerationSession()
        self.is_generating = False
        self.is_refining = False
        self._content_before_generation = None

    def _log_extra(self) -> dict:
        return {"session_id": self.session.token, "project_id": self.active_project_id}

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def show_projects(self) -> None:
        self.require_idle()
        self.active_project_id = None
        self._reset_session()
        self.view = AppView.PROJECTS_LIST

    def open_project(self, project_id: str) -> Project:
        self.require_idle()
        project = self.workspace.get(project_id)
        self.active_project_id = project.id
        self._reset_session()
        self.view = AppView.PROJECT_DETAILS
        return project

    def enter_template_select(self) -> None:
        self.require_idle()
        self._require_project()
        self._reset_session()
        self.view = AppView.TEMPLATE_SELECT

    def back(self) -> AppView:
        """Step back one view. Leaving an in-flight stage invalidates its results."""
        if self.view == AppView.PROJECT_DETAILS:
            self.show_projects()
        elif self.view == AppView.TEMPLATE_SELECT:
            self._reset_session()
            self.view = AppView.PROJECT_DETAILS
        elif self.view in (AppView.GENERATING_QUESTIONS, AppView.INTERVIEW):
            self._reset_session()
            self.view = AppView.TEMPLATE_SELECT
        elif self.view == AppView.GENERATING_DOC:
            self.session.token = new_id()
            self.session.generated_content = self._content_before_generation
            self._content_before_generation = None
            self.is_generating = False
            self.view = AppView.INTERVIEW
        elif self.view == AppView.PREVIEW:
            self.require_idle()
            if self.session.editing_artifact_id is not None:
                self.view = AppView.INTERVIEW
            else:
                self._reset_session()
                self.view = AppView.PROJECT_DETAILS
        return self.view

    def project_deleted(self, project_id: str) -> None:
        """Leave a project's views after it was deleted."""
        if self.active_project_id == project_id:
            self.active_project_id = None
            self._reset_session()
            self.view = AppView.PROJECTS_LIST

    # ------------------------------------------------------------------
    # Interview
    # ------------------------------------------------------------------

    async def select_template(self, doc_type: DocType, name: str | None = None) -> list[Question]:
        """
        Start a new flow for a document type.

        Loads the questions and, when the project has reference files,
        pre-fills answers from them.

        Raises:
            QuestionGenerationError: Preparation failed; view returns to TEMPLATE_SELECT
        """
        self.require_idle()
        project = self._require_project()
        self._require_view(AppView.PROJECT_DETAILS, AppView.TEMPLATE_SELECT)

        self._reset_session()
        template = Template.for_type(doc_type, name)
        self.session.template = template
        self.session.document_title = template.name
        token = self.session.token
        self.view = AppView.GENERATING_QUESTIONS
        self.is_generating = True

        try:
            questions, answers = await run_interview_prep(
                template,
                project,
                self.ctx.collaborator,
                question_policy=self.ctx.settings.QUESTION_FALLBACK_POLICY,
                session_id=token,
            )
        except Exception as e:
            if self._is_stale(token):
                logger.info("Discarding failed question load for stale session")
                return []
            logger.error(f"Interview preparation failed: {e}", extra=self._log_extra())
            self.is_generating = False
            self.view = AppView.TEMPLATE_SELECT
            raise QuestionGenerationError(f"Failed to prepare interview for {template.name}") from e

        if self._is_stale(token):
            logger.info("Discarding questions for stale session")
            return []

        self.is_generating = False
        self.session.questions = questions
        self.session.answers = answers
        self.view = AppView.INTERVIEW
        return questions

    def build_answers(self, answers_by_id: dict[int, str]) -> list[Answer]:
        """
        Turn raw interview input into an answer-set in question order.

        Raises:
            MissingAnswerError: A required question has blank input
        """
        missing = []
        answers = []
        for question in self.session.questions:
            text = answers_by_id.get(question.id) or ""
            if not text.strip():
                if question.required:
                    missing.append(question.id)
                    continue
                text = NO_ANSWER_TEXT
            answers.append(Answer(question_id=question.id, question_text=question.text, text=text))

        if missing:
            raise MissingAnswerError(missing)
        return answers

    async def complete_interview(
        self,
        answers_by_id: dict[int, str],
        on_text: Callable[[str], None] | None = None,
    ) -> bool:
        """
        Submit the interview and generate the document.

        Unchanged answers with a document already present go straight to
        PREVIEW without a generation call.

        Args:
            answers_by_id: Raw input per question id
            on_text: Optional listener for the accumulated streamed text

        Returns:
            True if a generation ran, False if it was skipped or discarded

        Raises:
            MissingAnswerError: A required answer is blank (state unchanged)
            GenerationFailedError: Generation failed; view returns to INTERVIEW
        """
        self.require_idle()
        self._require_view(AppView.INTERVIEW)
        project = self._require_project()
        template = self.session.template
        if template is None:
            raise InvalidTransitionError("No template selected")

        answers = self.build_answers(answers_by_id)
        self.session.answers = answers

        if self.session.has_document and self.session.answer_cache.matches(answers):
            logger.info("Answers unchanged, reusing generated document", extra=self._log_extra())
            self.view = AppView.PREVIEW
            return False

        token = self.session.token
        self._content_before_generation = self.session.generated_content
        self.session.document_title = self.session.document_title or template.name
        self.session.generated_content = ""
        self.view = AppView.GENERATING_DOC
        self.is_generating = True

        def handle_text(text: str) -> None:
            if self._is_stale(token):
                return
            self.session.generated_content = text
            if on_text is not None:
                on_text(text)

        try:
            content = await run_document_generation(
                template,
                project,
                answers,
                self.ctx.collaborator,
                on_text=handle_text,
                grounding_enabled=self.ctx.settings.GROUNDING_ENABLED,
                session_id=token,
            )
        except Exception as e:
            if self._is_stale(token):
                logger.info("Discarding failed generation for stale session")
                return False
            logger.error(f"Generation failed: {e}", extra=self._log_extra())
            self.session.generated_content = self._content_before_generation
            self._content_before_generation = None
            self.is_generating = False
            self.view = AppView.INTERVIEW
            if isinstance(e, GenerationFailedError):
                raise
            raise GenerationFailedError("Failed to generate document.") from e

        if self._is_stale(token):
            logger.info("Discarding generated document for stale session")
            return False

        self.session.generated_content = content
        self.session.answer_cache.record(answers)
        self._content_before_generation = None
        self.is_generating = False
        self.view = AppView.PREVIEW
        return True

    async def suggest_answer(self, question_id: int) -> str:
        """One-off answer suggestion for an interview question."""
        self._require_view(AppView.INTERVIEW)
        project = self._require_project()
        for question in self.session.questions:
            if question.id == question_id:
                return await self.ctx.collaborator.suggest_answer(question.text, project)
        raise NotFoundError(f"Question {question_id} not found")

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def open_artifact(self, artifact_id: str) -> DocumentArtifact:
        """Seed a flow from a saved artifact and show it."""
        self.require_idle()
        project = self._require_project()
        artifact = project.find_artifact(artifact_id)
        if artifact is None:
            raise NotFoundError(f"Artifact {artifact_id} not found")

        self._reset_session()
        self.session.template = Template.for_type(artifact.type, artifact.title)
        self.session.answers = list(artifact.answers)
        self.session.answer_cache.record(artifact.answers)
        self.session.document_title = artifact.title
        self.session.generated_content = artifact.content
        self.session.editing_artifact_id = artifact.id

        asked = [a.question_text for a in artifact.answers]
        if artifact.type is DocType.CUSTOM and asked == [q.text for q in DEFAULT_QUESTIONS]:
            self.session.questions = list(DEFAULT_QUESTIONS)
        elif artifact.type is DocType.CUSTOM:
            # Generated question sets are not stored; rebuild them from the answers
            self.session.questions = [
                Question(id=a.question_id, text=a.question_text, required=False)
                for a in artifact.answers
            ]
        else:
            self.session.questions = static_questions(artifact.type)

        self.view = AppView.PREVIEW
        return artifact

    def edit_responses(self) -> None:
        self.require_idle()
        self._require_view(AppView.PREVIEW)
        self.view = AppView.INTERVIEW

    def sections(self) -> list[str]:
        return list_sections(self.session.generated_content or "")

    async def refine(self, section: str | None, instruction: str) -> str:
        """
        Rewrite one section of the previewed document.

        Raises:
            RefinementFailedError: The document is left unchanged
        """
        self.require_idle()
        self._require_view(AppView.PREVIEW)
        content = self.session.generated_content
        if not content:
            raise InvalidTransitionError("No document to refine")

        token = self.session.token
        self.is_refining = True
        try:
            revised = await refine(
                content,
                section,
                instruction,
                self.ctx.collaborator,
                verify=self.ctx.settings.REFINE_VERIFY_SECTIONS,
            )
        finally:
            if not self._is_stale(token):
                self.is_refining = False

        if self._is_stale(token):
            logger.info("Discarding refinement for stale session")
            return content

        self.session.generated_content = revised
        return revised

    def save(self) -> DocumentArtifact:
        """
        Persist the previewed document.

        Editing an artifact increments its version; otherwise a new artifact
        is created at version 1. The flow ends on PROJECT_DETAILS.

        Raises:
            PersistenceError: Store write failed; view stays on PREVIEW
        """
        self.require_idle()
        self._require_view(AppView.PREVIEW)
        project = self._require_project()
        template = self.session.template
        content = self.session.generated_content
        if template is None or content is None:
            raise InvalidTransitionError("No document to save")

        now = utcnow()
        if self.session.editing_artifact_id is not None:
            existing = project.find_artifact(self.session.editing_artifact_id)
            if existing is None:
                raise PersistenceError("Could not find artifact to update.")
            artifact = existing.model_copy(
                update={
                    "content": content,
                    "answers": list(self.session.answers),
                    "version": existing.version + 1,
                    "last_updated": now,
                }
            )
        else:
            artifact = DocumentArtifact(
                title=self.session.document_title or template.name,
                type=template.doc_type,
                content=content,
                answers=list(self.session.answers),
                version=1,
                created_at=now,
                last_updated=now,
            )

        self.is_saving = True
        try:
            self.workspace.save_artifact(project.id, artifact)
        finally:
            self.is_saving = False

        logger.info(
            f"Saved {artifact.title} v{artifact.version}",
            extra={"project_id": project.id, "artifact_id": artifact.id},
        )
        self._reset_session()
        self.view = AppView.PROJECT_DETAILS
        return artifact
