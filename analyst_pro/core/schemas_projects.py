"""Pydantic request/response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field

from analyst_pro.core.file_codec import IngestResult
from analyst_pro.core.orchestrator import GenerationOrchestrator
from analyst_pro.core.schemas_documents import (
    Answer,
    DocType,
    DocumentArtifact,
    Project,
    Question,
    ReferenceFile,
    UserProfile,
)


# =============================================================================
# Projects
# =============================================================================


class ReferenceFileResponse(BaseModel):
    """File metadata; payloads are never returned."""

    index: int
    name: str
    mime_type: str
    original_size: int
    encoded_size: int

    @classmethod
    def from_file(cls, index: int, ref: ReferenceFile) -> "ReferenceFileResponse":
        return cls(
            index=index,
            name=ref.name,
            mime_type=ref.mime_type,
            original_size=ref.original_size,
            encoded_size=ref.encoded_size,
        )


class ArtifactSummary(BaseModel):
    id: str
    title: str
    type: DocType
    version: int
    created_at: datetime
    last_updated: datetime

    @classmethod
    def from_artifact(cls, artifact: DocumentArtifact) -> "ArtifactSummary":
        return cls(
            id=artifact.id,
            title=artifact.title,
            type=artifact.type,
            version=artifact.version,
            created_at=artifact.created_at,
            last_updated=artifact.last_updated,
        )


class ArtifactResponse(ArtifactSummary):
    content: str
    answers: list[Answer] = Field(default_factory=list)

    @classmethod
    def from_artifact(cls, artifact: DocumentArtifact) -> "ArtifactResponse":
        return cls(
            **ArtifactSummary.from_artifact(artifact).model_dump(),
            content=artifact.content,
            answers=artifact.answers,
        )


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: str
    files: list[ReferenceFileResponse] = Field(default_factory=list)
    artifacts: list[ArtifactSummary] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            files=[ReferenceFileResponse.from_file(i, f) for i, f in enumerate(project.files)],
            artifacts=[ArtifactSummary.from_artifact(a) for a in project.artifacts],
            created_at=project.created_at,
        )


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class RejectedFileResponse(BaseModel):
    name: str
    reason: str


class ProjectFilesResponse(BaseModel):
    """A project after a file ingestion, plus any files that were turned away."""

    project: ProjectResponse
    rejected_files: list[RejectedFileResponse] = Field(default_factory=list)

    @classmethod
    def build(cls, project: Project, ingest: IngestResult) -> "ProjectFilesResponse":
        return cls(
            project=ProjectResponse.from_project(project),
            rejected_files=[RejectedFileResponse(name=r.name, reason=r.reason) for r in ingest.rejected],
        )


class UpdateProjectRequest(BaseModel):
    name: str | None = None
    description: str | None = None


# =============================================================================
# Document flow
# =============================================================================


class SelectTemplateRequest(BaseModel):
    doc_type: str = Field(..., description="DocType value or name; unknown values are custom")
    name: str | None = Field(None, description="Display name for a custom document type")


class InterviewRequest(BaseModel):
    answers: dict[int, str] = Field(default_factory=dict, description="Answer text by question id")


class RefineRequest(BaseModel):
    section: str | None = Field(None, description="Heading line to target; omit for whole document")
    instruction: str


class SuggestAnswerRequest(BaseModel):
    question_id: int


class SuggestAnswerResponse(BaseModel):
    suggestion: str


class SectionsResponse(BaseModel):
    sections: list[str]


class SessionStateResponse(BaseModel):
    """Snapshot of the caller's document flow."""

    view: str
    active_project_id: str | None = None
    doc_type: DocType | None = None
    template_name: str | None = None
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)
    document_title: str | None = None
    content: str | None = None
    editing_artifact_id: str | None = None
    is_generating: bool = False
    is_saving: bool = False
    is_refining: bool = False

    @classmethod
    def from_orchestrator(cls, orchestrator: GenerationOrchestrator) -> "SessionStateResponse":
        session = orchestrator.session
        template = session.template
        return cls(
            view=orchestrator.view.value,
            active_project_id=orchestrator.active_project_id,
            doc_type=template.doc_type if template else None,
            template_name=template.name if template else None,
            questions=session.questions,
            answers=session.answers,
            document_title=session.document_title,
            content=session.generated_content,
            editing_artifact_id=session.editing_artifact_id,
            is_generating=orchestrator.is_generating,
            is_saving=orchestrator.is_saving,
            is_refining=orchestrator.is_refining,
        )


# =============================================================================
# Profile
# =============================================================================


class ProfileResponse(BaseModel):
    uid: str
    email: str
    display_name: str
    position: str
    created_at: datetime

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        return cls(**profile.model_dump())


class UpdateProfileRequest(BaseModel):
    display_name: str | None = None
    position: str | None = None
