"""Pydantic schemas for projects, reference files, interviews and artifacts."""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from analyst_pro.core.errors import EmptyProjectNameError

NO_ANSWER_TEXT = "No answer provided."
DEFAULT_PLACEHOLDER = "Enter details here..."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class DocType(str, Enum):
    """Supported document types. CUSTOM covers anything user-defined."""

    RFP = "Request for Proposal (RFP)"
    BRD = "Business Requirement Document (BRD)"
    SRS = "Software Requirements Specification (SRS)"
    RACI = "RACI Matrix"
    USER_STORIES = "User Stories & Acceptance Criteria"
    IMPACT_ANALYSIS = "Impact Analysis"
    CUSTOM = "Custom Document"

    @classmethod
    def parse(cls, value: str) -> "DocType":
        """Resolve a type from its value or member name; unknown strings map to CUSTOM."""
        for member in cls:
            if value == member.value or value.upper() == member.name:
                return member
        return cls.CUSTOM


class Template(BaseModel):
    """A document type selection plus the name shown on the generated document."""

    model_config = ConfigDict(frozen=True)

    doc_type: DocType
    name: str

    @classmethod
    def for_type(cls, doc_type: DocType, name: str | None = None) -> "Template":
        if doc_type is DocType.CUSTOM:
            return cls(doc_type=doc_type, name=(name or "").strip() or DocType.CUSTOM.value)
        return cls(doc_type=doc_type, name=doc_type.value)


# =============================================================================
# Interview
# =============================================================================


class Question(BaseModel):
    """Interview question. The id is its position in the set it was created with."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0)
    text: str
    required: bool = True
    placeholder: str | None = DEFAULT_PLACEHOLDER


class Answer(BaseModel):
    """Answer to one interview question."""

    model_config = ConfigDict(frozen=True)

    question_id: int
    question_text: str
    text: str


# =============================================================================
# Reference files
# =============================================================================


class ReferenceFile(BaseModel):
    """Encoded reference file attached to a project."""

    model_config = ConfigDict(frozen=True)

    name: str
    mime_type: str = "application/octet-stream"
    original_size: int = Field(..., ge=0, description="Size before compression, display only")
    payload: str = Field(..., description="Base64 of the (compressed) bytes")
    is_compressed: bool = True
    encoded_size: int = Field(0, ge=0, description="Compressed byte length")


# =============================================================================
# Artifacts and projects
# =============================================================================


class DocumentArtifact(BaseModel):
    """A saved, versioned generated document."""

    id: str = Field(default_factory=new_id)
    title: str
    type: DocType
    content: str = ""
    answers: list[Answer] = Field(default_factory=list)
    version: int = Field(1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)


class Project(BaseModel):
    """A user project owning its reference files and artifacts."""

    id: str = Field(default_factory=new_id)
    name: str = "Untitled Project"
    description: str = ""
    files: list[ReferenceFile] = Field(default_factory=list)
    artifacts: list[DocumentArtifact] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    def find_artifact(self, artifact_id: str) -> DocumentArtifact | None:
        for artifact in self.artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def sort_artifacts(self) -> None:
        self.artifacts.sort(key=lambda a: a.last_updated, reverse=True)


def new_project(
    name: str,
    description: str = "",
    files: list[ReferenceFile] | None = None,
) -> Project:
    """Create a project, rejecting blank names."""
    if not name or not name.strip():
        raise EmptyProjectNameError()
    return Project(name=name.strip(), description=description or "", files=list(files or []))


class UserProfile(BaseModel):
    """Profile record kept alongside the auth identity."""

    uid: str
    email: str = ""
    display_name: str = "Business Analyst"
    position: str = "Senior Business Analyst"
    created_at: datetime = Field(default_factory=utcnow)
