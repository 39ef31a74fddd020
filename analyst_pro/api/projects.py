"""API endpoints for projects and their reference files."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from analyst_pro.api.errors import to_http_exception
from analyst_pro.core.auth_middleware import get_user_session
from analyst_pro.core.errors import AnalystProError
from analyst_pro.core.file_codec import FileUpload
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import DocType
from analyst_pro.core.schemas_projects import (
    ArtifactResponse,
    ProjectFilesResponse,
    ProjectListResponse,
    ProjectResponse,
    UpdateProjectRequest,
)
from analyst_pro.core.sessions import UserSession

logger = get_logger(__name__)

router = APIRouter()


async def _read_uploads(files: list[UploadFile]) -> list[FileUpload]:
    uploads = []
    for upload in files:
        data = await upload.read()
        uploads.append(
            FileUpload(name=upload.filename or "file", mime_type=upload.content_type, data=data)
        )
    return uploads


@router.get("", response_model=ProjectListResponse)
async def list_projects(session: UserSession = Depends(get_user_session)) -> ProjectListResponse:
    """List the caller's projects, newest first."""
    projects = [ProjectResponse.from_project(p) for p in session.workspace.projects]
    return ProjectListResponse(projects=projects, total=len(projects))


@router.post("", response_model=ProjectFilesResponse)
async def create_project(
    name: str = Form(...),
    description: str = Form(""),
    template: str | None = Form(None, description="Start a document flow for this type"),
    files: list[UploadFile] = File(default=[]),
    session: UserSession = Depends(get_user_session),
) -> ProjectFilesResponse:
    """
    Create a project with optional reference files.

    Oversized files are listed in ``rejected_files`` and not attached. When
    ``template`` is given the project is opened and the interview prepared.
    """
    try:
        uploads = await _read_uploads(files)
        project, ingest = session.workspace.create_project(name, description, uploads)
        logger.info(
            f"Created project {project.id}: {project.name}",
            extra={"project_id": project.id, "files": len(ingest.accepted)},
        )

        orchestrator = session.orchestrator
        orchestrator.open_project(project.id)
        if template:
            await orchestrator.select_template(DocType.parse(template), template)

        return ProjectFilesResponse.build(session.workspace.get(project.id), ingest)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    session: UserSession = Depends(get_user_session),
) -> ProjectResponse:
    try:
        return ProjectResponse.from_project(session.workspace.get(project_id))
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    session: UserSession = Depends(get_user_session),
) -> ProjectResponse:
    """Rename or re-describe a project."""
    try:
        project = session.workspace.update_project(
            project_id, name=request.name, description=request.description
        )
        return ProjectResponse.from_project(project)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    session: UserSession = Depends(get_user_session),
) -> dict:
    """Delete a project and all of its artifacts."""
    try:
        session.workspace.delete_project(project_id)
        session.orchestrator.project_deleted(project_id)
        return {"success": True, "project_id": project_id}
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.post("/{project_id}/files", response_model=ProjectFilesResponse)
async def upload_files(
    project_id: str,
    files: list[UploadFile] = File(...),
    session: UserSession = Depends(get_user_session),
) -> ProjectFilesResponse:
    """Attach reference files. Each file is accepted or rejected on its own."""
    try:
        uploads = await _read_uploads(files)
        project, ingest = session.workspace.add_files(project_id, uploads)
        if not ingest.accepted and ingest.rejected:
            raise HTTPException(status_code=400, detail=ingest.error_message)
        return ProjectFilesResponse.build(project, ingest)
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.delete("/{project_id}/files/{index}", response_model=ProjectResponse)
async def remove_file(
    project_id: str,
    index: int,
    session: UserSession = Depends(get_user_session),
) -> ProjectResponse:
    try:
        return ProjectResponse.from_project(session.workspace.remove_file(project_id, index))
    except AnalystProError as e:
        raise to_http_exception(e) from e


@router.get("/{project_id}/artifacts/{artifact_id}", response_model=ArtifactResponse)
async def get_artifact(
    project_id: str,
    artifact_id: str,
    session: UserSession = Depends(get_user_session),
) -> ArtifactResponse:
    try:
        project = session.workspace.get(project_id)
    except AnalystProError as e:
        raise to_http_exception(e) from e

    artifact = project.find_artifact(artifact_id)
    if artifact is None:
        raise HTTPException(status_code=404, detail=f"Artifact {artifact_id} not found")
    return ArtifactResponse.from_artifact(artifact)
