"""In-memory project list kept in sync with the artifact store.

The owner's projects are read wholesale when a session opens. Every mutation
writes to the store first and touches the cached list only after the write
succeeded.
"""

from analyst_pro.core.errors import EmptyProjectNameError, NotFoundError
from analyst_pro.core.file_codec import FileUpload, IngestResult, ingest_files
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import DocumentArtifact, Project, new_project
from analyst_pro.core.session_context import SessionContext

logger = get_logger(__name__)


class ProjectWorkspace:
    """Cached projects of one owner."""

    def __init__(self, ctx: SessionContext) -> None:
        self.ctx = ctx
        self.projects: list[Project] = []

    def load(self) -> list[Project]:
        self.projects = self.ctx.store.list_projects(self.ctx.owner_id)
        logger.info(f"Loaded {len(self.projects)} projects", extra={"owner_id": self.ctx.owner_id})
        return self.projects

    def get(self, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise NotFoundError(f"Project {project_id} not found")

    def _ingest(self, uploads: list[FileUpload] | None) -> IngestResult:
        return ingest_files(uploads or [], limit=self.ctx.settings.MAX_COMPRESSED_FILE_BYTES)

    def create_project(
        self,
        name: str,
        description: str = "",
        uploads: list[FileUpload] | None = None,
    ) -> tuple[Project, IngestResult]:
        """
        Create and persist a project.

        Oversized files are reported in the ingest result and left out; the
        project is still created with the accepted files.

        Raises:
            EmptyProjectNameError: Blank name
            PersistenceError: Store write failed (project is not cached)
        """
        ingest = self._ingest(uploads)
        project = new_project(name, description, ingest.accepted)

        self.ctx.store.save_project(self.ctx.owner_id, project)
        self.projects.insert(0, project)
        return project, ingest

    def update_project(
        self,
        project_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Rename and/or re-describe a project."""
        project = self.get(project_id)
        update = {}
        if name is not None:
            if not name.strip():
                raise EmptyProjectNameError()
            update["name"] = name.strip()
        if description is not None:
            update["description"] = description

        updated = project.model_copy(update=update)
        self.ctx.store.save_project(self.ctx.owner_id, updated)
        self._replace(updated)
        return updated

    def add_files(self, project_id: str, uploads: list[FileUpload]) -> tuple[Project, IngestResult]:
        """Append accepted files in upload order; rejected files are reported, never added."""
        project = self.get(project_id)
        ingest = self._ingest(uploads)
        if not ingest.accepted:
            return project, ingest

        updated = project.model_copy(update={"files": [*project.files, *ingest.accepted]})
        self.ctx.store.save_project(self.ctx.owner_id, updated)
        self._replace(updated)
        return updated, ingest

    def remove_file(self, project_id: str, index: int) -> Project:
        project = self.get(project_id)
        if index < 0 or index >= len(project.files):
            raise NotFoundError(f"File {index} not found in project {project_id}")

        files = [f for i, f in enumerate(project.files) if i != index]
        updated = project.model_copy(update={"files": files})
        self.ctx.store.save_project(self.ctx.owner_id, updated)
        self._replace(updated)
        return updated

    def delete_project(self, project_id: str) -> None:
        self.get(project_id)
        self.ctx.store.delete_project(self.ctx.owner_id, project_id)
        self.projects = [p for p in self.projects if p.id != project_id]

    def save_artifact(self, project_id: str, artifact: DocumentArtifact) -> Project:
        """
        Persist an artifact, then upsert it into the cached project.

        Raises:
            PersistenceError: Store write failed; the cache is left untouched
        """
        project = self.get(project_id)
        self.ctx.store.save_artifact(self.ctx.owner_id, project_id, artifact)

        artifacts = [a for a in project.artifacts if a.id != artifact.id]
        artifacts.insert(0, artifact)
        updated = project.model_copy(update={"artifacts": artifacts})
        updated.sort_artifacts()
        self._replace(updated)
        return updated

    def _replace(self, project: Project) -> None:
        self.projects = [project if p.id == project.id else p for p in self.projects]
