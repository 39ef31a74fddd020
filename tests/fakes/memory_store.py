"""In-memory artifact store for orchestrator and API tests."""

from analyst_pro.core.errors import PersistenceError
from analyst_pro.core.schemas_documents import DocumentArtifact, Project, UserProfile
from analyst_pro.db.artifact_store import ArtifactStore


class InMemoryArtifactStore(ArtifactStore):
    """Dict-backed store. Set ``fail_writes`` to make every write raise."""

    def __init__(self):
        self.projects: dict[str, tuple[str, Project]] = {}
        self.profiles: dict[str, UserProfile] = {}
        self.fail_writes = False
        self.writes = 0

    def _check_write(self) -> None:
        if self.fail_writes:
            raise PersistenceError("store unavailable")
        self.writes += 1

    def list_projects(self, owner_id: str) -> list[Project]:
        projects = [p.model_copy(deep=True) for owner, p in self.projects.values() if owner == owner_id]
        for project in projects:
            project.sort_artifacts()
        projects.sort(key=lambda p: p.created_at, reverse=True)
        return projects

    def save_project(self, owner_id: str, project: Project) -> None:
        self._check_write()
        existing = self.projects.get(project.id)
        artifacts = existing[1].artifacts if existing else []
        stored = project.model_copy(deep=True, update={"artifacts": list(artifacts)})
        self.projects[project.id] = (owner_id, stored)

    def save_artifact(self, owner_id: str, project_id: str, artifact: DocumentArtifact) -> None:
        self._check_write()
        existing = self.projects.get(project_id)
        if existing is None or existing[0] != owner_id:
            raise PersistenceError(f"Project {project_id} not found")
        project = existing[1]
        project.artifacts = [a for a in project.artifacts if a.id != artifact.id]
        project.artifacts.append(artifact.model_copy(deep=True))
        project.sort_artifacts()

    def delete_project(self, owner_id: str, project_id: str) -> None:
        self._check_write()
        existing = self.projects.get(project_id)
        if existing is not None and existing[0] == owner_id:
            del self.projects[project_id]

    def stored_project(self, project_id: str) -> Project | None:
        existing = self.projects.get(project_id)
        return existing[1] if existing else None

    def get_profile(self, uid: str) -> UserProfile | None:
        return self.profiles.get(uid)

    def save_profile(self, profile: UserProfile) -> None:
        self._check_write()
        self.profiles[profile.uid] = profile

    def delete_profile(self, uid: str) -> None:
        self._check_write()
        self.profiles.pop(uid, None)
