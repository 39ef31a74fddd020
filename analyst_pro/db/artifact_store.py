"""Artifact store contract and backend selection.

Both backends share one contract. ``save_project`` persists project metadata
and reference files; artifacts are persisted only through ``save_artifact``.
Every failure surfaces as PersistenceError. Nothing is retried and the last
writer wins.
"""

from abc import ABC, abstractmethod

from analyst_pro.core.config import Settings, get_settings
from analyst_pro.core.schemas_documents import DocumentArtifact, Project, UserProfile


class ArtifactStore(ABC):
    """Per-owner persistence of projects, artifacts and profiles."""

    @abstractmethod
    def list_projects(self, owner_id: str) -> list[Project]:
        """All projects of an owner with their artifacts, newest project first."""

    @abstractmethod
    def save_project(self, owner_id: str, project: Project) -> None:
        """Create or overwrite a project's metadata and files."""

    @abstractmethod
    def save_artifact(self, owner_id: str, project_id: str, artifact: DocumentArtifact) -> None:
        """Create or overwrite one artifact of a project."""

    @abstractmethod
    def delete_project(self, owner_id: str, project_id: str) -> None:
        """Delete a project's artifacts, then the project itself."""

    @abstractmethod
    def get_profile(self, uid: str) -> UserProfile | None:
        """Stored profile, or None if the user has none yet."""

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> None:
        """Create or overwrite a profile."""

    @abstractmethod
    def delete_profile(self, uid: str) -> None:
        """Remove a profile. Missing profiles are ignored."""


def get_artifact_store(settings: Settings | None = None) -> ArtifactStore:
    """
    Build the store selected by STORE_BACKEND.

    Returns:
        LocalArtifactStore for "local", SupabaseArtifactStore for "supabase"
    """
    settings = settings or get_settings()

    if settings.STORE_BACKEND == "supabase":
        from analyst_pro.db.projects import SupabaseArtifactStore

        return SupabaseArtifactStore()

    from analyst_pro.db.local_store import LocalArtifactStore

    return LocalArtifactStore(settings.LOCAL_DB_URL)
