"""Remote artifact store on Supabase Postgres.

Tables:
    projects           (id, owner_id, name, description, files, created_at)
    project_artifacts  (id, owner_id, project_id, title, type, content, answers,
                        version, created_at, last_updated)
    profiles           (uid, email, display_name, position, created_at)

Projects and artifacts are joined in memory on read. Deleting a project
removes its artifacts one by one and then the project row; a crash between
the two steps leaves orphaned artifacts, which ``sweep_orphaned_artifacts``
cleans up.
"""

from typing import Any

from supabase import Client

from analyst_pro.core.errors import PersistenceError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import DocumentArtifact, Project, UserProfile
from analyst_pro.db.artifact_store import ArtifactStore
from analyst_pro.db.supabase_client import get_supabase

logger = get_logger(__name__)

PROJECTS_TABLE = "projects"
ARTIFACTS_TABLE = "project_artifacts"
PROFILES_TABLE = "profiles"


def _project_row(owner_id: str, project: Project) -> dict[str, Any]:
    row = project.model_dump(mode="json", exclude={"artifacts"})
    row["owner_id"] = owner_id
    return row


def _artifact_row(owner_id: str, project_id: str, artifact: DocumentArtifact) -> dict[str, Any]:
    row = artifact.model_dump(mode="json")
    row["owner_id"] = owner_id
    row["project_id"] = project_id
    return row


class SupabaseArtifactStore(ArtifactStore):
    """Supabase-backed store, scoped by owner id on every query."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def list_projects(self, owner_id: str) -> list[Project]:
        """
        List an owner's projects with their artifacts.

        Returns:
            Projects sorted by created_at desc, artifacts by last_updated desc

        Raises:
            PersistenceError: If either query fails
        """
        try:
            project_rows = (
                self.client.table(PROJECTS_TABLE)
                .select("*")
                .eq("owner_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            ).data or []

            artifact_rows = (
                self.client.table(ARTIFACTS_TABLE)
                .select("*")
                .eq("owner_id", owner_id)
                .order("last_updated", desc=True)
                .execute()
            ).data or []
        except Exception as e:
            logger.error(f"Failed to list projects for {owner_id}: {e}")
            raise PersistenceError(f"Failed to list projects: {e}") from e

        by_project: dict[str, list[dict[str, Any]]] = {}
        for row in artifact_rows:
            by_project.setdefault(row["project_id"], []).append(row)

        projects = []
        for row in project_rows:
            project = Project.model_validate({**row, "artifacts": by_project.get(row["id"], [])})
            project.sort_artifacts()
            projects.append(project)

        projects.sort(key=lambda p: p.created_at, reverse=True)

        logger.info(
            f"Listed {len(projects)} projects",
            extra={"owner_id": owner_id, "artifacts": len(artifact_rows)},
        )
        return projects

    def save_project(self, owner_id: str, project: Project) -> None:
        try:
            self.client.table(PROJECTS_TABLE).upsert(_project_row(owner_id, project)).execute()
        except Exception as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            raise PersistenceError(f"Failed to save project: {e}") from e

        logger.info(f"Saved project {project.id}", extra={"project_id": project.id})

    def save_artifact(self, owner_id: str, project_id: str, artifact: DocumentArtifact) -> None:
        try:
            self.client.table(ARTIFACTS_TABLE).upsert(
                _artifact_row(owner_id, project_id, artifact)
            ).execute()
        except Exception as e:
            logger.error(f"Failed to save artifact {artifact.id}: {e}")
            raise PersistenceError(f"Failed to save artifact: {e}") from e

        logger.info(
            f"Saved artifact {artifact.id} v{artifact.version}",
            extra={"project_id": project_id, "artifact_id": artifact.id},
        )

    def delete_project(self, owner_id: str, project_id: str) -> None:
        """
        Delete every artifact of the project, then the project row.

        Raises:
            PersistenceError: If any step fails. Artifacts already deleted stay deleted.
        """
        try:
            artifact_rows = (
                self.client.table(ARTIFACTS_TABLE)
                .select("id")
                .eq("owner_id", owner_id)
                .eq("project_id", project_id)
                .execute()
            ).data or []

            for row in artifact_rows:
                (
                    self.client.table(ARTIFACTS_TABLE)
                    .delete()
                    .eq("owner_id", owner_id)
                    .eq("id", row["id"])
                    .execute()
                )

            (
                self.client.table(PROJECTS_TABLE)
                .delete()
                .eq("owner_id", owner_id)
                .eq("id", project_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to delete project {project_id}: {e}")
            raise PersistenceError(f"Failed to delete project: {e}") from e

        logger.info(
            f"Deleted project {project_id} and {len(artifact_rows)} artifacts",
            extra={"project_id": project_id},
        )

    def sweep_orphaned_artifacts(self, owner_id: str) -> int:
        """
        Delete artifact rows whose project row no longer exists.

        Returns:
            Number of artifacts removed
        """
        try:
            project_ids = {
                row["id"]
                for row in (
                    self.client.table(PROJECTS_TABLE)
                    .select("id")
                    .eq("owner_id", owner_id)
                    .execute()
                ).data
                or []
            }
            artifact_rows = (
                self.client.table(ARTIFACTS_TABLE)
                .select("id, project_id")
                .eq("owner_id", owner_id)
                .execute()
            ).data or []

            orphans = [row for row in artifact_rows if row["project_id"] not in project_ids]
            for row in orphans:
                (
                    self.client.table(ARTIFACTS_TABLE)
                    .delete()
                    .eq("owner_id", owner_id)
                    .eq("id", row["id"])
                    .execute()
                )
        except Exception as e:
            logger.error(f"Failed to sweep orphaned artifacts for {owner_id}: {e}")
            raise PersistenceError(f"Failed to sweep orphaned artifacts: {e}") from e

        if orphans:
            logger.warning(
                f"Removed {len(orphans)} orphaned artifacts",
                extra={"owner_id": owner_id},
            )
        return len(orphans)

    def get_profile(self, uid: str) -> UserProfile | None:
        try:
            rows = (
                self.client.table(PROFILES_TABLE).select("*").eq("uid", uid).execute()
            ).data or []
        except Exception as e:
            logger.error(f"Failed to load profile {uid}: {e}")
            raise PersistenceError(f"Failed to load profile: {e}") from e

        return UserProfile.model_validate(rows[0]) if rows else None

    def save_profile(self, profile: UserProfile) -> None:
        try:
            self.client.table(PROFILES_TABLE).upsert(profile.model_dump(mode="json")).execute()
        except Exception as e:
            logger.error(f"Failed to save profile {profile.uid}: {e}")
            raise PersistenceError(f"Failed to save profile: {e}") from e

    def delete_profile(self, uid: str) -> None:
        try:
            self.client.table(PROFILES_TABLE).delete().eq("uid", uid).execute()
        except Exception as e:
            logger.error(f"Failed to delete profile {uid}: {e}")
            raise PersistenceError(f"Failed to delete profile: {e}") from e
