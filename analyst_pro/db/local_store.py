"""Embedded artifact store on SQLite via SQLAlchemy.

One row per project, keyed by project id, holding the whole project record
(files and artifacts included) as JSON. A stored schema version drives
upgrades of older records when the store is opened.
"""

from typing import Any

from sqlalchemy import JSON, Column, Integer, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from analyst_pro.core.errors import PersistenceError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import DocumentArtifact, Project, UserProfile
from analyst_pro.db.artifact_store import ArtifactStore

logger = get_logger(__name__)

SCHEMA_VERSION = 2
SCHEMA_VERSION_KEY = "schema_version"

Base = declarative_base()


class ProjectRecord(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)


class ProfileRecord(Base):
    __tablename__ = "profiles"

    uid = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)


class StoreMeta(Base):
    __tablename__ = "store_meta"

    key = Column(String, primary_key=True)
    value = Column(Integer, nullable=False)


def _create_engine(url: str):
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)


def _upgrade_v1_record(data: dict[str, Any]) -> dict[str, Any]:
    """Version 1 kept artifacts under "documents"."""
    upgraded = dict(data)
    if "artifacts" not in upgraded:
        upgraded["artifacts"] = upgraded.pop("documents", None) or []
    else:
        upgraded.pop("documents", None)
    return upgraded


class LocalArtifactStore(ArtifactStore):
    """SQLite-backed store. Safe for a single process."""

    def __init__(self, url: str = "sqlite:///analyst_pro.db") -> None:
        self.url = url
        try:
            self.engine = _create_engine(url)
            Base.metadata.create_all(self.engine)
            self.Session = sessionmaker(bind=self.engine)
            self._ensure_schema()
        except SQLAlchemyError as e:
            logger.error(f"Failed to open local store at {url}: {e}")
            raise PersistenceError(f"Failed to open local store: {e}") from e

    # ------------------------------------------------------------------
    # Schema versioning
    # ------------------------------------------------------------------

    def schema_version(self) -> int:
        with self.Session() as session:
            meta = session.get(StoreMeta, SCHEMA_VERSION_KEY)
            return meta.value if meta else 0

    def _ensure_schema(self) -> None:
        with self.Session.begin() as session:
            meta = session.get(StoreMeta, SCHEMA_VERSION_KEY)
            if meta is None:
                has_rows = session.query(ProjectRecord).first() is not None
                # Rows without a version stamp predate versioning
                current = 1 if has_rows else SCHEMA_VERSION
                meta = StoreMeta(key=SCHEMA_VERSION_KEY, value=current)
                session.add(meta)

            if meta.value < 2:
                for record in session.query(ProjectRecord).all():
                    record.data = _upgrade_v1_record(record.data)
                logger.info(f"Upgraded local store from version {meta.value} to 2")
                meta.value = 2

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self, owner_id: str) -> list[Project]:
        try:
            with self.Session() as session:
                records = session.query(ProjectRecord).filter_by(owner_id=owner_id).all()
                projects = [Project.model_validate(record.data) for record in records]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list projects for {owner_id}: {e}")
            raise PersistenceError(f"Failed to list projects: {e}") from e

        for project in projects:
            project.sort_artifacts()
        projects.sort(key=lambda p: p.created_at, reverse=True)

        logger.debug(f"Listed {len(projects)} local projects", extra={"owner_id": owner_id})
        return projects

    def save_project(self, owner_id: str, project: Project) -> None:
        try:
            with self.Session.begin() as session:
                record = session.get(ProjectRecord, project.id)
                data = project.model_dump(mode="json", exclude={"artifacts"})

                if record is None:
                    data["artifacts"] = []
                    session.add(ProjectRecord(id=project.id, owner_id=owner_id, data=data))
                else:
                    if record.owner_id != owner_id:
                        raise PersistenceError(f"Project {project.id} belongs to another owner")
                    data["artifacts"] = list(record.data.get("artifacts") or [])
                    record.data = data
        except SQLAlchemyError as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            raise PersistenceError(f"Failed to save project: {e}") from e

        logger.info(f"Saved project {project.id}", extra={"project_id": project.id})

    def save_artifact(self, owner_id: str, project_id: str, artifact: DocumentArtifact) -> None:
        try:
            with self.Session.begin() as session:
                record = session.get(ProjectRecord, project_id)
                if record is None or record.owner_id != owner_id:
                    raise PersistenceError(f"Project {project_id} not found")

                serialized = artifact.model_dump(mode="json")
                artifacts = [
                    a for a in (record.data.get("artifacts") or []) if a.get("id") != artifact.id
                ]
                artifacts.append(serialized)
                artifacts.sort(key=lambda a: a.get("last_updated") or "", reverse=True)

                data = dict(record.data)
                data["artifacts"] = artifacts
                record.data = data
        except SQLAlchemyError as e:
            logger.error(f"Failed to save artifact {artifact.id}: {e}")
            raise PersistenceError(f"Failed to save artifact: {e}") from e

        logger.info(
            f"Saved artifact {artifact.id} v{artifact.version}",
            extra={"project_id": project_id, "artifact_id": artifact.id},
        )

    def delete_project(self, owner_id: str, project_id: str) -> None:
        try:
            with self.Session.begin() as session:
                record = session.get(ProjectRecord, project_id)
                if record is None:
                    return
                if record.owner_id != owner_id:
                    raise PersistenceError(f"Project {project_id} not found")
                session.delete(record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete project {project_id}: {e}")
            raise PersistenceError(f"Failed to delete project: {e}") from e

        logger.info(f"Deleted project {project_id}", extra={"project_id": project_id})

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self, uid: str) -> UserProfile | None:
        try:
            with self.Session() as session:
                record = session.get(ProfileRecord, uid)
                return UserProfile.model_validate(record.data) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load profile {uid}: {e}")
            raise PersistenceError(f"Failed to load profile: {e}") from e

    def save_profile(self, profile: UserProfile) -> None:
        try:
            with self.Session.begin() as session:
                record = session.get(ProfileRecord, profile.uid)
                data = profile.model_dump(mode="json")
                if record is None:
                    session.add(ProfileRecord(uid=profile.uid, data=data))
                else:
                    record.data = data
        except SQLAlchemyError as e:
            logger.error(f"Failed to save profile {profile.uid}: {e}")
            raise PersistenceError(f"Failed to save profile: {e}") from e

    def delete_profile(self, uid: str) -> None:
        try:
            with self.Session.begin() as session:
                record = session.get(ProfileRecord, uid)
                if record is not None:
                    session.delete(record)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete profile {uid}: {e}")
            raise PersistenceError(f"Failed to delete profile: {e}") from e
