"""Registry of open user sessions, held by the application."""

import time
from dataclasses import dataclass
from typing import Any

from analyst_pro.core.config import Settings
from analyst_pro.core.logging import get_logger
from analyst_pro.core.orchestrator import GenerationOrchestrator
from analyst_pro.core.schemas_documents import UserProfile
from analyst_pro.core.session_context import (
    AuthenticatedUser,
    SessionContext,
    require_verified,
    sync_user_profile,
)
from analyst_pro.core.workspace import ProjectWorkspace
from analyst_pro.db.artifact_store import ArtifactStore

logger = get_logger(__name__)


@dataclass
class UserSession:
    context: SessionContext
    workspace: ProjectWorkspace
    orchestrator: GenerationOrchestrator
    profile: UserProfile
    last_seen: float = 0.0

    @property
    def busy(self) -> bool:
        orchestrator = self.orchestrator
        return orchestrator.is_generating or orchestrator.is_saving or orchestrator.is_refining


class SessionRegistry:
    """
    One UserSession per authenticated user.

    Opening a session syncs the profile and reads the user's projects
    wholesale. Signing out drops everything held for that user, and sessions
    left idle longer than SESSION_IDLE_MINUTES are dropped on the next lookup
    unless an operation is still running. Unsaved previews go with them.
    """

    def __init__(self, store: ArtifactStore, collaborator: Any, settings: Settings) -> None:
        self.store = store
        self.collaborator = collaborator
        self.settings = settings
        self._sessions: dict[str, UserSession] = {}

    def open(self, user: AuthenticatedUser) -> UserSession:
        require_verified(user)

        existing = self.get(user.uid)
        if existing is not None:
            return existing

        ctx = SessionContext(
            user=user,
            store=self.store,
            collaborator=self.collaborator,
            settings=self.settings,
        )
        profile = sync_user_profile(self.store, user)
        workspace = ProjectWorkspace(ctx)
        workspace.load()

        session = UserSession(
            context=ctx,
            workspace=workspace,
            orchestrator=GenerationOrchestrator(ctx, workspace),
            profile=profile,
        )
        session.last_seen = time.monotonic()
        self._sessions[user.uid] = session
        logger.info(f"Opened session for {user.uid}")
        return session

    def get(self, uid: str) -> UserSession | None:
        self.evict_idle()
        session = self._sessions.get(uid)
        if session is not None:
            session.last_seen = time.monotonic()
        return session

    def evict_idle(self) -> list[str]:
        """Drop idle sessions that have nothing in flight. Returns the evicted uids."""
        limit = self.settings.SESSION_IDLE_MINUTES * 60
        if limit <= 0:
            return []

        now = time.monotonic()
        evicted = [
            uid
            for uid, session in self._sessions.items()
            if now - session.last_seen > limit and not session.busy
        ]
        for uid in evicted:
            del self._sessions[uid]
            logger.info(f"Evicted idle session for {uid}")
        return evicted

    def close(self, uid: str) -> None:
        if self._sessions.pop(uid, None) is not None:
            logger.info(f"Closed session for {uid}")
