"""Explicit per-user context: identity, store, collaborator and settings."""

from dataclasses import dataclass
from typing import Any

from analyst_pro.core.config import Settings
from analyst_pro.core.errors import AuthorizationError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_documents import UserProfile
from analyst_pro.db.artifact_store import ArtifactStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved from the auth provider."""

    uid: str
    email: str = ""
    email_verified: bool = False
    display_name: str | None = None


def require_verified(user: AuthenticatedUser | None) -> AuthenticatedUser:
    """Reject absent identities and identities without a confirmed email."""
    if user is None:
        raise AuthorizationError("Not authenticated")
    if not user.email_verified:
        raise AuthorizationError("Email address has not been verified")
    return user


@dataclass
class SessionContext:
    """Everything an operation needs to act on behalf of one user."""

    user: AuthenticatedUser
    store: ArtifactStore
    collaborator: Any
    settings: Settings

    @property
    def owner_id(self) -> str:
        return self.user.uid


def sync_user_profile(store: ArtifactStore, user: AuthenticatedUser) -> UserProfile:
    """
    Return the user's profile, creating it with defaults on first access.

    Missing display name or position on a stored profile fall back to defaults.
    """
    existing = store.get_profile(user.uid)
    if existing is not None:
        return existing.model_copy(
            update={
                "email": user.email or existing.email,
                "display_name": existing.display_name or user.display_name or "Business Analyst",
                "position": existing.position or "Senior Business Analyst",
            }
        )

    profile = UserProfile(
        uid=user.uid,
        email=user.email,
        display_name=user.display_name or "Business Analyst",
    )
    store.save_profile(profile)
    logger.info(f"Created profile for {user.uid}")
    return profile
