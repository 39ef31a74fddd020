"""Authentication dependencies for FastAPI."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from analyst_pro.core.config import get_settings
from analyst_pro.core.errors import AnalystProError, AuthorizationError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.session_context import AuthenticatedUser, require_verified
from analyst_pro.core.sessions import SessionRegistry, UserSession

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)

# Identity used for admin API key auth (local tools, scripts)
SYSTEM_USER = AuthenticatedUser(
    uid="00000000-0000-0000-0000-000000000001",
    email="system@analystpro.local",
    email_verified=True,
    display_name="System Analyst",
)


def resolve_supabase_user(token: str) -> AuthenticatedUser | None:
    """
    Resolve a Supabase access token to an identity.

    Returns None if the token is invalid or expired.
    """
    from analyst_pro.db.supabase_client import get_supabase

    client = get_supabase()
    auth_response = client.auth.get_user(token)
    if not auth_response or not auth_response.user:
        return None

    supabase_user = auth_response.user
    metadata = getattr(supabase_user, "user_metadata", None) or {}
    return AuthenticatedUser(
        uid=str(supabase_user.id),
        email=(supabase_user.email or "").lower(),
        email_verified=getattr(supabase_user, "email_confirmed_at", None) is not None,
        display_name=metadata.get("display_name") or metadata.get("full_name"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> Optional[AuthenticatedUser]:
    """
    Extract the current user from the request.

    Supports two authentication methods:
    1. Supabase JWT tokens (Bearer auth)
    2. Admin API key (X-API-Key header), mapped to a fixed system user

    Returns None if no valid auth is present.
    """
    settings = get_settings()
    if x_api_key and settings.ADMIN_API_KEY and x_api_key == settings.ADMIN_API_KEY:
        logger.debug("Authenticated via admin API key")
        return SYSTEM_USER

    if not credentials:
        return None

    try:
        return resolve_supabase_user(credentials.credentials)
    except Exception as e:
        logger.warning(f"Auth error: {e}")
        return None


async def require_auth(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
) -> AuthenticatedUser:
    """Require a verified identity. Raises 401 otherwise."""
    try:
        return require_verified(user)
    except AuthorizationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_user_session(
    user: AuthenticatedUser = Depends(require_auth),
    registry: SessionRegistry = Depends(get_registry),
) -> UserSession:
    """Open (or reuse) the caller's session."""
    try:
        return registry.open(user)
    except AuthorizationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except AnalystProError as e:
        logger.error(f"Failed to open session for {user.uid}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
