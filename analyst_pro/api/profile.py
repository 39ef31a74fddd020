"""API endpoints for the caller's profile and sign-out."""

from fastapi import APIRouter, Depends

from analyst_pro.api.errors import to_http_exception
from analyst_pro.core.auth_middleware import get_registry, get_user_session
from analyst_pro.core.errors import AnalystProError
from analyst_pro.core.logging import get_logger
from analyst_pro.core.schemas_projects import ProfileResponse, UpdateProfileRequest
from analyst_pro.core.sessions import SessionRegistry, UserSession

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(session: UserSession = Depends(get_user_session)) -> ProfileResponse:
    return ProfileResponse.from_profile(session.profile)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    request: UpdateProfileRequest,
    session: UserSession = Depends(get_user_session),
) -> ProfileResponse:
    update = request.model_dump(exclude_none=True)
    profile = session.profile.model_copy(update=update)
    try:
        session.context.store.save_profile(profile)
    except AnalystProError as e:
        raise to_http_exception(e) from e

    session.profile = profile
    return ProfileResponse.from_profile(profile)


@router.delete("")
async def delete_profile(
    session: UserSession = Depends(get_user_session),
    registry: SessionRegistry = Depends(get_registry),
) -> dict:
    """Delete the caller's profile and end their session. Projects are kept."""
    uid = session.context.owner_id
    try:
        session.context.store.delete_profile(uid)
    except AnalystProError as e:
        raise to_http_exception(e) from e

    registry.close(uid)
    logger.info(f"Deleted profile {uid}")
    return {"success": True}


@router.post("/sign-out")
async def sign_out(
    session: UserSession = Depends(get_user_session),
    registry: SessionRegistry = Depends(get_registry),
) -> dict:
    """Drop everything held in memory for the caller."""
    registry.close(session.context.owner_id)
    return {"success": True}
