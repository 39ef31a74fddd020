"""API router for v1 endpoints."""

from fastapi import APIRouter

from analyst_pro.api import documents, profile, projects

router = APIRouter()

# Projects and reference files
router.include_router(projects.router, prefix="/projects", tags=["projects"])

# Document flow (templates, interview, generation, refinement, save)
router.include_router(documents.router, prefix="/session", tags=["session"])

# Profile and sign-out
router.include_router(profile.router, prefix="/profile", tags=["profile"])
