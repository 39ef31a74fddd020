"""Pytest configuration and fixtures."""

import os

import pytest

# Settings are read at import time by some modules; set the environment first.
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ["DOCGEN_ENV"] = "test"
os.environ["STORE_BACKEND"] = "local"
os.environ["LOCAL_DB_URL"] = "sqlite://"
os.environ["GROUNDING_ENABLED"] = "true"
os.environ["QUESTION_FALLBACK_POLICY"] = "default"
os.environ["REFINE_VERIFY_SECTIONS"] = "false"
os.environ["ADMIN_API_KEY"] = "test-admin-key"

from analyst_pro.core.config import Settings, get_settings  # noqa: E402
from analyst_pro.core.orchestrator import GenerationOrchestrator  # noqa: E402
from analyst_pro.core.session_context import AuthenticatedUser, SessionContext  # noqa: E402
from analyst_pro.core.workspace import ProjectWorkspace  # noqa: E402
from tests.fakes.fake_collaborator import FakeCollaborator  # noqa: E402
from tests.fakes.memory_store import InMemoryArtifactStore  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(uid="user-1", email="ba@example.com", email_verified=True)


@pytest.fixture
def store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def collaborator() -> FakeCollaborator:
    return FakeCollaborator()


@pytest.fixture
def ctx(user, store, collaborator, settings) -> SessionContext:
    return SessionContext(user=user, store=store, collaborator=collaborator, settings=settings)


@pytest.fixture
def workspace(ctx) -> ProjectWorkspace:
    return ProjectWorkspace(ctx)


@pytest.fixture
def orchestrator(ctx, workspace) -> GenerationOrchestrator:
    return GenerationOrchestrator(ctx, workspace)
