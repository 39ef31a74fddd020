"""Tests for the cached project workspace and user sessions."""

import os
from unittest.mock import patch

import pytest

from analyst_pro.core.errors import (
    AuthorizationError,
    EmptyProjectNameError,
    NotFoundError,
    PersistenceError,
)
from analyst_pro.core.file_codec import FileUpload
from analyst_pro.core.schemas_documents import UserProfile
from analyst_pro.core.session_context import AuthenticatedUser, sync_user_profile
from analyst_pro.core.sessions import SessionRegistry
from analyst_pro.core.workspace import ProjectWorkspace


class TestProjectWorkspace:
    def test_create_project_newest_first(self, workspace, store):
        first, _ = workspace.create_project("First")
        second, _ = workspace.create_project("Second", "desc")

        assert [p.id for p in workspace.projects] == [second.id, first.id]
        assert store.stored_project(second.id).description == "desc"

    def test_blank_name_rejected(self, workspace, store):
        with pytest.raises(EmptyProjectNameError):
            workspace.create_project("   ")
        assert workspace.projects == []
        assert store.projects == {}

    def test_oversized_upload_reported_project_still_created(self, workspace):
        uploads = [
            FileUpload(name="ok.txt", mime_type="text/plain", data=b"hello"),
            FileUpload(name="huge.bin", mime_type=None, data=os.urandom(2 * 1024 * 1024)),
        ]

        project, ingest = workspace.create_project("Checkout", "", uploads)

        assert [f.name for f in project.files] == ["ok.txt"]
        assert [r.name for r in ingest.rejected] == ["huge.bin"]

    def test_store_failure_leaves_cache_untouched(self, workspace, store):
        project, _ = workspace.create_project("Checkout")
        store.fail_writes = True

        with pytest.raises(PersistenceError):
            workspace.create_project("Other")
        with pytest.raises(PersistenceError):
            workspace.update_project(project.id, name="Renamed")

        assert [p.name for p in workspace.projects] == ["Checkout"]

    def test_update_and_files(self, workspace, store):
        project, _ = workspace.create_project("Checkout")

        workspace.update_project(project.id, name="Checkout v2", description="Web only")
        updated, _ = workspace.add_files(
            project.id,
            [
                FileUpload(name="a.txt", mime_type="text/plain", data=b"a"),
                FileUpload(name="b.txt", mime_type="text/plain", data=b"b"),
            ],
        )
        assert [f.name for f in updated.files] == ["a.txt", "b.txt"]

        updated = workspace.remove_file(project.id, 0)
        assert [f.name for f in updated.files] == ["b.txt"]
        assert store.stored_project(project.id).name == "Checkout v2"
        assert [f.name for f in store.stored_project(project.id).files] == ["b.txt"]

        with pytest.raises(NotFoundError):
            workspace.remove_file(project.id, 5)
        with pytest.raises(EmptyProjectNameError):
            workspace.update_project(project.id, name="")

    def test_load_reads_store(self, ctx, workspace):
        workspace.create_project("Checkout")

        fresh = ProjectWorkspace(ctx)
        assert fresh.load()[0].name == "Checkout"

    def test_get_missing(self, workspace):
        with pytest.raises(NotFoundError):
            workspace.get("missing")


class TestSessions:
    def test_unverified_user_rejected(self, store, collaborator, settings):
        registry = SessionRegistry(store, collaborator, settings)
        with pytest.raises(AuthorizationError):
            registry.open(AuthenticatedUser(uid="u1", email="a@example.com"))

    def test_open_creates_profile_and_reuses_session(self, store, collaborator, settings, user):
        registry = SessionRegistry(store, collaborator, settings)

        session = registry.open(user)

        assert registry.open(user) is session
        assert session.profile.display_name == "Business Analyst"
        assert store.get_profile(user.uid) is not None

        registry.close(user.uid)
        assert registry.get(user.uid) is None

    @patch("analyst_pro.core.sessions.time")
    def test_idle_session_evicted(self, mock_time, store, collaborator, settings, user):
        registry = SessionRegistry(store, collaborator, settings)
        mock_time.monotonic.return_value = 1000.0
        session = registry.open(user)

        mock_time.monotonic.return_value = 1000.0 + settings.SESSION_IDLE_MINUTES * 60 + 1

        assert registry.get(user.uid) is None
        assert registry.open(user) is not session

    @patch("analyst_pro.core.sessions.time")
    def test_busy_session_survives_idle_limit(self, mock_time, store, collaborator, settings, user):
        registry = SessionRegistry(store, collaborator, settings)
        mock_time.monotonic.return_value = 1000.0
        session = registry.open(user)
        session.orchestrator.is_generating = True

        mock_time.monotonic.return_value = 1000.0 + settings.SESSION_IDLE_MINUTES * 60 + 1

        assert registry.evict_idle() == []
        assert registry.get(user.uid) is session

    @patch("analyst_pro.core.sessions.time")
    def test_idle_eviction_disabled(self, mock_time, store, collaborator, settings, user):
        registry = SessionRegistry(
            store, collaborator, settings.model_copy(update={"SESSION_IDLE_MINUTES": 0})
        )
        mock_time.monotonic.return_value = 1000.0
        session = registry.open(user)

        mock_time.monotonic.return_value = 10_000_000.0

        assert registry.get(user.uid) is session

    def test_profile_defaults_filled_on_sync(self, store, user):
        store.save_profile(UserProfile(uid=user.uid, display_name="", position=""))

        profile = sync_user_profile(store, user)

        assert profile.display_name == "Business Analyst"
        assert profile.position == "Senior Business Analyst"
        assert profile.email == user.email
