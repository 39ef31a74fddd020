"""Tests for the Supabase artifact store with a mocked client."""

from unittest.mock import MagicMock, call

import pytest

from analyst_pro.core.errors import PersistenceError
from analyst_pro.core.schemas_documents import DocType, DocumentArtifact, Project, UserProfile
from analyst_pro.db.projects import ARTIFACTS_TABLE, PROJECTS_TABLE, SupabaseArtifactStore

OWNER = "owner-1"


def _mock_supabase(execute_results=None):
    """Supabase mock with chained query builder.

    Args:
        execute_results: Optional list of return values for successive
            .execute() calls (uses side_effect).
    """
    sb = MagicMock()
    chain = MagicMock()
    if execute_results is not None:
        chain.execute.side_effect = execute_results
    else:
        chain.execute.return_value = MagicMock(data=[])
    chain.eq.return_value = chain
    chain.order.return_value = chain
    chain.select.return_value = chain
    chain.upsert.return_value = chain
    chain.delete.return_value = chain
    sb.table.return_value = chain
    return sb, chain


def _project_row(project_id: str, name: str, created_at: str) -> dict:
    return {
        "id": project_id,
        "owner_id": OWNER,
        "name": name,
        "description": "",
        "files": [],
        "created_at": created_at,
    }


def _artifact_row(artifact_id: str, project_id: str, last_updated: str) -> dict:
    return {
        "id": artifact_id,
        "owner_id": OWNER,
        "project_id": project_id,
        "title": "BRD",
        "type": DocType.BRD.value,
        "content": "# BRD",
        "answers": [],
        "version": 1,
        "created_at": "2026-01-01T00:00:00Z",
        "last_updated": last_updated,
    }


class TestListProjects:
    def test_joins_artifacts_to_projects(self):
        sb, _ = _mock_supabase(
            execute_results=[
                MagicMock(
                    data=[
                        _project_row("p2", "Newer", "2026-02-01T00:00:00Z"),
                        _project_row("p1", "Older", "2026-01-01T00:00:00Z"),
                    ]
                ),
                MagicMock(
                    data=[
                        _artifact_row("a2", "p1", "2026-03-02T00:00:00Z"),
                        _artifact_row("a1", "p1", "2026-03-01T00:00:00Z"),
                    ]
                ),
            ]
        )
        store = SupabaseArtifactStore(client=sb)

        projects = store.list_projects(OWNER)

        assert [p.id for p in projects] == ["p2", "p1"]
        assert projects[0].artifacts == []
        assert [a.id for a in projects[1].artifacts] == ["a2", "a1"]
        assert sb.table.call_args_list[:2] == [call(PROJECTS_TABLE), call(ARTIFACTS_TABLE)]

    def test_query_failure(self):
        sb, chain = _mock_supabase()
        chain.execute.side_effect = RuntimeError("connection refused")

        with pytest.raises(PersistenceError):
            SupabaseArtifactStore(client=sb).list_projects(OWNER)


class TestWrites:
    def test_save_project_excludes_artifacts(self):
        sb, chain = _mock_supabase()
        project = Project(name="Checkout")

        SupabaseArtifactStore(client=sb).save_project(OWNER, project)

        row = chain.upsert.call_args.args[0]
        assert row["owner_id"] == OWNER
        assert row["name"] == "Checkout"
        assert "artifacts" not in row

    def test_save_artifact_row(self):
        sb, chain = _mock_supabase()
        artifact = DocumentArtifact(title="BRD", type=DocType.BRD, content="# BRD")

        SupabaseArtifactStore(client=sb).save_artifact(OWNER, "p1", artifact)

        sb.table.assert_called_with(ARTIFACTS_TABLE)
        row = chain.upsert.call_args.args[0]
        assert row["project_id"] == "p1"
        assert row["owner_id"] == OWNER
        assert row["type"] == DocType.BRD.value

    def test_write_failure(self):
        sb, chain = _mock_supabase()
        chain.execute.side_effect = RuntimeError("permission denied")

        with pytest.raises(PersistenceError):
            SupabaseArtifactStore(client=sb).save_artifact(
                OWNER, "p1", DocumentArtifact(title="BRD", type=DocType.BRD)
            )


class TestDeleteProject:
    def test_artifacts_deleted_before_project(self):
        sb, chain = _mock_supabase(
            execute_results=[
                MagicMock(data=[{"id": "a1"}, {"id": "a2"}, {"id": "a3"}]),
                MagicMock(data=[]),
                MagicMock(data=[]),
                MagicMock(data=[]),
                MagicMock(data=[]),
            ]
        )

        SupabaseArtifactStore(client=sb).delete_project(OWNER, "p1")

        tables = [c.args[0] for c in sb.table.call_args_list]
        assert tables == [ARTIFACTS_TABLE] * 4 + [PROJECTS_TABLE]
        assert chain.delete.call_count == 4
        assert call("id", "a3") in chain.eq.call_args_list
        assert call("id", "a1") in chain.eq.call_args_list
        assert call("id", "p1") in chain.eq.call_args_list

    def test_partial_failure_surfaces(self):
        sb, _ = _mock_supabase(
            execute_results=[
                MagicMock(data=[{"id": "a1"}]),
                RuntimeError("network"),
            ]
        )

        with pytest.raises(PersistenceError):
            SupabaseArtifactStore(client=sb).delete_project(OWNER, "p1")


class TestSweep:
    def test_removes_orphans_only(self):
        sb, chain = _mock_supabase(
            execute_results=[
                MagicMock(data=[{"id": "p1"}]),
                MagicMock(
                    data=[
                        {"id": "a1", "project_id": "p1"},
                        {"id": "a2", "project_id": "gone"},
                    ]
                ),
                MagicMock(data=[]),
            ]
        )

        removed = SupabaseArtifactStore(client=sb).sweep_orphaned_artifacts(OWNER)

        assert removed == 1
        assert chain.delete.call_count == 1
        assert call("id", "a2") in chain.eq.call_args_list


class TestProfiles:
    def test_get_missing_profile(self):
        sb, _ = _mock_supabase()
        assert SupabaseArtifactStore(client=sb).get_profile("u1") is None

    def test_get_profile(self):
        sb, _ = _mock_supabase(
            execute_results=[MagicMock(data=[{"uid": "u1", "email": "a@example.com"}])]
        )
        profile = SupabaseArtifactStore(client=sb).get_profile("u1")
        assert profile == UserProfile(
            uid="u1", email="a@example.com", created_at=profile.created_at
        )
