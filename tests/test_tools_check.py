"""Tests for the check_repository and check_snapshot tools (tools/check.py)."""

from __future__ import annotations

import textwrap
from unittest.mock import AsyncMock, MagicMock, patch

from branchguard.clients.snapshot import RepoSnapshot
from branchguard.errors import RetrievalError
from branchguard.models import BranchProtectionRule, BranchRef
from branchguard.tools.check import check_repository, check_snapshot

STRICT_YAML = textwrap.dedent("""\
    default_branch: main
    branches:
      - name: main
        protected: true
        protection:
          allow_force_pushes: false
          allow_deletions: false
          enforce_admins: true
          required_approving_review_count: 2
          dismiss_stale_reviews: true
          required_status_contexts: [ci]
          require_up_to_date_before_merge: true
""")

# ─── Helpers ─────────────────────────────────────────────────


def _make_ctx(snapshots: AsyncMock | None = None) -> MagicMock:
    """Build a mock Context with AppContext injected into lifespan_context."""
    from branchguard.server import AppContext

    app = MagicMock(spec=AppContext)
    app.snapshots = snapshots or AsyncMock()

    ctx = MagicMock()
    ctx.request_context.lifespan_context = app
    ctx.info = AsyncMock()
    ctx.error = AsyncMock()
    return ctx


def _snapshots_returning(snapshot: RepoSnapshot) -> AsyncMock:
    snapshots = AsyncMock()
    snapshots.fetch_snapshot = AsyncMock(return_value=snapshot)
    return snapshots


# ─── check_repository ────────────────────────────────────────


class TestCheckRepository:
    async def test_scores_fetched_snapshot(self, strict_rule):
        snapshot = RepoSnapshot(
            branches=[BranchRef(name="main", protected=True, rule=strict_rule)],
            default_branch="main",
        )
        ctx = _make_ctx(_snapshots_returning(snapshot))

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result["success"] is True
        assert result["score"] == 10
        assert result["outcome"] == "max_score"
        assert result["repository_url"] == "https://github.com/owner/repo"
        assert result["name"] == "Branch-Protection"

    async def test_partial_score(self):
        rule = BranchProtectionRule(allow_force_pushes=True, allow_deletions=False)
        snapshot = RepoSnapshot(
            branches=[BranchRef(name="main", protected=True, rule=rule)],
            default_branch="main",
        )
        ctx = _make_ctx(_snapshots_returning(snapshot))

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result["success"] is True
        assert result["outcome"] == "partial"
        assert 0 < result["score"] < 10

    async def test_inconclusive_is_not_zero(self):
        ctx = _make_ctx(_snapshots_returning(RepoSnapshot()))

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result["success"] is True
        assert result["outcome"] == "inconclusive"
        assert result["score"] == -1

    async def test_retrieval_error_becomes_runtime_error(self):
        snapshots = AsyncMock()
        snapshots.fetch_snapshot = AsyncMock(side_effect=RetrievalError("HTTP 502"))
        ctx = _make_ctx(snapshots)

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result["success"] is False
        assert result["outcome"] == "runtime_error"
        assert result["error"] == "RetrievalError: HTTP 502"

    async def test_unexpected_error_reported(self):
        snapshots = AsyncMock()
        snapshots.fetch_snapshot = AsyncMock(side_effect=ValueError("boom"))
        ctx = _make_ctx(snapshots)

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result == {"success": False, "error": "Internal error: ValueError"}
        ctx.error.assert_awaited_once()

    async def test_missing_app_context(self):
        ctx = MagicMock()
        ctx.request_context.lifespan_context = object()
        ctx.error = AsyncMock()

        result = await check_repository("https://github.com/owner/repo", ctx)

        assert result == {"success": False, "error": "Internal error: TypeError"}


# ─── check_snapshot ──────────────────────────────────────────


class TestCheckSnapshot:
    async def test_scores_snapshot_file(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STRICT_YAML, encoding="utf-8")

        result = await check_snapshot(str(path), _make_ctx())

        assert result["success"] is True
        assert result["score"] == 10
        assert result["snapshot_path"] == str(path)
        assert any(d["type"] == "info" for d in result["details"])

    async def test_missing_file(self, tmp_path):
        result = await check_snapshot(str(tmp_path / "missing.yaml"), _make_ctx())

        assert result["success"] is False
        assert "not found" in result["error"]

    async def test_unknown_release_branch(self, tmp_path):
        path = tmp_path / "snapshot.yaml"
        path.write_text(STRICT_YAML + "releases: [release/2.x]\n", encoding="utf-8")

        result = await check_snapshot(str(path), _make_ctx())

        assert result["success"] is False
        assert result["outcome"] == "runtime_error"
        assert "release/2.x" in result["error"]

    async def test_unexpected_error_reported(self, tmp_path):
        ctx = _make_ctx()
        with patch("branchguard.tools.check.load_snapshot", side_effect=RuntimeError("x")):
            result = await check_snapshot(str(tmp_path / "s.yaml"), ctx)

        assert result == {"success": False, "error": "Internal error: RuntimeError"}
        ctx.error.assert_awaited_once()
