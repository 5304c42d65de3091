"""Branch-protection tools -- score a GitHub repository or a saved snapshot."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import Context

from branchguard.checks.branch_protection import check_branch_protection, runtime_error_result
from branchguard.checks.details import DetailCollector
from branchguard.clients.snapshot import load_snapshot
from branchguard.errors import BranchGuardError, RetrievalError
from branchguard.models import CheckOutcome
from branchguard.tools._helpers import get_context

logger = logging.getLogger(__name__)


async def check_repository(
    repository_url: str,
    ctx: Context,
) -> dict[str, object]:
    """Score the branch protection of a GitHub repository from 0 to 10.

    Evaluates the default branch and every branch targeted by a release.
    Admin-only settings are reported as unknown unless the configured token
    has admin access to the repository.

    Args:
        repository_url: GitHub repository URL, e.g. "https://github.com/owner/repo".

    Returns:
        Check result with: name, score (-1 when inconclusive or failed),
        outcome, reason, details and, on failure, error.
    """
    try:
        app = get_context(ctx)
        try:
            snapshot = await app.snapshots.fetch_snapshot(repository_url)
        except RetrievalError as exc:
            result = runtime_error_result(exc)
        else:
            result = check_branch_protection(snapshot, DetailCollector())

        return {
            "success": result.outcome != CheckOutcome.RUNTIME_ERROR,
            "repository_url": repository_url,
            **result.to_dict(),
        }

    except BranchGuardError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in check_repository: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}


async def check_snapshot(
    snapshot_path: str,
    ctx: Context,
) -> dict[str, object]:
    """Score branch protection from a saved repository snapshot file.

    The snapshot is a YAML or JSON file with ``default_branch``, ``branches``
    (name, protected, protection settings) and ``releases``
    (target_commitish). Omitted protection settings are treated as unknown.

    Args:
        snapshot_path: Path to a .yaml/.yml/.json snapshot file.

    Returns:
        Check result with: name, score, outcome, reason, details.
    """
    try:
        snapshot = load_snapshot(snapshot_path)
        result = check_branch_protection(snapshot, DetailCollector())
        logger.debug("Snapshot %s scored %d", snapshot_path, result.score)
        return {
            "success": result.outcome != CheckOutcome.RUNTIME_ERROR,
            "snapshot_path": snapshot_path,
            **result.to_dict(),
        }

    except BranchGuardError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in check_snapshot: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}
