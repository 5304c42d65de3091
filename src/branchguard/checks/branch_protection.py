"""Branch-Protection check: score protection on the development and release branches."""

from __future__ import annotations

import logging

from branchguard.checks.aggregator import MAX_RESULT_SCORE, MIN_RESULT_SCORE, compute_score
from branchguard.checks.base import DetailLogger
from branchguard.checks.details import DetailCollector
from branchguard.checks.evaluator import evaluate_branch
from branchguard.checks.selector import BranchMap, select_branches
from branchguard.clients.base import RepoClientPort
from branchguard.errors import BranchGuardError, BranchNotFoundError
from branchguard.models import CheckDetail, CheckOutcome, CheckResult, LevelScore

logger = logging.getLogger(__name__)

CHECK_NAME = "Branch-Protection"
INCONCLUSIVE_RESULT_SCORE = -1

_REASON_MIN = "branch protection not enabled on development/release branches"
_REASON_MAX = "branch protection is fully enabled on development and all release branches"
_REASON_PARTIAL = "branch protection is not maximal on development and all release branches"
_REASON_INCONCLUSIVE = "unable to detect any development/release branches"


def check_branch_protection(repo_client: RepoClientPort, dl: DetailLogger) -> CheckResult:
    """Run the Branch-Protection check against one repository snapshot.

    Never raises for expected failures: retrieval problems, unresolvable
    release branches and internal errors become a runtime-error result, and
    an empty branch set becomes an inconclusive result.
    """
    try:
        branches = BranchMap.from_branches(repo_client.list_branches())
        releases = repo_client.list_releases()
        default_branch = repo_client.get_default_branch()

        default_name = default_branch.name if default_branch is not None else None
        selected = select_branches(branches, releases, default_name, dl)

        scores: list[LevelScore] = []
        for name in sorted(selected):
            try:
                branch = branches.get(name)
            except BranchNotFoundError:
                # Branch disappeared since it was listed.
                continue
            # The flag only says a protection rule matches the branch; all of
            # its settings may still be disabled.
            protected = branch.protected is not False
            scores.append(evaluate_branch(branch.rule, name, dl, protected))

        if not scores:
            return inconclusive_result(_REASON_INCONCLUSIVE, _details_of(dl))

        score = compute_score(scores)
    except BranchGuardError as exc:
        logger.debug("Branch-Protection check failed", exc_info=True)
        return runtime_error_result(exc, _details_of(dl))

    return score_result(score, _details_of(dl))


def score_result(score: int, details: list[CheckDetail] | None = None) -> CheckResult:
    """Classify a final score into min / max / partial outcomes."""
    if score == MIN_RESULT_SCORE:
        outcome, reason = CheckOutcome.MIN_SCORE, _REASON_MIN
    elif score == MAX_RESULT_SCORE:
        outcome, reason = CheckOutcome.MAX_SCORE, _REASON_MAX
    else:
        outcome, reason = CheckOutcome.PARTIAL, _REASON_PARTIAL
    return CheckResult(
        name=CHECK_NAME,
        score=score,
        outcome=outcome,
        reason=reason,
        details=details or [],
    )


def inconclusive_result(reason: str, details: list[CheckDetail] | None = None) -> CheckResult:
    return CheckResult(
        name=CHECK_NAME,
        score=INCONCLUSIVE_RESULT_SCORE,
        outcome=CheckOutcome.INCONCLUSIVE,
        reason=reason,
        details=details or [],
    )


def runtime_error_result(
    error: Exception, details: list[CheckDetail] | None = None
) -> CheckResult:
    return CheckResult(
        name=CHECK_NAME,
        score=INCONCLUSIVE_RESULT_SCORE,
        outcome=CheckOutcome.RUNTIME_ERROR,
        reason=f"internal error: {error}",
        details=details or [],
        error=f"{type(error).__name__}: {error}",
    )


def _details_of(dl: DetailLogger) -> list[CheckDetail]:
    if isinstance(dl, DetailCollector):
        return dl.details
    return []
