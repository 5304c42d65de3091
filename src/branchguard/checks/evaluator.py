"""Evaluate one branch's protection rule against the five rubric levels.

Each level returns a ``(score, max)`` pair. Settings that could not be
retrieved (``None``) are left out of admin-track levels entirely, so callers
without admin access are not penalized for what they cannot see.
"""

from __future__ import annotations

from branchguard.checks.base import DetailLogger
from branchguard.checks.details import debug, info, warn
from branchguard.models import BranchProtectionRule, LevelScore, ScoresInfo

MIN_REVIEWS = 2


def evaluate_branch(
    rule: BranchProtectionRule,
    branch: str,
    dl: DetailLogger,
    protected: bool = True,
) -> LevelScore:
    """Compute all seven (score, max) pairs for a branch.

    Rationale is only emitted for protected branches; unprotected branches
    get a single warning and are scored silently.
    """
    if not protected:
        dl.warn("branch protection not enabled for branch '%s'", branch)

    basic, max_basic = basic_non_admin_protection(rule, branch, dl, protected)
    admin_basic, max_admin_basic = basic_admin_protection(rule, branch, dl, protected)
    review, max_review = non_admin_review_protection(rule)
    admin_review, max_admin_review = admin_review_protection(rule, branch, dl, protected)
    context, max_context = non_admin_context_protection(rule, branch, dl, protected)
    thorough, max_thorough = non_admin_thorough_review_protection(rule, branch, dl, protected)
    admin_thorough, max_admin_thorough = admin_thorough_review_protection(
        rule, branch, dl, protected
    )

    return LevelScore(
        scores=ScoresInfo(
            basic=basic,
            admin_basic=admin_basic,
            review=review,
            admin_review=admin_review,
            context=context,
            thorough_review=thorough,
            admin_thorough_review=admin_thorough,
        ),
        maxes=ScoresInfo(
            basic=max_basic,
            admin_basic=max_admin_basic,
            review=max_review,
            admin_review=max_admin_review,
            context=max_context,
            thorough_review=max_thorough,
            admin_thorough_review=max_admin_thorough,
        ),
    )


# ─── Level 1: basic ────────────────────────────────────────


def basic_non_admin_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    score = 0
    max_score = 0

    if rule.allow_force_pushes is not None:
        max_score += 1
        if rule.allow_force_pushes:
            warn(dl, do_logging, "'force pushes' enabled on branch '%s'", branch)
        else:
            info(dl, do_logging, "'force pushes' disabled on branch '%s'", branch)
            score += 1
    else:
        debug(dl, do_logging, "unable to retrieve 'force pushes' setting on branch '%s'", branch)

    if rule.allow_deletions is not None:
        max_score += 1
        if rule.allow_deletions:
            warn(dl, do_logging, "'allow deletion' enabled on branch '%s'", branch)
        else:
            info(dl, do_logging, "'allow deletion' disabled on branch '%s'", branch)
            score += 1
    else:
        debug(dl, do_logging, "unable to retrieve 'allow deletion' setting on branch '%s'", branch)

    return score, max_score


def basic_admin_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    if rule.enforce_admins is None:
        debug(
            dl,
            do_logging,
            "unable to retrieve whether or not settings apply to administrators on branch '%s'",
            branch,
        )
        return 0, 0

    if rule.enforce_admins:
        info(dl, do_logging, "settings apply to administrators on branch '%s'", branch)
        return 1, 1
    warn(dl, do_logging, "settings do not apply to administrators on branch '%s'", branch)
    return 0, 1


# ─── Level 2: reviews ──────────────────────────────────────


def non_admin_review_protection(rule: BranchProtectionRule) -> tuple[int, int]:
    # Reviewer counts are reported by non_admin_thorough_review_protection.
    count = rule.required_approving_review_count
    if count is not None and count > 0:
        return 1, 1
    return 0, 1


def admin_review_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    # Only effective when at least one status check is required.
    if rule.require_up_to_date_before_merge is None:
        debug(
            dl,
            do_logging,
            "unable to retrieve whether up-to-date branches are needed to merge on branch '%s'",
            branch,
        )
        return 0, 0

    if rule.require_up_to_date_before_merge:
        info(dl, do_logging, "status checks require up-to-date branches for '%s'", branch)
        return 1, 1
    warn(dl, do_logging, "status checks do not require up-to-date branches for '%s'", branch)
    return 0, 1


# ─── Level 3: status checks ────────────────────────────────


def non_admin_context_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    # Requiring status checks without naming any is the same as requiring none.
    if rule.required_status_contexts:
        info(dl, do_logging, "status check found to merge onto on branch '%s'", branch)
        return 1, 1
    warn(dl, do_logging, "no status checks found to merge onto branch '%s'", branch)
    return 0, 1


# ─── Levels 4 and 5: thorough reviews ──────────────────────


def non_admin_thorough_review_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    count = rule.required_approving_review_count
    if count is None:
        warn(dl, do_logging, "number of required reviewers is 0 on branch '%s'", branch)
        return 0, 1

    if count >= MIN_REVIEWS:
        info(dl, do_logging, "number of required reviewers is %d on branch '%s'", count, branch)
        return 1, 1
    warn(dl, do_logging, "number of required reviewers is only %d on branch '%s'", count, branch)
    return 0, 1


def admin_thorough_review_protection(
    rule: BranchProtectionRule, branch: str, dl: DetailLogger, do_logging: bool
) -> tuple[int, int]:
    if rule.dismiss_stale_reviews is None:
        debug(dl, do_logging, "unable to retrieve review dismissal on branch '%s'", branch)
        return 0, 0

    if rule.dismiss_stale_reviews:
        info(dl, do_logging, "stale review dismissal enabled on branch '%s'", branch)
        return 1, 1
    warn(dl, do_logging, "stale review dismissal disabled on branch '%s'", branch)
    return 0, 1
