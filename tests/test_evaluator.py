"""Tests for per-branch protection evaluation (checks/evaluator.py)."""

from __future__ import annotations

from dataclasses import fields, replace

from branchguard.checks.details import DetailCollector
from branchguard.checks.evaluator import (
    admin_review_protection,
    admin_thorough_review_protection,
    basic_admin_protection,
    basic_non_admin_protection,
    evaluate_branch,
    non_admin_context_protection,
    non_admin_review_protection,
    non_admin_thorough_review_protection,
)
from branchguard.models import BranchProtectionRule, DetailType, ScoresInfo

_UNKNOWN = BranchProtectionRule()


def _messages(dl: DetailCollector, detail_type: DetailType) -> list[str]:
    return [d.message for d in dl.details if d.type == detail_type]


# ─── Level 1: basic ──────────────────────────────────────────


class TestBasicNonAdmin:
    def test_both_disabled(self, strict_rule):
        dl = DetailCollector()
        assert basic_non_admin_protection(strict_rule, "main", dl, True) == (2, 2)
        assert "'force pushes' disabled on branch 'main'" in _messages(dl, DetailType.INFO)
        assert "'allow deletion' disabled on branch 'main'" in _messages(dl, DetailType.INFO)

    def test_force_pushes_enabled(self, strict_rule):
        dl = DetailCollector()
        rule = replace(strict_rule, allow_force_pushes=True)
        assert basic_non_admin_protection(rule, "main", dl, True) == (1, 2)
        assert _messages(dl, DetailType.WARN) == ["'force pushes' enabled on branch 'main'"]

    def test_both_enabled(self, lax_rule):
        assert basic_non_admin_protection(lax_rule, "main", DetailCollector(), True) == (0, 2)

    def test_unknown_excluded_from_max(self):
        dl = DetailCollector()
        assert basic_non_admin_protection(_UNKNOWN, "main", dl, True) == (0, 0)
        assert len(_messages(dl, DetailType.DEBUG)) == 2

    def test_one_unknown(self):
        rule = BranchProtectionRule(allow_force_pushes=False)
        assert basic_non_admin_protection(rule, "main", DetailCollector(), True) == (1, 1)


class TestBasicAdmin:
    def test_enforced(self):
        rule = BranchProtectionRule(enforce_admins=True)
        assert basic_admin_protection(rule, "main", DetailCollector(), True) == (1, 1)

    def test_not_enforced(self):
        dl = DetailCollector()
        rule = BranchProtectionRule(enforce_admins=False)
        assert basic_admin_protection(rule, "main", dl, True) == (0, 1)
        assert _messages(dl, DetailType.WARN) == [
            "settings do not apply to administrators on branch 'main'"
        ]

    def test_unknown(self):
        dl = DetailCollector()
        assert basic_admin_protection(_UNKNOWN, "main", dl, True) == (0, 0)
        assert dl.details[0].type == DetailType.DEBUG


# ─── Level 2: reviews ────────────────────────────────────────


class TestNonAdminReview:
    def test_one_reviewer_is_enough(self):
        rule = BranchProtectionRule(required_approving_review_count=1)
        assert non_admin_review_protection(rule) == (1, 1)

    def test_zero_reviewers(self):
        rule = BranchProtectionRule(required_approving_review_count=0)
        assert non_admin_review_protection(rule) == (0, 1)

    def test_unknown_count_still_counts_toward_max(self):
        assert non_admin_review_protection(_UNKNOWN) == (0, 1)


class TestAdminReview:
    def test_up_to_date_required(self):
        rule = BranchProtectionRule(require_up_to_date_before_merge=True)
        assert admin_review_protection(rule, "main", DetailCollector(), True) == (1, 1)

    def test_up_to_date_not_required(self):
        rule = BranchProtectionRule(require_up_to_date_before_merge=False)
        assert admin_review_protection(rule, "main", DetailCollector(), True) == (0, 1)

    def test_unknown(self):
        assert admin_review_protection(_UNKNOWN, "main", DetailCollector(), True) == (0, 0)


# ─── Level 3: status checks ──────────────────────────────────


class TestContext:
    def test_contexts_present(self, strict_rule):
        dl = DetailCollector()
        assert non_admin_context_protection(strict_rule, "main", dl, True) == (1, 1)
        assert _messages(dl, DetailType.INFO) == [
            "status check found to merge onto on branch 'main'"
        ]

    def test_no_contexts(self):
        dl = DetailCollector()
        assert non_admin_context_protection(_UNKNOWN, "main", dl, True) == (0, 1)
        assert _messages(dl, DetailType.WARN) == [
            "no status checks found to merge onto branch 'main'"
        ]


# ─── Levels 4 and 5: thorough reviews ────────────────────────


class TestThoroughReview:
    def test_two_reviewers(self):
        dl = DetailCollector()
        rule = BranchProtectionRule(required_approving_review_count=2)
        assert non_admin_thorough_review_protection(rule, "main", dl, True) == (1, 1)
        assert _messages(dl, DetailType.INFO) == [
            "number of required reviewers is 2 on branch 'main'"
        ]

    def test_one_reviewer_is_not_enough(self):
        dl = DetailCollector()
        rule = BranchProtectionRule(required_approving_review_count=1)
        assert non_admin_thorough_review_protection(rule, "main", dl, True) == (0, 1)
        assert _messages(dl, DetailType.WARN) == [
            "number of required reviewers is only 1 on branch 'main'"
        ]

    def test_unknown_count_counts_toward_max(self):
        dl = DetailCollector()
        assert non_admin_thorough_review_protection(_UNKNOWN, "main", dl, True) == (0, 1)
        assert _messages(dl, DetailType.WARN) == [
            "number of required reviewers is 0 on branch 'main'"
        ]


class TestAdminThoroughReview:
    def test_dismiss_stale(self):
        rule = BranchProtectionRule(dismiss_stale_reviews=True)
        assert admin_thorough_review_protection(rule, "main", DetailCollector(), True) == (1, 1)

    def test_keep_stale(self):
        rule = BranchProtectionRule(dismiss_stale_reviews=False)
        assert admin_thorough_review_protection(rule, "main", DetailCollector(), True) == (0, 1)

    def test_unknown(self):
        assert admin_thorough_review_protection(_UNKNOWN, "main", DetailCollector(), True) == (
            0,
            0,
        )


# ─── evaluate_branch ─────────────────────────────────────────


class TestEvaluateBranch:
    def test_strict_rule_maxes_every_level(self, strict_rule):
        level = evaluate_branch(strict_rule, "main", DetailCollector())
        expected = ScoresInfo(
            basic=2,
            admin_basic=1,
            review=1,
            admin_review=1,
            context=1,
            thorough_review=1,
            admin_thorough_review=1,
        )
        assert level.scores == expected
        assert level.maxes == expected

    def test_unknown_rule(self):
        level = evaluate_branch(_UNKNOWN, "main", DetailCollector())
        assert level.scores == ScoresInfo()
        assert level.maxes == ScoresInfo(review=1, context=1, thorough_review=1)

    def test_scores_never_exceed_maxes(self, strict_rule, lax_rule):
        for rule in (strict_rule, lax_rule, _UNKNOWN):
            level = evaluate_branch(rule, "main", DetailCollector())
            for f in fields(ScoresInfo):
                assert 0 <= getattr(level.scores, f.name) <= getattr(level.maxes, f.name)

    def test_unprotected_branch_logs_single_warning(self, lax_rule):
        dl = DetailCollector()
        level = evaluate_branch(lax_rule, "dev", dl, protected=False)
        assert [(d.type, d.message) for d in dl.details] == [
            (DetailType.WARN, "branch protection not enabled for branch 'dev'")
        ]
        assert level.maxes.basic == 2

    def test_logging_does_not_change_points(self, strict_rule):
        rule = replace(strict_rule, allow_deletions=True)
        quiet = evaluate_branch(rule, "main", DetailCollector(), protected=False)
        loud = evaluate_branch(rule, "main", DetailCollector(), protected=True)
        assert quiet == loud
