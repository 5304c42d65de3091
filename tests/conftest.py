"""Shared test fixtures."""

from __future__ import annotations

import pytest

from branchguard.clients.github import clear_cache
from branchguard.models import BranchProtectionRule


@pytest.fixture(autouse=True)
def _clear_github_cache() -> None:
    """Clear the GitHub API cache before each test to prevent cross-test pollution."""
    clear_cache()


@pytest.fixture
def strict_rule() -> BranchProtectionRule:
    """A rule with every setting present and at its strictest value."""
    return BranchProtectionRule(
        allow_force_pushes=False,
        allow_deletions=False,
        enforce_admins=True,
        required_approving_review_count=2,
        dismiss_stale_reviews=True,
        required_status_contexts=("ci",),
        require_up_to_date_before_merge=True,
    )


@pytest.fixture
def lax_rule() -> BranchProtectionRule:
    """A rule with every setting present and at its least strict value."""
    return BranchProtectionRule(
        allow_force_pushes=True,
        allow_deletions=True,
        enforce_admins=False,
        required_approving_review_count=0,
        dismiss_stale_reviews=False,
        required_status_contexts=(),
        require_up_to_date_before_merge=False,
    )
