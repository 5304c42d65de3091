"""Exception hierarchy for branchguard.

All exceptions inherit from BranchGuardError (single catch point).
Messages are written to be surfaced verbatim in check results.
"""

from __future__ import annotations


class BranchGuardError(Exception):
    """Base exception for all branchguard errors."""


class RetrievalError(BranchGuardError):
    """Error fetching branches, releases or the default branch from the platform."""


class BranchNotFoundError(BranchGuardError):
    """A branch name could not be resolved, even after the master -> main fallback."""


class InternalError(BranchGuardError):
    """An internal invariant was violated (e.g. scoring an empty branch set)."""


class SnapshotError(BranchGuardError):
    """Error reading or parsing a repository snapshot file."""
