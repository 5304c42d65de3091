"""Ports: Repository data access for branch-protection checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from branchguard.models import BranchRef, Release

if TYPE_CHECKING:
    from branchguard.clients.snapshot import RepoSnapshot


class RepoClientPort(Protocol):
    """Port for reading a repository's branches, releases and default branch.

    Implementations raise RetrievalError when the data cannot be fetched.
    """

    def list_branches(self) -> list[BranchRef]:
        """Return all branches, including their protection rules."""
        ...

    def list_releases(self) -> list[Release]:
        """Return all releases."""
        ...

    def get_default_branch(self) -> BranchRef | None:
        """Return the default branch, or None if the repository has none."""
        ...


class SnapshotFetcherPort(Protocol):
    """Port for fetching a read-only repository snapshot from a hosting platform."""

    async def fetch_snapshot(self, repository_url: str) -> RepoSnapshot:
        """Fetch branches, releases and default branch for a repository URL."""
        ...
