"""Select the branches that must be protected: default branch plus release branches."""

from __future__ import annotations

import re
from collections.abc import Iterable

from branchguard.checks.base import DetailLogger
from branchguard.errors import BranchNotFoundError, InternalError
from branchguard.models import BranchRef, Release

# A release pointing at a raw commit cannot be traced back to its branch.
_COMMIT_SHA = re.compile(r"[a-f0-9]{40}")


class BranchMap:
    """Branches indexed by name. The last branch listed under a name wins."""

    def __init__(self, branches: dict[str, BranchRef] | None = None) -> None:
        self._branches: dict[str, BranchRef] = dict(branches or {})

    @classmethod
    def from_branches(cls, branches: Iterable[BranchRef]) -> BranchMap:
        mapping: dict[str, BranchRef] = {}
        for branch in branches:
            if branch.name:
                mapping[branch.name] = branch
        return cls(mapping)

    def __contains__(self, name: object) -> bool:
        return name in self._branches

    def __len__(self) -> int:
        return len(self._branches)

    def get(self, name: str) -> BranchRef:
        """Resolve a branch by name.

        Only the common ``master`` -> ``main`` rename is followed; other
        branch redirects are not resolved.

        Raises:
            BranchNotFoundError: If neither the name nor its fallback exists.
        """
        branch = self._branches.get(name)
        if branch is not None:
            return branch
        if name == "master":
            branch = self._branches.get("main")
            if branch is not None:
                return branch
        raise BranchNotFoundError(f"could not find branch name {name}: branch not found")


def is_commit_sha(commitish: str) -> bool:
    return _COMMIT_SHA.fullmatch(commitish) is not None


def select_branches(
    branches: BranchMap,
    releases: Iterable[Release],
    default_branch: str | None,
    dl: DetailLogger,
) -> set[str]:
    """Return the names of all branches whose protection must be evaluated.

    Raises:
        InternalError: If a release has an empty target.
        BranchNotFoundError: If a release targets a branch that does not exist.
    """
    selected: set[str] = set()

    for release in releases:
        commitish = release.target_commitish
        if not commitish:
            raise InternalError("release target commitish is empty")
        # TODO: resolve the branch containing a release commit SHA instead of skipping it.
        if is_commit_sha(commitish):
            continue
        branch = branches.get(commitish)
        selected.add(branch.name or commitish)

    if default_branch:
        try:
            selected.add(branches.get(default_branch).name or default_branch)
        except BranchNotFoundError:
            dl.debug("default branch '%s' not found in branch list", default_branch)
            selected.add(default_branch)

    return selected
