"""In-memory repository snapshots and their YAML/JSON file loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from branchguard.errors import SnapshotError
from branchguard.models import UNPROTECTED_RULE, BranchProtectionRule, BranchRef, Release

logger = logging.getLogger(__name__)

_BOOL_SETTINGS = (
    "allow_force_pushes",
    "allow_deletions",
    "enforce_admins",
    "dismiss_stale_reviews",
    "require_up_to_date_before_merge",
)


@dataclass(frozen=True, slots=True)
class RepoSnapshot:
    """Read-only repository data, fetched or loaded before a check runs.

    Implements RepoClientPort without any I/O.
    """

    branches: list[BranchRef] = field(default_factory=list)
    releases: list[Release] = field(default_factory=list)
    default_branch: str | None = None

    def list_branches(self) -> list[BranchRef]:
        return list(self.branches)

    def list_releases(self) -> list[Release]:
        return list(self.releases)

    def get_default_branch(self) -> BranchRef | None:
        if not self.default_branch:
            return None
        for branch in self.branches:
            if branch.name == self.default_branch:
                return branch
        return BranchRef(name=self.default_branch)


def load_snapshot(path: str | Path) -> RepoSnapshot:
    """Load a snapshot from a .yaml/.yml/.json file.

    Raises:
        SnapshotError: If the file is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotError(f"Snapshot file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        return parse_snapshot(yaml.safe_load(text), source=str(path))
    except SnapshotError:
        raise
    except Exception as exc:
        raise SnapshotError(f"Failed to parse snapshot file '{path}': {exc}") from exc


def parse_snapshot(data: object, source: str = "") -> RepoSnapshot:
    """Build a RepoSnapshot from decoded YAML/JSON data."""
    if not isinstance(data, dict):
        raise SnapshotError(f"Invalid snapshot format in {source}: expected a mapping.")

    branches_data = data.get("branches") or []
    releases_data = data.get("releases") or []
    if not isinstance(branches_data, list):
        raise SnapshotError(f"Invalid snapshot format in {source}: 'branches' must be a list.")
    if not isinstance(releases_data, list):
        raise SnapshotError(f"Invalid snapshot format in {source}: 'releases' must be a list.")

    branches: list[BranchRef] = []
    for entry in branches_data:
        if not isinstance(entry, dict):
            logger.debug("Skipping non-mapping branch entry in %s: %r", source, entry)
            continue
        protected = _optional_bool(entry.get("protected"), "protected", source)
        protection = entry.get("protection")
        # A branch reported unprotected enforces nothing.
        if protected is False and protection is None:
            rule = UNPROTECTED_RULE
        else:
            rule = parse_rule(protection or {}, source=source)
        branches.append(
            BranchRef(name=_optional_str(entry.get("name")), protected=protected, rule=rule)
        )

    releases: list[Release] = []
    for entry in releases_data:
        if isinstance(entry, str):
            releases.append(Release(target_commitish=entry))
        elif isinstance(entry, dict):
            releases.append(Release(target_commitish=str(entry.get("target_commitish") or "")))
        else:
            raise SnapshotError(f"Invalid release entry in {source}: {entry!r}")

    return RepoSnapshot(
        branches=branches,
        releases=releases,
        default_branch=_optional_str(data.get("default_branch")),
    )


def parse_rule(data: object, source: str = "") -> BranchProtectionRule:
    """Build a BranchProtectionRule; omitted keys stay unknown (None)."""
    if not isinstance(data, dict):
        raise SnapshotError(f"Invalid protection rule in {source}: expected a mapping.")

    settings: dict[str, object] = {
        key: _optional_bool(data.get(key), key, source) for key in _BOOL_SETTINGS
    }

    count = data.get("required_approving_review_count")
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise SnapshotError(
            f"Invalid 'required_approving_review_count' in {source}: expected an integer."
        )

    contexts = data.get("required_status_contexts") or []
    if not isinstance(contexts, list):
        raise SnapshotError(
            f"Invalid 'required_status_contexts' in {source}: expected a list of strings."
        )

    return BranchProtectionRule(
        required_approving_review_count=count,
        required_status_contexts=tuple(str(c) for c in contexts),
        **settings,  # type: ignore[arg-type]
    )


def _optional_bool(value: object, key: str, source: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise SnapshotError(f"Invalid '{key}' in {source}: expected true, false or null.")


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
