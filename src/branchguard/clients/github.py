"""Fetch repository snapshots (branches, protection rules, releases) from the GitHub API."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import subprocess
import time
from urllib.parse import quote

import httpx

from branchguard.clients.snapshot import RepoSnapshot
from branchguard.errors import RetrievalError
from branchguard.models import UNPROTECTED_RULE, BranchProtectionRule, BranchRef, Release

logger = logging.getLogger(__name__)

_API_ROOT = "https://api.github.com"
_PER_PAGE = 100

# ─── In-memory cache with TTL ──────────────────────────────

_cache: dict[str, tuple[float, RepoSnapshot]] = {}
_CACHE_TTL = 900  # 15 minutes

# ─── Runtime state ─────────────────────────────────────────

_rate_limit_reset: float = 0.0
_token_resolved: bool = False
_resolved_token: str | None = None
_resolved_token_source: str = "none"  # env | gh_cli | none

_logged_no_token_hint: bool = False
_logged_gh_cli_auth_hint: bool = False
_logged_rate_limit_hint: bool = False


def _cache_get(key: str) -> RepoSnapshot | None:
    if key in _cache:
        ts, snapshot = _cache[key]
        if time.monotonic() - ts < _CACHE_TTL:
            return snapshot
        del _cache[key]
    return None


def _cache_set(key: str, snapshot: RepoSnapshot) -> None:
    _cache[key] = (time.monotonic(), snapshot)


def clear_cache() -> None:
    """Clear in-memory cache plus auth/rate-limit runtime state (primarily for tests)."""
    global _logged_gh_cli_auth_hint
    global _logged_no_token_hint
    global _logged_rate_limit_hint
    global _rate_limit_reset
    global _resolved_token
    global _resolved_token_source
    global _token_resolved

    _cache.clear()
    _rate_limit_reset = 0.0
    _token_resolved = False
    _resolved_token = None
    _resolved_token_source = "none"
    _logged_no_token_hint = False
    _logged_gh_cli_auth_hint = False
    _logged_rate_limit_hint = False


# ─── Rate limit detection ──────────────────────────────────


def _is_rate_limited() -> bool:
    return time.monotonic() < _rate_limit_reset


def _check_rate_limit(resp: httpx.Response) -> None:
    """Update local rate-limit gate and emit a single clear warning message."""
    global _logged_rate_limit_hint
    global _rate_limit_reset

    remaining = resp.headers.get("X-RateLimit-Remaining")
    if remaining is None:
        return
    try:
        remaining_value = int(remaining)
    except ValueError:
        return
    if remaining_value != 0:
        return

    try:
        reset_epoch = int(resp.headers.get("X-RateLimit-Reset", "0"))
    except ValueError:
        # Unknown reset time: warn, but do not gate further requests.
        reset_epoch = 0
    _rate_limit_reset = time.monotonic() + max(0, reset_epoch - time.time())

    if _logged_rate_limit_hint:
        return
    _, source = _resolve_github_token()
    if source == "none":
        logger.warning(
            "GitHub API rate limit reached. Set GITHUB_TOKEN or run `gh auth login` "
            "to raise the limit."
        )
    else:
        logger.warning("GitHub API rate limit reached for the configured token.")
    _logged_rate_limit_hint = True


# ─── Auth ──────────────────────────────────────────────────


def _github_headers() -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    token, _ = _resolve_github_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _resolve_github_token() -> tuple[str | None, str]:
    """Resolve auth token: env first, then `gh auth token` fallback."""
    global _logged_gh_cli_auth_hint
    global _logged_no_token_hint
    global _resolved_token
    global _resolved_token_source
    global _token_resolved

    env_token = os.environ.get("GITHUB_TOKEN", "").strip()
    if env_token:
        _token_resolved = True
        _resolved_token = env_token
        _resolved_token_source = "env"
        return env_token, "env"

    if _token_resolved:
        return _resolved_token, _resolved_token_source

    _token_resolved = True
    gh_token = _resolve_gh_cli_token()
    if gh_token:
        _resolved_token = gh_token
        _resolved_token_source = "gh_cli"
        if not _logged_gh_cli_auth_hint:
            logger.info("Using GitHub token from `gh auth token` fallback.")
            _logged_gh_cli_auth_hint = True
        return gh_token, "gh_cli"

    _resolved_token = None
    _resolved_token_source = "none"
    if not _logged_no_token_hint:
        logger.info(
            "No GitHub auth token found (checked GITHUB_TOKEN and `gh auth token`). "
            "Admin-only protection settings will be reported as unknown."
        )
        _logged_no_token_hint = True
    return None, "none"


def _resolve_gh_cli_token() -> str | None:
    """Try to read a token from local GitHub CLI auth context."""
    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None

    if completed.returncode != 0:
        return None
    token = completed.stdout.strip()
    return token or None


# ─── Concurrency control ──────────────────────────────────

_github_semaphore = asyncio.Semaphore(5)


# ─── URL parsing ───────────────────────────────────────────


def _parse_github_url(repository_url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub URL.

    Returns None if the URL is not a GitHub repo.
    """
    m = re.match(r"https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/.*)?$", repository_url)
    if m:
        return m.group(1), m.group(2)
    return None


# ─── Response parsing ─────────────────────────────────────


def _enabled(section: object) -> bool | None:
    """Read an ``{"enabled": bool}`` protection section."""
    if isinstance(section, dict) and isinstance(section.get("enabled"), bool):
        return section["enabled"]
    return None


def _status_contexts(checks: object) -> tuple[str, ...]:
    """Read required status check names, preferring ``contexts`` over ``checks``."""
    if not isinstance(checks, dict):
        return ()
    contexts = checks.get("contexts") or []
    if not contexts:
        contexts = [c.get("context", "") for c in checks.get("checks") or [] if isinstance(c, dict)]
    return tuple(str(c) for c in contexts if c)


def _parse_protection(data: dict) -> BranchProtectionRule:
    """Parse the admin-only ``/branches/{branch}/protection`` payload.

    Sections missing from this payload are disabled, not unknown.
    """
    reviews = data.get("required_pull_request_reviews")
    if isinstance(reviews, dict):
        review_count = reviews.get("required_approving_review_count", 0)
        dismiss_stale = bool(reviews.get("dismiss_stale_reviews", False))
    else:
        review_count = 0
        dismiss_stale = False

    checks = data.get("required_status_checks")
    strict = bool(checks.get("strict", False)) if isinstance(checks, dict) else False

    return BranchProtectionRule(
        allow_force_pushes=_enabled(data.get("allow_force_pushes")),
        allow_deletions=_enabled(data.get("allow_deletions")),
        enforce_admins=_enabled(data.get("enforce_admins")),
        required_approving_review_count=review_count,
        dismiss_stale_reviews=dismiss_stale,
        required_status_contexts=_status_contexts(checks),
        require_up_to_date_before_merge=strict,
    )


def _parse_branch_summary(entry: dict) -> BranchProtectionRule:
    """Parse what the branch listing exposes to non-admin callers."""
    protection = entry.get("protection")
    if not isinstance(protection, dict):
        return BranchProtectionRule()
    return BranchProtectionRule(
        required_status_contexts=_status_contexts(protection.get("required_status_checks")),
    )


# ─── HTTP helpers ─────────────────────────────────────────


async def _get(http_client: httpx.AsyncClient, url: str, **kwargs: object) -> httpx.Response:
    if _is_rate_limited():
        raise RetrievalError("GitHub API rate limit reached; try again later.")
    try:
        resp = await http_client.get(url, headers=_github_headers(), **kwargs)
    except httpx.HTTPError as exc:
        raise RetrievalError(f"GitHub API request failed for {url}: {exc}") from exc
    _check_rate_limit(resp)
    return resp


def _json_or_raise(resp: httpx.Response, url: str) -> object:
    if resp.status_code != 200:
        raise RetrievalError(f"GitHub API returned HTTP {resp.status_code} for {url}")
    try:
        return resp.json()
    except ValueError as exc:
        raise RetrievalError(f"GitHub API returned invalid JSON for {url}") from exc


async def _get_paginated(http_client: httpx.AsyncClient, url: str) -> list[dict]:
    items: list[dict] = []
    next_url: str | None = url
    params: dict[str, object] | None = {"per_page": _PER_PAGE}
    while next_url:
        resp = await _get(http_client, next_url, params=params)
        page = _json_or_raise(resp, next_url)
        if not isinstance(page, list):
            raise RetrievalError(f"GitHub API returned an unexpected payload for {next_url}")
        items.extend(p for p in page if isinstance(p, dict))
        next_url = resp.links.get("next", {}).get("url")
        params = None  # the next link already carries the query string
    return items


# ─── Main fetch function ──────────────────────────────────


class DefaultGitHubSnapshots:
    """Adapter for SnapshotFetcherPort. Holds the shared httpx client."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def fetch_snapshot(self, repository_url: str) -> RepoSnapshot:
        """Fetch a repository snapshot from GitHub's API."""
        return await fetch_snapshot(repository_url, self._http)


async def fetch_snapshot(
    repository_url: str,
    http_client: httpx.AsyncClient,
) -> RepoSnapshot:
    """Fetch branches, protection rules, releases and the default branch.

    Features: in-memory cache (15min TTL), rate limit detection,
    auth fallback (`GITHUB_TOKEN` -> `gh auth token`),
    concurrency limiting (5 concurrent requests).

    Raises:
        RetrievalError: If the URL is not a GitHub repo or any listing fails.
    """
    parsed = _parse_github_url(repository_url)
    if not parsed:
        raise RetrievalError(f"Not a GitHub repository URL: {repository_url}")

    owner, repo = parsed
    cache_key = f"{owner}/{repo}"

    cached = _cache_get(cache_key)
    if cached is not None:
        return cached

    base = f"{_API_ROOT}/repos/{owner}/{repo}"

    async with _github_semaphore:
        repo_url = base
        repo_data = _json_or_raise(await _get(http_client, repo_url), repo_url)
        if not isinstance(repo_data, dict):
            raise RetrievalError(f"GitHub API returned an unexpected payload for {repo_url}")
        branch_entries = await _get_paginated(http_client, f"{base}/branches")
        release_entries = await _get_paginated(http_client, f"{base}/releases")

    branches = await asyncio.gather(
        *(_fetch_branch(http_client, base, entry) for entry in branch_entries)
    )
    releases = [
        Release(target_commitish=str(entry.get("target_commitish") or ""))
        for entry in release_entries
    ]

    snapshot = RepoSnapshot(
        branches=list(branches),
        releases=releases,
        default_branch=repo_data.get("default_branch"),
    )
    logger.debug(
        "Fetched %s: %d branches, %d releases", cache_key, len(branches), len(releases)
    )
    _cache_set(cache_key, snapshot)
    return snapshot


async def _fetch_branch(http_client: httpx.AsyncClient, base: str, entry: dict) -> BranchRef:
    name = entry.get("name")
    protected = entry.get("protected")
    if not name:
        return BranchRef(name=name, protected=protected)
    if protected is False:
        return BranchRef(name=name, protected=False, rule=UNPROTECTED_RULE)
    if protected is not True:
        return BranchRef(name=name, protected=protected)

    url = f"{base}/branches/{quote(name, safe='')}/protection"
    async with _github_semaphore:
        resp = await _get(http_client, url)

    # 403/404: the token cannot read protection settings (no admin access).
    if resp.status_code in (403, 404) and not _is_rate_limited():
        logger.debug("No access to protection settings of branch '%s'", name)
        return BranchRef(name=name, protected=True, rule=_parse_branch_summary(entry))

    data = _json_or_raise(resp, url)
    if not isinstance(data, dict):
        raise RetrievalError(f"GitHub API returned an unexpected payload for {url}")
    return BranchRef(name=name, protected=True, rule=_parse_protection(data))
