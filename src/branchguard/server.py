"""MCP server that scores the branch protection of source repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from branchguard.clients.base import SnapshotFetcherPort
from branchguard.clients.github import DefaultGitHubSnapshots
from branchguard.tools.check import check_repository, check_snapshot


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations.

    Stateful I/O adapters are injected here. The scoring core is pure and
    stays a direct module import.
    """

    http_client: httpx.AsyncClient
    snapshots: SnapshotFetcherPort


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage shared adapter lifecycle (composition root)."""
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=10.0),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        transport=httpx.AsyncHTTPTransport(retries=3),
    ) as http_client:
        yield AppContext(
            http_client=http_client,
            snapshots=DefaultGitHubSnapshots(http_client),
        )


mcp = FastMCP(
    "branchguard",
    instructions=(
        "branchguard scores how well a repository protects its development and "
        "release branches, from 0 (unprotected) to 10 (fully hardened).\n\n"
        "### Tools\n"
        "- **check_repository**: Score a GitHub repository by URL. Evaluates the "
        "default branch plus every branch targeted by a release.\n"
        "- **check_snapshot**: Score a saved YAML/JSON snapshot of branches, "
        "protection settings and releases. Use when offline or for what-if analysis.\n\n"
        "### Reading results\n"
        "- Levels are gated: basic (force push, deletion, admin enforcement), then "
        "reviews, then required status checks, then two or more reviewers, then "
        "stale review dismissal. A level only counts once all earlier levels pass.\n"
        "- Details of type 'warn' name the settings to fix, starting with the lowest level.\n"
        "- score -1 with outcome 'inconclusive' means no branch could be evaluated; "
        "never present it as a score of 0.\n"
        "- 'unable to retrieve' details mean the token lacks admin access; those "
        "settings were neither rewarded nor penalized."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(check_repository)
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(check_snapshot)
