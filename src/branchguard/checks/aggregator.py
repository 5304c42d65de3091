"""Combine per-branch level scores into a single 0-10 score.

Levels are gated: a level only contributes once every level before it is
fully satisfied across all branches. Partial credit is given for the first
unsatisfied level, nothing above it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from branchguard.errors import InternalError
from branchguard.models import LevelScore

logger = logging.getLogger(__name__)

MIN_RESULT_SCORE = 0
MAX_RESULT_SCORE = 10


class ProtectionLevel(StrEnum):
    BASIC = "basic"
    REVIEW = "review"
    CONTEXT = "context"
    THOROUGH_REVIEW = "thorough_review"
    ADMIN_THOROUGH_REVIEW = "admin_thorough_review"


@dataclass(frozen=True, slots=True)
class _LevelSpec:
    level: ProtectionLevel
    fields: tuple[str, ...]
    weight: int


# Weights sum to MAX_RESULT_SCORE.
LEVELS: tuple[_LevelSpec, ...] = (
    _LevelSpec(ProtectionLevel.BASIC, ("basic", "admin_basic"), 3),
    _LevelSpec(ProtectionLevel.REVIEW, ("review", "admin_review"), 3),
    _LevelSpec(ProtectionLevel.CONTEXT, ("context",), 2),
    _LevelSpec(ProtectionLevel.THOROUGH_REVIEW, ("thorough_review",), 1),
    _LevelSpec(ProtectionLevel.ADMIN_THOROUGH_REVIEW, ("admin_thorough_review",), 1),
)


def normalize_score(score: int, max_score: int, weight: int) -> float:
    """Scale ``score / max_score`` to ``weight``. A level with nothing to score gets full weight."""
    if max_score == 0:
        return float(weight)
    return score * weight / max_score


def _sum_field(scores: Sequence[LevelScore], name: str) -> tuple[int, int]:
    total = sum(getattr(s.scores, name) for s in scores)
    total_max = sum(getattr(s.maxes, name) for s in scores)
    return total, total_max


def compute_score(scores: Sequence[LevelScore]) -> int:
    """Compute the final score from per-branch level scores.

    Raises:
        InternalError: If ``scores`` is empty.
    """
    if not scores:
        raise InternalError("scores are empty")

    total = 0.0
    for step in LEVELS:
        sums = [_sum_field(scores, name) for name in step.fields]
        level_score = sum(s for s, _ in sums)
        level_max = sum(m for _, m in sums)
        total += normalize_score(level_score, level_max, step.weight)

        # Advance only when every field of the level is fully satisfied.
        if any(s != m for s, m in sums):
            logger.debug("Stopped at level %s (%d/%d)", step.level, level_score, level_max)
            return int(total)

    logger.debug("All protection levels satisfied")
    return int(total)
