"""Domain models for branchguard. All frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum

# ─── Enumerations ─────────────────────────────────────────────


class CheckOutcome(StrEnum):
    MIN_SCORE = "min_score"
    MAX_SCORE = "max_score"
    PARTIAL = "partial"
    INCONCLUSIVE = "inconclusive"
    RUNTIME_ERROR = "runtime_error"


class DetailType(StrEnum):
    INFO = "info"
    WARN = "warn"
    DEBUG = "debug"


# ─── Platform Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class BranchProtectionRule:
    """Protection settings of one branch as reported by the platform.

    ``None`` means the setting could not be retrieved (typically the caller
    lacks admin access). It is never equivalent to ``False``.
    """

    allow_force_pushes: bool | None = None
    allow_deletions: bool | None = None
    enforce_admins: bool | None = None
    required_approving_review_count: int | None = None
    dismiss_stale_reviews: bool | None = None
    required_status_contexts: tuple[str, ...] = ()
    require_up_to_date_before_merge: bool | None = None


# Nothing is enforced on a branch without a protection rule.
UNPROTECTED_RULE = BranchProtectionRule(
    allow_force_pushes=True,
    allow_deletions=True,
    enforce_admins=False,
    required_approving_review_count=0,
    dismiss_stale_reviews=False,
    required_status_contexts=(),
    require_up_to_date_before_merge=False,
)


@dataclass(frozen=True, slots=True)
class BranchRef:
    """A branch listed by the platform, with its protection rule."""

    name: str | None
    protected: bool | None = None
    rule: BranchProtectionRule = field(default_factory=BranchProtectionRule)


@dataclass(frozen=True, slots=True)
class Release:
    """A release; ``target_commitish`` is a branch name or a commit SHA."""

    target_commitish: str


# ─── Scoring Models ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ScoresInfo:
    basic: int = 0
    admin_basic: int = 0
    review: int = 0
    admin_review: int = 0
    context: int = 0
    thorough_review: int = 0
    admin_thorough_review: int = 0


@dataclass(frozen=True, slots=True)
class LevelScore:
    """Score obtained by one branch, and the maximum it could have obtained."""

    scores: ScoresInfo
    maxes: ScoresInfo


# ─── Check Result Models ──────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CheckDetail:
    """A single rationale line recorded while evaluating a branch."""

    type: DetailType
    message: str


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of one branch-protection evaluation run."""

    name: str
    score: int
    outcome: CheckOutcome
    reason: str
    details: list[CheckDetail] = field(default_factory=list)
    error: str = ""

    @property
    def passed(self) -> bool:
        return self.outcome == CheckOutcome.MAX_SCORE

    @property
    def warnings(self) -> list[CheckDetail]:
        return [d for d in self.details if d.type == DetailType.WARN]

    def to_dict(self) -> dict[str, object]:
        result = asdict(self)
        result["outcome"] = self.outcome.value
        result["details"] = [{"type": d.type.value, "message": d.message} for d in self.details]
        if not self.error:
            del result["error"]
        return result
