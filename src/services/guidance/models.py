"""
Guidance Validation Domain Models

Pure data structures with no external dependencies, shared by the normalizer,
both validation tiers, precedent ranking, the aggregator and the feedback loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class CaseStage(str, Enum):
    ARREST = "arrest"
    ARRAIGNMENT = "arraignment"
    BAIL = "bail"
    PRE_TRIAL = "pre_trial"
    TRIAL = "trial"
    SENTENCING = "sentencing"
    APPEAL = "appeal"


class CustodyStatus(str, Enum):
    IN_CUSTODY = "in_custody"
    OUT_ON_BAIL = "out_on_bail"
    OR_RELEASE = "or_release"
    UNKNOWN = "unknown"


class IssueKind(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# Merge order for the aggregated issue list
ISSUE_KIND_ORDER: dict[IssueKind, int] = {
    IssueKind.ERROR: 0,
    IssueKind.WARNING: 1,
    IssueKind.INFO: 2,
}


class SourceTier(str, Enum):
    TIER1 = "tier1"
    TIER2 = "tier2"


class CourtLevel(str, Enum):
    SUPREME = "supreme"
    APPELLATE = "appellate"
    TRIAL = "trial"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ChargeDefinition:
    """A charge as known to the charge registry"""

    code: str  # e.g. "ca-disorderly-conduct"
    name: str
    jurisdiction: str  # 2-letter code, "US" for federal
    categories: frozenset[str]
    classification: str  # "felony", "misdemeanor", "infraction", "wobbler"
    max_penalty: str = ""


@dataclass(frozen=True)
class CaseContext:
    """Canonical, immutable case facts for a single request"""

    jurisdiction: str
    charge_codes: frozenset[str]
    case_stage: CaseStage
    custody_status: CustodyStatus
    has_attorney: bool
    # Registry entries for charge_codes, ordered by code
    charges: tuple[ChargeDefinition, ...] = ()

    @property
    def charge_categories(self) -> frozenset[str]:
        categories: set[str] = set()
        for charge in self.charges:
            categories.update(charge.categories)
        return frozenset(categories)

    def charges_in_categories(self, categories: frozenset[str] | set[str]) -> list[ChargeDefinition]:
        return [c for c in self.charges if c.categories & set(categories)]


@dataclass(frozen=True)
class GuidanceStatement:
    """One atomic, checkable claim made by generated guidance"""

    statement_type: str  # e.g. "arraignment_deadline", "charge_classification"
    value: str
    charge_code: str | None = None


@dataclass(frozen=True)
class StatuteRule:
    """Authoritative value for a (jurisdiction, statement type[, charge]) key"""

    jurisdiction: str
    statement_type: str
    expected_value: str
    citation: str = ""
    charge_code: str | None = None
    # A mismatch against a critical rule is an error rather than a warning
    critical: bool = False


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    message: str
    source_tier: SourceTier
    suggestion: str | None = None


@dataclass(frozen=True)
class TierResult:
    tier_name: str
    score: float
    checks_performed: int
    checks_passed: int
    issues: tuple[ValidationIssue, ...] = ()
    inconclusive: bool = False
    # Checks that could not consult their collaborator (timeouts, outages)
    degraded_checks: int = 0

    @classmethod
    def from_counts(
        cls,
        tier_name: str,
        checks_performed: int,
        checks_passed: int,
        issues: list[ValidationIssue] | tuple[ValidationIssue, ...] = (),
        degraded_checks: int = 0,
    ) -> TierResult:
        """Build a result whose score always equals passed / performed (0 and inconclusive when nothing ran)."""
        if checks_performed < 0 or not 0 <= checks_passed <= checks_performed:
            raise ValueError(f"invalid check counts: {checks_passed}/{checks_performed}")
        if checks_performed == 0:
            return cls(tier_name, 0.0, 0, 0, tuple(issues), inconclusive=True, degraded_checks=degraded_checks)
        return cls(
            tier_name,
            checks_passed / checks_performed,
            checks_performed,
            checks_passed,
            tuple(issues),
            inconclusive=False,
            degraded_checks=degraded_checks,
        )


@dataclass(frozen=True)
class PrecedentCase:
    """A prior court decision from the case-law corpus; never mutated by the engine"""

    id: str
    case_name: str
    citation: str
    court: str
    court_level: CourtLevel
    jurisdiction: str
    date_filed: date | None
    charge_categories: frozenset[str]
    holding_classification: str | None = None  # "felony" / "misdemeanor" / ...
    excerpt: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class RankedPrecedent:
    precedent: PrecedentCase
    relevance_score: float
    matched_charge_categories: tuple[str, ...]


@dataclass(frozen=True)
class RetrievalResult:
    """Ranked precedents plus retrieval-level caveats for the aggregator"""

    precedents: tuple[RankedPrecedent, ...]
    issues: tuple[ValidationIssue, ...] = ()
    unavailable: bool = False
    candidates_considered: int = 0


@dataclass
class FeedbackRecord:
    """One helpfulness vote; at most one per (session_id, precedent_id)"""

    session_id: str
    precedent_id: str
    jurisdiction: str
    is_helpful: bool
    case_stage: str | None = None
    charge_category: str | None = None
    case_name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.session_id, self.precedent_id)


@dataclass
class RelevanceWeight:
    """Running vote counters for a (precedent_id, charge_category) pair"""

    precedent_id: str
    charge_category: str | None
    helpful_count: int = 0
    unhelpful_count: int = 0
    last_updated: datetime | None = None

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.precedent_id, self.charge_category)


@dataclass(frozen=True)
class GuidanceValidation:
    """Response envelope for one validation request"""

    confidence_score: float
    is_valid: bool
    checks_performed: int
    checks_passed: int
    issues: tuple[ValidationIssue, ...]
    tier1: TierResult
    tier2: TierResult | None
    precedents: tuple[RankedPrecedent, ...]
    summary: str = ""
    ranking_policy_version: str = ""
    validated_at: datetime | None = None
    metadata: dict = field(default_factory=dict, compare=False)

    def is_reliable(self, threshold: float = 0.6) -> bool:
        return self.confidence_score >= threshold and self.is_valid
