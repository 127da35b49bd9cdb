"""
Request/response models for the HTTP API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.services.guidance.engine import ValidationRequest
from src.services.guidance.models import (
    FeedbackRecord,
    GuidanceStatement,
    GuidanceValidation,
    RankedPrecedent,
    TierResult,
    ValidationIssue,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class GuidanceStatementIn(CamelModel):
    """One checkable claim, e.g. {"statementType": "arraignment_deadline", "value": "48 hours"}"""

    statement_type: str = Field(min_length=1)
    value: str
    charge_code: Optional[str] = None


class ValidationRequestIn(CamelModel):
    jurisdiction: str
    charge_codes: List[str]
    case_stage: str
    custody_status: Optional[str] = None
    has_attorney: bool = False
    guidance_statements: List[GuidanceStatementIn] = Field(default_factory=list)

    def to_request(self) -> ValidationRequest:
        return ValidationRequest(
            jurisdiction=self.jurisdiction,
            charge_codes=list(self.charge_codes),
            case_stage=self.case_stage,
            custody_status=self.custody_status,
            has_attorney=self.has_attorney,
            guidance_statements=[
                GuidanceStatement(s.statement_type.strip(), s.value, s.charge_code) for s in self.guidance_statements
            ],
        )


class IssueOut(CamelModel):
    kind: str
    message: str
    source_tier: str
    suggestion: Optional[str] = None

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> "IssueOut":
        return cls(
            kind=issue.kind.value,
            message=issue.message,
            source_tier=issue.source_tier.value,
            suggestion=issue.suggestion,
        )


class TierOut(CamelModel):
    tier_name: str
    score: float
    checks_performed: int
    checks_passed: int
    inconclusive: bool
    degraded_checks: int
    issues: List[IssueOut]

    @classmethod
    def from_tier(cls, tier: TierResult) -> "TierOut":
        return cls(
            tier_name=tier.tier_name,
            score=round(tier.score, 4),
            checks_performed=tier.checks_performed,
            checks_passed=tier.checks_passed,
            inconclusive=tier.inconclusive,
            degraded_checks=tier.degraded_checks,
            issues=[IssueOut.from_issue(i) for i in tier.issues],
        )


class TiersOut(CamelModel):
    tier1: TierOut
    tier2: Optional[TierOut] = None


class PrecedentOut(CamelModel):
    id: str
    case_name: str
    citation: str
    court: str
    court_level: str
    jurisdiction: str
    date_filed: Optional[date] = None
    charge_categories: List[str]
    holding_classification: Optional[str] = None
    excerpt: Optional[str] = None
    url: Optional[str] = None
    relevance_score: float
    matched_charge_categories: List[str]

    @classmethod
    def from_ranked(cls, ranked: RankedPrecedent) -> "PrecedentOut":
        p = ranked.precedent
        return cls(
            id=p.id,
            case_name=p.case_name,
            citation=p.citation,
            court=p.court,
            court_level=p.court_level.value,
            jurisdiction=p.jurisdiction,
            date_filed=p.date_filed,
            charge_categories=sorted(p.charge_categories),
            holding_classification=p.holding_classification,
            excerpt=p.excerpt,
            url=p.url,
            relevance_score=ranked.relevance_score,
            matched_charge_categories=list(ranked.matched_charge_categories),
        )


class ValidationResponse(CamelModel):
    confidence_score: float
    is_valid: bool
    checks_performed: int
    checks_passed: int
    summary: str
    issues: List[IssueOut]
    tiers: TiersOut
    precedents: List[PrecedentOut]
    ranking_policy_version: str
    validated_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: GuidanceValidation) -> "ValidationResponse":
        return cls(
            confidence_score=result.confidence_score,
            is_valid=result.is_valid,
            checks_performed=result.checks_performed,
            checks_passed=result.checks_passed,
            summary=result.summary,
            issues=[IssueOut.from_issue(i) for i in result.issues],
            tiers=TiersOut(
                tier1=TierOut.from_tier(result.tier1),
                tier2=TierOut.from_tier(result.tier2) if result.tier2 else None,
            ),
            precedents=[PrecedentOut.from_ranked(p) for p in result.precedents],
            ranking_policy_version=result.ranking_policy_version,
            validated_at=result.validated_at,
            metadata=dict(result.metadata),
        )


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------
class FeedbackIn(CamelModel):
    session_id: str
    case_id: str
    case_name: str = ""
    jurisdiction: str = ""
    charge_category: Optional[str] = None
    is_helpful: bool
    case_stage: Optional[str] = None


class FeedbackOut(CamelModel):
    session_id: str
    case_id: str
    case_name: str
    jurisdiction: str
    charge_category: Optional[str] = None
    is_helpful: bool
    case_stage: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: FeedbackRecord) -> "FeedbackOut":
        return cls(
            session_id=record.session_id,
            case_id=record.precedent_id,
            case_name=record.case_name,
            jurisdiction=record.jurisdiction,
            charge_category=record.charge_category,
            is_helpful=record.is_helpful,
            case_stage=record.case_stage,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class FeedbackResponse(CamelModel):
    success: bool = True
    feedback: FeedbackOut


class SessionFeedbackResponse(CamelModel):
    success: bool = True
    feedback: List[FeedbackOut]


class FeedbackStats(CamelModel):
    helpful: int
    not_helpful: int


class FeedbackStatsResponse(CamelModel):
    success: bool = True
    case_id: str
    stats: FeedbackStats
