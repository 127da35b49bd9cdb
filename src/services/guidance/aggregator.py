"""
Confidence Aggregator

confidence = tier1.score * 0.6 + (tier2.score, or 0.4 when absent/inconclusive) * 0.4
isValid    = confidence >= 0.6 and no Error issues

Issues from both tiers are merged Errors → Warnings → Info, keeping tier order
within each band.
"""

from datetime import datetime, timezone

from src.services.guidance.models import (
    ISSUE_KIND_ORDER,
    GuidanceValidation,
    IssueKind,
    RetrievalResult,
    SourceTier,
    TierResult,
    ValidationIssue,
)
from src.services.guidance.policy import DEFAULT_POLICY, RankingPolicy

_CONFIDENCE_PRECISION = 4

NO_STATEMENTS_ISSUE = ValidationIssue(
    kind=IssueKind.INFO,
    message="No guidance statements were checked; confidence reflects missing statute verification.",
    source_tier=SourceTier.TIER1,
    suggestion="Include checkable statements (deadlines, classifications) with the guidance.",
)


def confidence_score(tier1: TierResult, tier2: TierResult | None, policy: RankingPolicy = DEFAULT_POLICY) -> float:
    tier2_score = tier2.score if tier2 is not None and not tier2.inconclusive else policy.tier2_fallback_score
    raw = tier1.score * policy.tier1_weight + tier2_score * policy.tier2_weight
    return round(min(max(raw, 0.0), 1.0), _CONFIDENCE_PRECISION)


def merge_issues(*groups) -> tuple[ValidationIssue, ...]:
    """Concatenate issue groups in order, then stable-sort by severity."""
    merged = [issue for group in groups for issue in group]
    return tuple(sorted(merged, key=lambda issue: ISSUE_KIND_ORDER[issue.kind]))


def build_summary(confidence: float, checks_performed: int, checks_passed: int, issues) -> str:
    """One-line, human-readable summary of a validation."""
    errors = sum(1 for i in issues if i.kind == IssueKind.ERROR)
    warnings = sum(1 for i in issues if i.kind == IssueKind.WARNING)

    if confidence >= 0.9:
        summary = "High confidence: Guidance aligns well with statutes and precedent. "
    elif confidence >= 0.7:
        summary = "Good confidence: Guidance is mostly accurate with minor notes. "
    elif confidence >= 0.5:
        summary = "Moderate confidence: Some information could not be verified. "
    else:
        summary = "Low confidence: Several items require verification. "

    if checks_performed > 0:
        summary += f"Passed {checks_passed}/{checks_performed} checks. "
    if errors:
        summary += f"{errors} error(s) found. "
    if warnings:
        summary += f"{warnings} warning(s) noted. "
    return summary.strip()


def aggregate(
    tier1: TierResult,
    tier2: TierResult | None,
    retrieval: RetrievalResult,
    policy: RankingPolicy = DEFAULT_POLICY,
    validated_at: datetime | None = None,
) -> GuidanceValidation:
    """Combine tier results and retrieval output into the response envelope."""
    tier1_issues = list(tier1.issues)
    if tier1.inconclusive:
        tier1_issues.append(NO_STATEMENTS_ISSUE)
    issues = merge_issues(tier1_issues, retrieval.issues, tier2.issues if tier2 else ())

    confidence = confidence_score(tier1, tier2, policy)
    has_error = any(issue.kind == IssueKind.ERROR for issue in issues)
    performed = tier1.checks_performed + (tier2.checks_performed if tier2 else 0)
    passed = tier1.checks_passed + (tier2.checks_passed if tier2 else 0)

    return GuidanceValidation(
        confidence_score=confidence,
        is_valid=confidence >= policy.validity_threshold and not has_error,
        checks_performed=performed,
        checks_passed=passed,
        issues=issues,
        tier1=tier1,
        tier2=tier2,
        precedents=retrieval.precedents,
        summary=build_summary(confidence, performed, passed, issues),
        ranking_policy_version=policy.version,
        validated_at=validated_at or datetime.now(timezone.utc),
    )
