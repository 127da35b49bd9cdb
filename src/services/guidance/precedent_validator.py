"""
Tier-2 Precedent Validator

Cross-checks the guidance's charge classification (felony vs. misdemeanor
framing) against the holdings of the top-ranked precedents. Pure and
synchronous: it only reads request-scoped data already fetched by retrieval.
"""

from src.config.logging_config import setup_logger
from src.services.guidance.models import (
    CaseContext,
    GuidanceStatement,
    IssueKind,
    RankedPrecedent,
    SourceTier,
    TierResult,
    ValidationIssue,
)
from src.services.guidance.policy import DEFAULT_POLICY, RankingPolicy
from src.services.guidance.statute_validator import canonical_value

logger = setup_logger(__name__)

TIER_NAME = "tier2_precedent"
CLASSIFICATION_STATEMENT = "charge_classification"


def claimed_classifications(
    context: CaseContext, statements: list[GuidanceStatement]
) -> dict[str, set[str]]:
    """
    Charge code -> classifications the guidance asserts for it.
    A classification statement without a charge code applies to every charge.
    """
    claims: dict[str, set[str]] = {charge.code: set() for charge in context.charges}
    for statement in statements:
        if statement.statement_type != CLASSIFICATION_STATEMENT:
            continue
        value = canonical_value(statement.value)
        code = statement.charge_code.strip().lower() if statement.charge_code else None
        if code is None:
            for values in claims.values():
                values.add(value)
        elif code in claims:
            claims[code].add(value)
    return claims


def validate_precedents(
    context: CaseContext,
    statements: list[GuidanceStatement],
    precedents: tuple[RankedPrecedent, ...] | list[RankedPrecedent],
    policy: RankingPolicy = DEFAULT_POLICY,
) -> TierResult:
    if not precedents:
        # Retrieval already reported the empty result
        return TierResult.from_counts(TIER_NAME, 0, 0)

    claims = claimed_classifications(context, statements)
    performed = 0
    passed = 0
    issues: list[ValidationIssue] = []

    for ranked in precedents[: policy.tier2_max_precedents]:
        precedent = ranked.precedent
        if not precedent.holding_classification:
            continue
        related = context.charges_in_categories(set(ranked.matched_charge_categories))
        claimed: set[str] = set()
        for charge in related:
            claimed.update(claims.get(charge.code, ()))
        if not claimed:
            continue

        performed += 1
        holding = canonical_value(precedent.holding_classification)
        if holding in claimed:
            passed += 1
            continue
        issues.append(
            ValidationIssue(
                kind=IssueKind.WARNING,
                message=(
                    f"{precedent.case_name} ({precedent.citation}) treated "
                    f"{', '.join(ranked.matched_charge_categories)} as a {precedent.holding_classification}, "
                    f"but the guidance classifies it as {' / '.join(sorted(claimed))}."
                ),
                source_tier=SourceTier.TIER2,
                suggestion="Review the charge classification against this precedent.",
            )
        )

    if performed == 0:
        issues.append(
            ValidationIssue(
                kind=IssueKind.INFO,
                message="No top-ranked precedent could be compared with the guidance's charge classification.",
                source_tier=SourceTier.TIER2,
                suggestion="Add a charge_classification statement to enable precedent cross-checks.",
            )
        )

    result = TierResult.from_counts(TIER_NAME, performed, passed, issues)
    logger.info("Tier-2: %s/%s consistent (inconclusive=%s)", passed, performed, result.inconclusive)
    return result
