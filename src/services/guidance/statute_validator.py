"""
Tier-1 Statute Validator

Checks each atomic guidance statement against the jurisdiction's rule table:
- exact match (after canonicalization)  → pass
- rule exists but differs               → Warning (Error for critical rules)
- no rule for the key                   → Info, so confidence is discounted rather than assumed
- lookup timed out / unavailable        → Info, the statement degrades instead of failing the request

Every statement attempted counts as one check; only exact matches pass.
"""

import asyncio
import re
from dataclasses import dataclass

from src.config.logging_config import setup_logger
from src.config.settings import config
from src.services.guidance.errors import CollaboratorTimeout, CollaboratorUnavailable
from src.services.guidance.models import (
    CaseContext,
    GuidanceStatement,
    IssueKind,
    SourceTier,
    StatuteRule,
    TierResult,
    ValidationIssue,
)
from src.services.protocols import RuleTable
from src.utils.retry import call_collaborator

logger = setup_logger(__name__)

TIER_NAME = "tier1_statute"

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(hours?|hrs?|days?|weeks?)$")
_HOURS_PER_UNIT = {"h": 1, "d": 24, "w": 24 * 7}
_AFFIRMATIVE = {"yes", "true", "required"}
_NEGATIVE = {"no", "false", "not required"}


def canonical_value(value: str) -> str:
    """
    Canonical form used for rule comparison.

    Case, inner whitespace and trailing punctuation are ignored; durations in
    hours, days or weeks compare by their length in hours ("2 days" == "48 hours").
    """
    text = " ".join(str(value).split()).casefold().rstrip(".;,")
    match = _DURATION_RE.match(text)
    if match:
        amount = float(match.group(1)) * _HOURS_PER_UNIT[match.group(2)[0]]
        return f"{amount:g}h"
    if text in _AFFIRMATIVE:
        return "yes"
    if text in _NEGATIVE:
        return "no"
    return text


@dataclass(frozen=True)
class _StatementOutcome:
    passed: bool
    issue: ValidationIssue | None = None
    degraded: bool = False


class StatuteValidator:
    """Tier-1: statement-by-statement comparison against authoritative rules."""

    def __init__(self, rule_table: RuleTable, lookup_timeout: float | None = None):
        self.rule_table = rule_table
        self.lookup_timeout = lookup_timeout or config.RULE_LOOKUP_TIMEOUT

    async def validate(self, context: CaseContext, statements: list[GuidanceStatement]) -> TierResult:
        if not statements:
            logger.info("Tier-1: no statements to check (%s)", context.jurisdiction)
            return TierResult.from_counts(TIER_NAME, 0, 0)

        # Lookups are independent; gather keeps outcomes in statement order
        outcomes = await asyncio.gather(*(self._check(context, s) for s in statements))

        passed = sum(1 for o in outcomes if o.passed)
        degraded = sum(1 for o in outcomes if o.degraded)
        issues = [o.issue for o in outcomes if o.issue is not None]
        result = TierResult.from_counts(TIER_NAME, len(statements), passed, issues, degraded_checks=degraded)
        logger.info(
            "Tier-1: %s/%s passed (score=%.2f, degraded=%s)",
            passed,
            len(statements),
            result.score,
            degraded,
        )
        return result

    async def _check(self, context: CaseContext, statement: GuidanceStatement) -> _StatementOutcome:
        charge_code = statement.charge_code.strip().lower() if statement.charge_code else None
        try:
            rule = await call_collaborator(
                lambda: self.rule_table.lookup(context.jurisdiction, statement.statement_type, charge_code),
                "rule_table",
                self.lookup_timeout,
            )
        except (CollaboratorTimeout, CollaboratorUnavailable) as exc:
            logger.warning("Rule lookup unavailable for %s/%s: %s", context.jurisdiction, statement.statement_type, exc)
            return _StatementOutcome(
                passed=False,
                degraded=True,
                issue=ValidationIssue(
                    kind=IssueKind.INFO,
                    message=f"Rule lookup unavailable for '{statement.statement_type}'; statement not verified.",
                    source_tier=SourceTier.TIER1,
                    suggestion="Verify this statement manually or retry later.",
                ),
            )

        if rule is None:
            return _StatementOutcome(
                passed=False,
                issue=ValidationIssue(
                    kind=IssueKind.INFO,
                    message=(
                        f"No {context.jurisdiction} rule on record for '{statement.statement_type}'"
                        f"{_charge_suffix(charge_code)}; statement could not be verified."
                    ),
                    source_tier=SourceTier.TIER1,
                    suggestion="This may be correct but is not in the rule table. Consider manual verification.",
                ),
            )

        if canonical_value(statement.value) == canonical_value(rule.expected_value):
            return _StatementOutcome(passed=True)

        return _StatementOutcome(passed=False, issue=_mismatch_issue(context, statement, rule, charge_code))


def _charge_suffix(charge_code: str | None) -> str:
    return f" for charge '{charge_code}'" if charge_code else ""


def _mismatch_issue(
    context: CaseContext, statement: GuidanceStatement, rule: StatuteRule, charge_code: str | None
) -> ValidationIssue:
    source = f" ({rule.citation})" if rule.citation else ""
    return ValidationIssue(
        kind=IssueKind.ERROR if rule.critical else IssueKind.WARNING,
        message=(
            f"'{statement.statement_type}'{_charge_suffix(charge_code)} does not match {context.jurisdiction} rules: "
            f"guidance says '{statement.value}', rule says '{rule.expected_value}'."
        ),
        source_tier=SourceTier.TIER1,
        suggestion=f"Use '{rule.expected_value}'{source}.",
    )
