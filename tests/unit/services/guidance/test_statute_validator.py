"""
Unit tests for the Tier-1 statute validator: value canonicalization,
pass/warning/error/info outcomes, and timeout degradation.
"""

import asyncio

import pytest

from src.services.guidance.models import IssueKind, SourceTier
from src.services.guidance.statute_validator import StatuteValidator, canonical_value
from tests.helpers import SlowRuleTable, four_of_five_statements, make_context, rule_table, stmt


def _validate(statements, table=None, timeout=None):
    validator = StatuteValidator(table or rule_table(), lookup_timeout=timeout)
    return asyncio.run(validator.validate(make_context(), statements))


class TestCanonicalValue:
    @pytest.mark.parametrize(
        "a, b",
        [
            ("48 hours", "2 days"),
            ("48 Hours.", "48 hours"),
            ("1 week", "168 hrs"),
            ("Misdemeanor", "misdemeanor"),
            ("6  months   jail", "6 months jail"),
            ("Required", "yes"),
        ],
    )
    def test_equivalent_values(self, a, b):
        assert canonical_value(a) == canonical_value(b)

    def test_different_durations_differ(self):
        assert canonical_value("24 hours") != canonical_value("48 hours")


class TestStatuteValidator:
    def test_four_of_five_passes(self):
        result = _validate(four_of_five_statements())
        assert result.checks_performed == 5
        assert result.checks_passed == 4
        assert result.score == pytest.approx(0.8)
        assert not result.inconclusive
        assert [i.kind for i in result.issues] == [IssueKind.WARNING]
        assert "max_penalty" in result.issues[0].message
        assert result.issues[0].suggestion == "Use '6 months jail' (Cal. Penal Code § 647)."

    def test_missing_rule_is_info_and_counted(self):
        result = _validate([stmt("notarization_required", "yes")])
        assert result.checks_performed == 1
        assert result.checks_passed == 0
        assert result.issues[0].kind == IssueKind.INFO
        assert result.issues[0].source_tier == SourceTier.TIER1

    def test_critical_rule_mismatch_is_error(self):
        result = _validate([stmt("arraignment_deadline", "72 hours")])
        assert result.issues[0].kind == IssueKind.ERROR

    def test_charge_scoped_rule_preferred(self):
        result = _validate([stmt("charge_classification", "felony", "ca-disorderly-conduct")])
        assert result.checks_passed == 0
        assert "misdemeanor" in result.issues[0].message

    def test_no_statements_is_inconclusive(self):
        result = _validate([])
        assert result.inconclusive
        assert result.score == 0
        assert result.checks_performed == 0
        assert result.issues == ()

    def test_timeout_degrades_each_statement_to_info(self):
        result = _validate(
            [stmt("arraignment_deadline", "48 hours"), stmt("speedy_trial", "60 days")],
            table=SlowRuleTable(),
            timeout=0.05,
        )
        assert result.checks_performed == 2
        assert result.checks_passed == 0
        assert result.degraded_checks == 2
        assert all(i.kind == IssueKind.INFO for i in result.issues)
        assert all("unavailable" in i.message for i in result.issues)

    def test_issue_order_follows_statement_order(self):
        result = _validate([stmt("max_penalty", "1 year", "ca-disorderly-conduct"), stmt("unknown_type", "x")])
        assert [i.kind for i in result.issues] == [IssueKind.WARNING, IssueKind.INFO]

    def test_passed_never_exceeds_performed(self):
        result = _validate(four_of_five_statements() * 3)
        assert result.checks_passed <= result.checks_performed
