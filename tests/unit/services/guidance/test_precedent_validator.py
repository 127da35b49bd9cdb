"""
Unit tests for the Tier-2 precedent validator.
"""

from src.services.guidance.models import IssueKind, SourceTier
from src.services.guidance.policy import RankingPolicy
from src.services.guidance.precedent_validator import claimed_classifications, validate_precedents
from tests.helpers import make_charge, make_context, make_precedent, make_ranked, stmt

CLASSIFY = stmt("charge_classification", "misdemeanor", "ca-disorderly-conduct")


class TestClaimedClassifications:
    def test_unscoped_statement_applies_to_every_charge(self):
        theft = make_charge(code="ca-petty-theft", categories=frozenset({"theft"}))
        context = make_context(make_charge(), theft)
        claims = claimed_classifications(context, [stmt("charge_classification", "Felony")])
        assert claims == {"ca-disorderly-conduct": {"felony"}, "ca-petty-theft": {"felony"}}

    def test_other_statement_types_ignored(self):
        claims = claimed_classifications(make_context(), [stmt("max_penalty", "1 year")])
        assert claims == {"ca-disorderly-conduct": set()}


class TestValidatePrecedents:
    def test_consistent_holdings_pass(self):
        precedents = [make_ranked(make_precedent("a")), make_ranked(make_precedent("b"))]
        result = validate_precedents(make_context(), [CLASSIFY], precedents)
        assert (result.checks_performed, result.checks_passed) == (2, 2)
        assert result.score == 1.0
        assert result.issues == ()

    def test_inconsistent_holding_is_warning(self):
        precedents = [make_ranked(make_precedent("a", holding_classification="felony"))]
        result = validate_precedents(make_context(), [CLASSIFY], precedents)
        assert result.score == 0.0
        assert result.issues[0].kind == IssueKind.WARNING
        assert result.issues[0].source_tier == SourceTier.TIER2

    def test_zero_precedents_inconclusive_without_extra_issue(self):
        result = validate_precedents(make_context(), [CLASSIFY], ())
        assert result.inconclusive
        assert result.issues == ()

    def test_nothing_checkable_is_inconclusive_with_info(self):
        precedents = [make_ranked(make_precedent("a", holding_classification=None))]
        result = validate_precedents(make_context(), [CLASSIFY], precedents)
        assert result.inconclusive
        assert [i.kind for i in result.issues] == [IssueKind.INFO]

    def test_no_classification_statement_is_inconclusive(self):
        result = validate_precedents(make_context(), [stmt("speedy_trial", "60 days")], [make_ranked(make_precedent())])
        assert result.inconclusive

    def test_only_top_precedents_checked(self):
        precedents = [make_ranked(make_precedent(f"p-{i}")) for i in range(8)]
        result = validate_precedents(make_context(), [CLASSIFY], precedents, RankingPolicy(tier2_max_precedents=3))
        assert result.checks_performed == 3

    def test_classification_of_unrelated_charge_not_used(self):
        theft = make_charge(code="ca-petty-theft", categories=frozenset({"theft"}))
        context = make_context(make_charge(), theft)
        statements = [stmt("charge_classification", "felony", "ca-petty-theft")]
        result = validate_precedents(context, statements, [make_ranked(make_precedent())])
        # Precedent matches public_order only; the theft classification does not apply
        assert result.inconclusive
