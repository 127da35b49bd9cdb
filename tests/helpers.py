"""
Shared test helpers. Used across unit tests to avoid duplication.
"""

import asyncio
from datetime import date

from src.services.guidance.models import (
    CaseContext,
    CaseStage,
    ChargeDefinition,
    CourtLevel,
    CustodyStatus,
    GuidanceStatement,
    PrecedentCase,
    RankedPrecedent,
    StatuteRule,
)
from src.services.reference.static_sources import InMemoryCaseLawCorpus, InMemoryChargeRegistry, InMemoryRuleTable

AS_OF = date(2025, 1, 1)

DISORDERLY = ChargeDefinition(
    "ca-disorderly-conduct", "Disorderly Conduct", "CA", frozenset({"public_order"}), "misdemeanor", "6 months jail"
)


def make_charge(**overrides: object) -> ChargeDefinition:
    """Create a ChargeDefinition with sensible defaults for tests."""
    defaults: dict[str, object] = {
        "code": "ca-disorderly-conduct",
        "name": "Disorderly Conduct",
        "jurisdiction": "CA",
        "categories": frozenset({"public_order"}),
        "classification": "misdemeanor",
        "max_penalty": "6 months jail",
    }
    defaults.update(overrides)
    return ChargeDefinition(**defaults)


def make_context(*charges: ChargeDefinition, jurisdiction: str = "CA") -> CaseContext:
    charges = charges or (DISORDERLY,)
    return CaseContext(
        jurisdiction=jurisdiction,
        charge_codes=frozenset(c.code for c in charges),
        case_stage=CaseStage.ARRAIGNMENT,
        custody_status=CustodyStatus.IN_CUSTODY,
        has_attorney=False,
        charges=tuple(sorted(charges, key=lambda c: c.code)),
    )


def make_precedent(precedent_id: str = "p-1", **overrides: object) -> PrecedentCase:
    defaults: dict[str, object] = {
        "id": precedent_id,
        "case_name": f"People v. {precedent_id}",
        "citation": f"Test {precedent_id}",
        "court": "California Court of Appeal",
        "court_level": CourtLevel.APPELLATE,
        "jurisdiction": "CA",
        "date_filed": date(2020, 1, 1),
        "charge_categories": frozenset({"public_order"}),
        "holding_classification": "misdemeanor",
    }
    defaults.update(overrides)
    return PrecedentCase(**defaults)


def make_ranked(precedent: PrecedentCase, score: float = 0.7, matched: tuple = ("public_order",)) -> RankedPrecedent:
    return RankedPrecedent(precedent=precedent, relevance_score=score, matched_charge_categories=matched)


def stmt(statement_type: str, value: str, charge_code: str | None = None) -> GuidanceStatement:
    return GuidanceStatement(statement_type, value, charge_code)


def ca_rules() -> list[StatuteRule]:
    """Small CA rule table: five checkable keys for the disorderly-conduct scenario."""
    return [
        StatuteRule("CA", "arraignment_deadline", "48 hours", critical=True),
        StatuteRule("CA", "bail_hearing_deadline", "48 hours"),
        StatuteRule("CA", "speedy_trial", "60 days"),
        StatuteRule("CA", "charge_classification", "misdemeanor", "Cal. Penal Code § 647", "ca-disorderly-conduct"),
        StatuteRule("CA", "max_penalty", "6 months jail", "Cal. Penal Code § 647", "ca-disorderly-conduct"),
        StatuteRule("NY", "arraignment_deadline", "24 hours", critical=True),
    ]


def four_of_five_statements() -> list[GuidanceStatement]:
    """Four statements match ca_rules(); max_penalty is wrong."""
    return [
        stmt("arraignment_deadline", "48 hours"),
        stmt("bail_hearing_deadline", "2 days"),
        stmt("speedy_trial", "60 days"),
        stmt("charge_classification", "Misdemeanor", "ca-disorderly-conduct"),
        stmt("max_penalty", "1 year jail", "ca-disorderly-conduct"),
    ]


def rule_table() -> InMemoryRuleTable:
    return InMemoryRuleTable(ca_rules())


def charge_registry() -> InMemoryChargeRegistry:
    return InMemoryChargeRegistry(
        [
            DISORDERLY,
            make_charge(code="ca-petty-theft", name="Petty Theft", categories=frozenset({"theft"})),
            make_charge(code="ny-assault-3", name="Assault 3", jurisdiction="NY", categories=frozenset({"assault"})),
            make_charge(code="us-wire-fraud", name="Wire Fraud", jurisdiction="US", categories=frozenset({"fraud"}), classification="felony"),
        ]
    )


def corpus(*precedents: PrecedentCase) -> InMemoryCaseLawCorpus:
    return InMemoryCaseLawCorpus(list(precedents))


# ---------------------------------------------------------------------------
# Misbehaving collaborators
# ---------------------------------------------------------------------------
class SlowRuleTable(InMemoryRuleTable):
    """Rule table whose lookups never finish within a test timeout."""

    def __init__(self, rules=None, delay: float = 5.0):
        super().__init__(rules or ca_rules())
        self.delay = delay

    async def lookup(self, jurisdiction, statement_type, charge_code=None):
        await asyncio.sleep(self.delay)
        return await super().lookup(jurisdiction, statement_type, charge_code)


class SlowCorpus:
    def __init__(self, delay: float = 5.0):
        self.delay = delay

    async def find_candidates(self, jurisdiction, categories):
        await asyncio.sleep(self.delay)
        return []


class FailingCorpus:
    """Corpus that is down: every call fails with a connection error."""

    def __init__(self):
        self.calls = 0

    async def find_candidates(self, jurisdiction, categories):
        self.calls += 1
        raise ConnectionError("connection refused")


class FailingChargeRegistry:
    async def get_charge(self, code):
        raise ConnectionError("connection refused")


class FailingWeightsStore:
    async def get_weights(self, precedent_ids):
        raise ConnectionError("connection reset")
