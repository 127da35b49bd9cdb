"""
In-memory collaborators backed by static reference data.

Read-only after construction, so safe for any number of concurrent readers.
"""

from __future__ import annotations

from src.services.guidance.models import ChargeDefinition, PrecedentCase, StatuteRule
from src.services.reference.seed_data import SEED_CHARGES, SEED_PRECEDENTS, build_seed_rules


class InMemoryRuleTable:
    """Rule table keyed by (jurisdiction, statement_type[, charge_code])."""

    def __init__(self, rules: list[StatuteRule], jurisdictions: set[str] | None = None):
        self._rules: dict[tuple[str, str, str | None], StatuteRule] = {}
        for rule in rules:
            self._rules[(rule.jurisdiction, rule.statement_type, rule.charge_code)] = rule
        known = {rule.jurisdiction for rule in rules}
        if jurisdictions:
            known.update(jurisdictions)
        self._jurisdictions = frozenset(known)

    async def known_jurisdictions(self) -> frozenset[str]:
        return self._jurisdictions

    async def lookup(
        self, jurisdiction: str, statement_type: str, charge_code: str | None = None
    ) -> StatuteRule | None:
        if charge_code:
            scoped = self._rules.get((jurisdiction, statement_type, charge_code))
            if scoped is not None:
                return scoped
        return self._rules.get((jurisdiction, statement_type, None))


class InMemoryChargeRegistry:
    def __init__(self, charges: list[ChargeDefinition]):
        self._charges = {charge.code: charge for charge in charges}

    async def get_charge(self, code: str) -> ChargeDefinition | None:
        return self._charges.get(code)


class InMemoryCaseLawCorpus:
    def __init__(self, precedents: list[PrecedentCase]):
        self._by_jurisdiction: dict[str, list[PrecedentCase]] = {}
        for precedent in precedents:
            self._by_jurisdiction.setdefault(precedent.jurisdiction, []).append(precedent)

    async def find_candidates(self, jurisdiction: str, categories: frozenset[str]) -> list[PrecedentCase]:
        return [p for p in self._by_jurisdiction.get(jurisdiction, []) if p.charge_categories & categories]


def seeded_rule_table() -> InMemoryRuleTable:
    return InMemoryRuleTable(build_seed_rules())


def seeded_charge_registry() -> InMemoryChargeRegistry:
    return InMemoryChargeRegistry([charge for charge, _ in SEED_CHARGES])


def seeded_corpus() -> InMemoryCaseLawCorpus:
    return InMemoryCaseLawCorpus(SEED_PRECEDENTS)
