"""
Service Protocols (Interfaces)

Defines the contracts for the engine's external collaborators so they can be
mocked in tests and swapped in production (in-memory seed data, Supabase)
without coupling the validators to concrete implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from src.services.guidance.models import (
    ChargeDefinition,
    FeedbackRecord,
    PrecedentCase,
    RelevanceWeight,
    StatuteRule,
)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------
@runtime_checkable
class RuleTable(Protocol):
    """Authoritative statute/rule values keyed by (jurisdiction, statement type)."""

    async def known_jurisdictions(self) -> frozenset[str]:
        """Canonical jurisdiction codes that have a rule table."""
        ...

    async def lookup(
        self, jurisdiction: str, statement_type: str, charge_code: str | None = None
    ) -> StatuteRule | None:
        """Return the rule for the key, preferring a charge-scoped rule, or None if no rule exists."""
        ...


# ---------------------------------------------------------------------------
# Charge registry
# ---------------------------------------------------------------------------
@runtime_checkable
class ChargeRegistry(Protocol):
    """Maps charge codes to their categories and classification."""

    async def get_charge(self, code: str) -> ChargeDefinition | None:
        """Return the charge for a canonical code, or None if unknown."""
        ...


# ---------------------------------------------------------------------------
# Case-law corpus
# ---------------------------------------------------------------------------
@runtime_checkable
class CaseLawCorpus(Protocol):
    """Read-only store of precedent cases."""

    async def find_candidates(self, jurisdiction: str, categories: frozenset[str]) -> list[PrecedentCase]:
        """Precedents in exactly this jurisdiction whose categories intersect the given ones."""
        ...


# ---------------------------------------------------------------------------
# Feedback storage
# ---------------------------------------------------------------------------
@runtime_checkable
class FeedbackStore(Protocol):
    """Durable feedback records plus their derived relevance weights.

    upsert_feedback must apply the record write and the counter adjustment
    atomically: a repeated vote changes no counters, a flipped vote moves one
    count from one counter to the other.
    """

    async def upsert_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        """Insert or replace the vote for (session_id, precedent_id); return the stored record."""
        ...

    async def get_feedback(self, session_id: str, precedent_id: str) -> FeedbackRecord | None:
        ...

    async def feedback_for_session(self, session_id: str) -> list[FeedbackRecord]:
        ...

    async def get_weights(self, precedent_ids: list[str]) -> list[RelevanceWeight]:
        """All weights (every category) for the given precedents."""
        ...

    async def feedback_stats(self, precedent_id: str) -> dict[str, int]:
        """{"helpful": n, "notHelpful": m} across categories."""
        ...
