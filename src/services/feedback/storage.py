"""
Feedback Storage

Two backends behind the FeedbackStore protocol:
- InMemoryFeedbackStore: single process, default for local runs and tests
- SupabaseFeedbackStore: case_feedback + precedent_relevance_weights tables;
  upserts go through the record_case_feedback Postgres function so the
  record write and the counter adjustment commit in one transaction
  (schema: scripts/sql/case_feedback.sql)
"""

import asyncio
import dataclasses
import os
import threading
from datetime import datetime, timezone

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import AsyncClient, create_async_client

from src.config.logging_config import session_tag, setup_logger
from src.services.guidance.errors import CollaboratorUnavailable, FeedbackConflict
from src.services.guidance.models import FeedbackRecord, RelevanceWeight

logger = setup_logger(__name__)

# Postgres SQLSTATE for serialization failures
SERIALIZATION_FAILURE = "40001"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryFeedbackStore:
    """
    Process-local feedback store.

    The thread lock covers only the record swap and counter adjustment of a
    single upsert, so a replaced vote is subtracted and the new one added
    atomically.
    """

    def __init__(self, clock=_utcnow):
        self._clock = clock
        self._records: dict[tuple[str, str], FeedbackRecord] = {}
        self._weights: dict[tuple[str, str | None], RelevanceWeight] = {}
        self._lock = threading.Lock()

    async def upsert_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        now = self._clock()
        with self._lock:
            previous = self._records.get(record.key)
            stored = dataclasses.replace(
                record,
                created_at=previous.created_at if previous else now,
                updated_at=now,
            )
            if previous is not None:
                self._apply_vote(previous, -1, now)
            self._apply_vote(stored, 1, now)
            self._records[record.key] = stored
            return dataclasses.replace(stored)

    def _apply_vote(self, record: FeedbackRecord, delta: int, now: datetime) -> None:
        key = (record.precedent_id, record.charge_category)
        weight = self._weights.get(key)
        if weight is None:
            weight = self._weights[key] = RelevanceWeight(record.precedent_id, record.charge_category)
        if record.is_helpful:
            weight.helpful_count = max(0, weight.helpful_count + delta)
        else:
            weight.unhelpful_count = max(0, weight.unhelpful_count + delta)
        weight.last_updated = now

    async def get_feedback(self, session_id: str, precedent_id: str) -> FeedbackRecord | None:
        with self._lock:
            record = self._records.get((session_id, precedent_id))
            return dataclasses.replace(record) if record else None

    async def feedback_for_session(self, session_id: str) -> list[FeedbackRecord]:
        with self._lock:
            records = [dataclasses.replace(r) for (s, _), r in self._records.items() if s == session_id]
        return sorted(records, key=lambda r: (r.created_at or datetime.min.replace(tzinfo=timezone.utc), r.precedent_id))

    async def get_weights(self, precedent_ids: list[str]) -> list[RelevanceWeight]:
        wanted = set(precedent_ids)
        with self._lock:
            return [dataclasses.replace(w) for (pid, _), w in self._weights.items() if pid in wanted]

    async def feedback_stats(self, precedent_id: str) -> dict[str, int]:
        weights = await self.get_weights([precedent_id])
        return {
            "helpful": sum(w.helpful_count for w in weights),
            "notHelpful": sum(w.unhelpful_count for w in weights),
        }


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------
def _parse_timestamp(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def record_from_row(row: dict) -> FeedbackRecord:
    return FeedbackRecord(
        session_id=row["session_id"],
        precedent_id=row["case_id"],
        jurisdiction=row.get("jurisdiction") or "",
        is_helpful=bool(row["is_helpful"]),
        case_stage=row.get("case_stage"),
        # Uncategorized votes are stored as '' so the unique key stays NOT NULL
        charge_category=row.get("charge_category") or None,
        case_name=row.get("case_name") or "",
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def weight_from_row(row: dict) -> RelevanceWeight:
    return RelevanceWeight(
        precedent_id=row["case_id"],
        charge_category=row.get("charge_category") or None,
        helpful_count=int(row.get("helpful_count") or 0),
        unhelpful_count=int(row.get("unhelpful_count") or 0),
        last_updated=_parse_timestamp(row.get("last_updated")),
    )


class SupabaseFeedbackStore:
    """Feedback records and relevance weights stored in Supabase."""

    FEEDBACK_TABLE = "case_feedback"
    WEIGHTS_TABLE = "precedent_relevance_weights"
    UPSERT_FUNCTION = "record_case_feedback"

    def __init__(self, url: str | None = None, key: str | None = None):
        """
        Args:
            url: Supabase project URL. Falls back to SUPABASE_URL env var.
            key: Supabase service key. Falls back to SUPABASE_KEY env var.
        """
        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_KEY")

        if not self.url or not self.key:
            raise ValueError("Supabase URL and KEY required. Set SUPABASE_URL and SUPABASE_KEY env vars.")

        self.client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        """Lazy load async client."""
        async with self._client_lock:
            if self.client is None:
                self.client = await create_async_client(self.url, self.key)
        return self.client

    async def upsert_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        client = await self._get_client()
        try:
            response = await client.rpc(
                self.UPSERT_FUNCTION,
                {
                    "p_session_id": record.session_id,
                    "p_case_id": record.precedent_id,
                    "p_case_name": record.case_name,
                    "p_jurisdiction": record.jurisdiction,
                    "p_charge_category": record.charge_category or "",
                    "p_is_helpful": record.is_helpful,
                    "p_case_stage": record.case_stage,
                },
            ).execute()
        except PostgrestAPIError as e:
            if e.code == SERIALIZATION_FAILURE:
                logger.warning(
                    "Feedback write conflict (session=%s, case=%s)", session_tag(record.session_id), record.precedent_id
                )
                raise FeedbackConflict(record.session_id, record.precedent_id) from e
            logger.error("Feedback upsert error for case %s: %s", record.precedent_id, e)
            raise

        data = response.data
        row = data[0] if isinstance(data, list) and data else data
        if not row:
            logger.error("Feedback upsert returned no row for case %s", record.precedent_id)
            raise RuntimeError(f"{self.UPSERT_FUNCTION} returned no row")
        return record_from_row(row)

    async def get_feedback(self, session_id: str, precedent_id: str) -> FeedbackRecord | None:
        rows = await self._select(
            self.FEEDBACK_TABLE, lambda q: q.eq("session_id", session_id).eq("case_id", precedent_id).limit(1)
        )
        return record_from_row(rows[0]) if rows else None

    async def feedback_for_session(self, session_id: str) -> list[FeedbackRecord]:
        rows = await self._select(
            self.FEEDBACK_TABLE, lambda q: q.eq("session_id", session_id).order("created_at")
        )
        return [record_from_row(row) for row in rows]

    async def get_weights(self, precedent_ids: list[str]) -> list[RelevanceWeight]:
        if not precedent_ids:
            return []
        rows = await self._select(self.WEIGHTS_TABLE, lambda q: q.in_("case_id", list(precedent_ids)))
        return [weight_from_row(row) for row in rows]

    async def feedback_stats(self, precedent_id: str) -> dict[str, int]:
        weights = await self.get_weights([precedent_id])
        return {
            "helpful": sum(w.helpful_count for w in weights),
            "notHelpful": sum(w.unhelpful_count for w in weights),
        }

    async def _select(self, table: str, build) -> list[dict]:
        client = await self._get_client()
        try:
            response = await build(client.table(table).select("*")).execute()
        except (PostgrestAPIError, OSError) as e:
            logger.error("Feedback read error (%s): %s", table, e)
            raise CollaboratorUnavailable(["feedback_store"], detail=str(e)) from e
        return response.data or []
