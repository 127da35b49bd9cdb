"""
Unit tests for FeedbackRecorder with the in-memory store: idempotent upserts,
vote flips, per-key serialization and conflict retry.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.services.feedback.recorder import FeedbackRecorder
from src.services.feedback.storage import InMemoryFeedbackStore
from src.services.guidance.errors import FeedbackConflict, InvalidFeedback
from src.services.guidance.models import FeedbackRecord

SESSION = "session-0001"


def _weights(store: InMemoryFeedbackStore, precedent_id: str = "p-1"):
    weights = asyncio.run(store.get_weights([precedent_id]))
    return {w.charge_category: (w.helpful_count, w.unhelpful_count) for w in weights}


def _record(recorder, **overrides):
    fields = {
        "session_id": SESSION,
        "precedent_id": "p-1",
        "is_helpful": True,
        "charge_category": "public_order",
        "jurisdiction": "ca",
        "case_stage": "arraignment",
        "case_name": "People v. Example",
    }
    fields.update(overrides)
    return asyncio.run(recorder.record_feedback(**fields))


class TestIdempotence:
    def test_same_vote_twice_counts_once(self):
        store = InMemoryFeedbackStore()
        recorder = FeedbackRecorder(store)
        _record(recorder)
        _record(recorder)
        assert _weights(store) == {"public_order": (1, 0)}
        assert len(asyncio.run(store.feedback_for_session(SESSION))) == 1

    def test_resubmission_keeps_created_at(self):
        recorder = FeedbackRecorder(InMemoryFeedbackStore())
        first = _record(recorder)
        second = _record(recorder)
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at

    def test_returns_canonical_record(self):
        stored = _record(FeedbackRecorder(InMemoryFeedbackStore()), charge_category=" Public_Order ")
        assert stored.jurisdiction == "CA"
        assert stored.charge_category == "public_order"
        assert stored.created_at is not None


class TestVoteFlip:
    def test_helpful_then_unhelpful(self):
        store = InMemoryFeedbackStore()
        recorder = FeedbackRecorder(store)
        _record(recorder, is_helpful=True)
        _record(recorder, is_helpful=False)
        assert _weights(store) == {"public_order": (0, 1)}
        assert asyncio.run(store.get_feedback(SESSION, "p-1")).is_helpful is False

    def test_category_change_moves_the_vote(self):
        store = InMemoryFeedbackStore()
        recorder = FeedbackRecorder(store)
        _record(recorder, charge_category="public_order")
        _record(recorder, charge_category=None)
        assert _weights(store) == {"public_order": (0, 0), None: (1, 0)}

    def test_sessions_are_independent(self):
        store = InMemoryFeedbackStore()
        recorder = FeedbackRecorder(store)
        _record(recorder, session_id="session-aaaa")
        _record(recorder, session_id="session-bbbb", is_helpful=False)
        assert _weights(store) == {"public_order": (1, 1)}
        assert asyncio.run(recorder.stats("p-1")) == {"helpful": 1, "notHelpful": 1}


class TestConcurrency:
    def test_concurrent_same_key_votes_do_not_lose_updates(self):
        store = InMemoryFeedbackStore()
        recorder = FeedbackRecorder(store)

        async def _burst():
            await asyncio.gather(
                *(
                    recorder.record_feedback(SESSION, "p-1", is_helpful=i % 2 == 0, charge_category="public_order")
                    for i in range(21)
                )
            )

        asyncio.run(_burst())
        helpful, unhelpful = _weights(store)["public_order"]
        # Exactly one vote survives for the key
        assert helpful + unhelpful == 1
        assert len(recorder._locks) == 0


class TestValidation:
    @pytest.mark.parametrize("session_id", ["", "short", "x" * 101, None])
    def test_bad_session_id(self, session_id):
        with pytest.raises(InvalidFeedback) as exc_info:
            _record(FeedbackRecorder(InMemoryFeedbackStore()), session_id=session_id)
        assert exc_info.value.field == "sessionId"

    def test_missing_case_id(self):
        with pytest.raises(InvalidFeedback, match="caseId"):
            _record(FeedbackRecorder(InMemoryFeedbackStore()), precedent_id=" ")

    def test_vote_must_be_bool(self):
        with pytest.raises(InvalidFeedback, match="isHelpful"):
            _record(FeedbackRecorder(InMemoryFeedbackStore()), is_helpful="yes")


class TestConflictRetry:
    def _store(self, *side_effect):
        store = AsyncMock()
        store.get_feedback.return_value = None
        store.upsert_feedback.side_effect = list(side_effect)
        return store

    def test_conflict_retried_once(self):
        stored = FeedbackRecord(SESSION, "p-1", "CA", True)
        store = self._store(FeedbackConflict(SESSION, "p-1"), stored)
        assert _record(FeedbackRecorder(store)) is stored
        assert store.upsert_feedback.await_count == 2

    def test_second_conflict_propagates(self):
        store = self._store(FeedbackConflict(SESSION, "p-1"), FeedbackConflict(SESSION, "p-1"))
        with pytest.raises(FeedbackConflict):
            _record(FeedbackRecorder(store))
        assert store.upsert_feedback.await_count == 2
