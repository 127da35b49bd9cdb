"""
Feedback Recorder & Relevance Adjuster

One vote per (session_id, precedent_id): resubmitting replaces the prior vote,
and the store moves the relevance counters in the same write. Updates for the
same key are serialized with a per-key lock; different keys never wait on
each other.
"""

from src.config.logging_config import session_tag, setup_logger
from src.services.guidance.errors import CollaboratorUnavailable, FeedbackConflict, InvalidFeedback
from src.services.guidance.models import FeedbackRecord
from src.services.protocols import FeedbackStore
from src.utils.keyed_locks import KeyedLocks

logger = setup_logger(__name__)

SESSION_ID_MIN_LENGTH = 10
SESSION_ID_MAX_LENGTH = 100


def _required_id(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidFeedback(field, "is required")
    return value.strip()


def validate_session_id(session_id) -> str:
    session_id = _required_id(session_id, "sessionId")
    if not SESSION_ID_MIN_LENGTH <= len(session_id) <= SESSION_ID_MAX_LENGTH:
        raise InvalidFeedback(
            "sessionId", f"must be {SESSION_ID_MIN_LENGTH}-{SESSION_ID_MAX_LENGTH} characters"
        )
    return session_id


def validate_case_id(precedent_id) -> str:
    return _required_id(precedent_id, "caseId")


class FeedbackRecorder:
    def __init__(self, store: FeedbackStore):
        self.store = store
        self._locks = KeyedLocks()

    async def record_feedback(
        self,
        session_id: str,
        precedent_id: str,
        is_helpful: bool,
        charge_category: str | None = None,
        jurisdiction: str = "",
        case_stage: str | None = None,
        case_name: str = "",
    ) -> FeedbackRecord:
        """
        Upsert a helpfulness vote and return the stored record.

        Raises:
            InvalidFeedback: missing/malformed ids or a non-boolean vote
            FeedbackConflict: storage reported a conflict twice in a row
        """
        session_id = validate_session_id(session_id)
        precedent_id = validate_case_id(precedent_id)
        if not isinstance(is_helpful, bool):
            raise InvalidFeedback("isHelpful", "must be true or false")

        record = FeedbackRecord(
            session_id=session_id,
            precedent_id=precedent_id,
            jurisdiction=(jurisdiction or "").strip().upper(),
            is_helpful=is_helpful,
            case_stage=(case_stage or "").strip().lower() or None,
            charge_category=(charge_category or "").strip().lower() or None,
            case_name=(case_name or "").strip(),
        )

        async with self._locks.hold(record.key):
            previous = await self._previous_vote(record)
            try:
                stored = await self.store.upsert_feedback(record)
            except FeedbackConflict:
                logger.warning("Retrying feedback upsert after conflict (case=%s)", precedent_id)
                stored = await self.store.upsert_feedback(record)

        if previous is None:
            action = "recorded"
        elif previous.is_helpful != stored.is_helpful or previous.charge_category != stored.charge_category:
            action = "changed"
        else:
            action = "unchanged"
        logger.info(
            "Feedback %s: session=%s case=%s helpful=%s category=%s",
            action,
            session_tag(session_id),
            precedent_id,
            stored.is_helpful,
            stored.charge_category,
        )
        return stored

    async def _previous_vote(self, record: FeedbackRecord) -> FeedbackRecord | None:
        # Only used for logging vote changes; the store does the authoritative swap
        try:
            return await self.store.get_feedback(record.session_id, record.precedent_id)
        except CollaboratorUnavailable as exc:
            logger.warning("Could not read previous vote: %s", exc)
            return None

    async def stats(self, precedent_id: str) -> dict[str, int]:
        return await self.store.feedback_stats(validate_case_id(precedent_id))

    async def for_session(self, session_id: str) -> list[FeedbackRecord]:
        return await self.store.feedback_for_session(validate_session_id(session_id))
