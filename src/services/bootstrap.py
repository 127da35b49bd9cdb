"""
Wiring: builds the engine, recorder and rate limiter from configuration.

STORAGE_BACKEND selects the feedback store, CORPUS_BACKEND the case-law
corpus. The rule table and charge registry are the seeded reference data.
"""

from dataclasses import dataclass

from src.config.logging_config import setup_logger
from src.config.settings import config
from src.services.feedback.recorder import FeedbackRecorder
from src.services.feedback.storage import InMemoryFeedbackStore, SupabaseFeedbackStore
from src.services.guidance.engine import GuidanceValidationEngine
from src.services.guidance.policy import RankingPolicy
from src.services.protocols import CaseLawCorpus, FeedbackStore
from src.services.reference.static_sources import seeded_charge_registry, seeded_corpus, seeded_rule_table
from src.services.retrieval.corpus import SupabaseCaseLawCorpus
from src.utils.rate_limit import SlidingWindowRateLimiter

logger = setup_logger(__name__)


@dataclass
class Services:
    engine: GuidanceValidationEngine
    recorder: FeedbackRecorder
    rate_limiter: SlidingWindowRateLimiter | None


def build_feedback_store(backend: str | None = None) -> FeedbackStore:
    backend = backend or config.STORAGE_BACKEND
    if backend == "supabase":
        return SupabaseFeedbackStore()
    return InMemoryFeedbackStore()


def build_corpus(backend: str | None = None) -> CaseLawCorpus:
    backend = backend or config.CORPUS_BACKEND
    if backend == "supabase":
        return SupabaseCaseLawCorpus()
    return seeded_corpus()


def build_services(policy: RankingPolicy | None = None) -> Services:
    store = build_feedback_store()
    engine = GuidanceValidationEngine(
        rule_table=seeded_rule_table(),
        charge_registry=seeded_charge_registry(),
        corpus=build_corpus(),
        feedback_store=store,
        policy=policy or RankingPolicy.from_config(),
    )
    limiter = SlidingWindowRateLimiter() if config.RATE_LIMIT_ENABLED else None
    logger.info(
        "Services ready (storage=%s, corpus=%s, policy=%s, rate_limit=%s)",
        config.STORAGE_BACKEND,
        config.CORPUS_BACKEND,
        engine.policy.version,
        "on" if limiter else "off",
    )
    return Services(engine=engine, recorder=FeedbackRecorder(store), rate_limiter=limiter)
