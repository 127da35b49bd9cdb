"""
Precedent Retrieval & Ranking

Retrieves candidate precedents for the case's jurisdiction and charge categories,
scores each one, and returns a deterministic top-N ordering.

relevance = w_overlap * categoryOverlapRatio
          + w_court   * courtLevelWeight
          + w_recency * exp(-yearsSinceFiled / decayYears)
          + w_feedback* helpful / (helpful + unhelpful + smoothing)   (0.5 with no votes)

Ties: relevance desc → court weight desc → dateFiled desc → id asc.
"""

import math
import time
from datetime import date

from src.config.logging_config import setup_logger
from src.config.settings import config
from src.services.guidance.errors import CollaboratorTimeout, CollaboratorUnavailable
from src.services.guidance.models import (
    CaseContext,
    IssueKind,
    PrecedentCase,
    RankedPrecedent,
    RelevanceWeight,
    RetrievalResult,
    SourceTier,
    ValidationIssue,
)
from src.services.guidance.policy import DEFAULT_POLICY, RankingPolicy
from src.services.protocols import CaseLawCorpus, FeedbackStore
from src.utils.retry import call_collaborator
from src.utils.ttl_cache import TTLCache

logger = setup_logger(__name__)

_DAYS_PER_YEAR = 365.25
_SCORE_PRECISION = 6


# ---------------------------------------------------------------------------
# Scoring components
# ---------------------------------------------------------------------------
def category_overlap_ratio(case_categories: frozenset[str], precedent_categories: frozenset[str]) -> float:
    if not case_categories:
        return 0.0
    return len(case_categories & precedent_categories) / len(case_categories)


def recency_decay(date_filed: date | None, as_of: date, decay_years: float) -> float:
    """exp(-years/decay); future dates count as filed today, a missing date scores 0."""
    if date_filed is None:
        return 0.0
    years = max(0.0, (as_of - date_filed).days / _DAYS_PER_YEAR)
    return math.exp(-years / decay_years)


def feedback_adjustment(
    precedent_id: str,
    matched_categories: tuple[str, ...],
    weights: list[RelevanceWeight],
    policy: RankingPolicy = DEFAULT_POLICY,
) -> float:
    """
    Laplace-smoothed helpful ratio over the matched categories (plus uncategorized votes).
    Cold-start precedents get the neutral value so they are neither favored nor penalized.
    """
    helpful = 0
    unhelpful = 0
    matched = set(matched_categories)
    for weight in weights:
        if weight.precedent_id != precedent_id:
            continue
        if weight.charge_category is None or weight.charge_category in matched:
            helpful += weight.helpful_count
            unhelpful += weight.unhelpful_count
    if helpful + unhelpful == 0:
        return policy.neutral_feedback
    return helpful / (helpful + unhelpful + policy.feedback_smoothing)


def _ranking_key(ranked: RankedPrecedent) -> tuple:
    precedent = ranked.precedent
    filed = precedent.date_filed.toordinal() if precedent.date_filed else 0
    return (
        -ranked.relevance_score,
        -RankingPolicy.court_weight(precedent.court_level),
        -filed,
        precedent.id,
    )


def rank_precedents(
    candidates: list[PrecedentCase],
    case_categories: frozenset[str],
    weights: list[RelevanceWeight],
    as_of: date,
    policy: RankingPolicy = DEFAULT_POLICY,
) -> list[RankedPrecedent]:
    """Pure ranking: identical inputs and weights always give the identical ordered list."""
    ranked: list[RankedPrecedent] = []
    for precedent in candidates:
        matched = tuple(sorted(case_categories & precedent.charge_categories))
        score = (
            policy.weight_overlap * category_overlap_ratio(case_categories, precedent.charge_categories)
            + policy.weight_court * RankingPolicy.court_weight(precedent.court_level)
            + policy.weight_recency * recency_decay(precedent.date_filed, as_of, policy.recency_decay_years)
            + policy.weight_feedback * feedback_adjustment(precedent.id, matched, weights, policy)
        )
        score = round(min(max(score, 0.0), 1.0), _SCORE_PRECISION)
        ranked.append(RankedPrecedent(precedent=precedent, relevance_score=score, matched_charge_categories=matched))
    ranked.sort(key=_ranking_key)
    return ranked[: policy.top_n]


class PrecedentRanker:
    """Retrieves candidates from the corpus and ranks them with persisted feedback weights."""

    def __init__(
        self,
        corpus: CaseLawCorpus,
        feedback_store: FeedbackStore | None = None,
        policy: RankingPolicy | None = None,
        corpus_timeout: float | None = None,
        weights_timeout: float | None = None,
        candidate_cache: TTLCache | None = None,
    ):
        self.corpus = corpus
        self.feedback_store = feedback_store
        self.policy = policy or DEFAULT_POLICY
        self.corpus_timeout = corpus_timeout or config.CORPUS_QUERY_TIMEOUT
        self.weights_timeout = weights_timeout or config.FEEDBACK_WEIGHTS_TIMEOUT
        # Corpus rows only; feedback weights are always read fresh
        self.candidate_cache = candidate_cache or TTLCache(config.CORPUS_CACHE_TTL)

    async def retrieve(self, context: CaseContext, as_of: date | None = None) -> RetrievalResult:
        t0 = time.time()
        as_of = as_of or date.today()
        categories = context.charge_categories

        try:
            candidates = await self._load_candidates(context.jurisdiction, categories)
        except (CollaboratorTimeout, CollaboratorUnavailable) as exc:
            logger.warning("Precedent retrieval unavailable (%s): %s", context.jurisdiction, exc)
            return RetrievalResult(
                precedents=(),
                issues=(
                    ValidationIssue(
                        kind=IssueKind.INFO,
                        message="Precedent retrieval is temporarily unavailable; guidance is based on statute data only.",
                        source_tier=SourceTier.TIER2,
                        suggestion="Retry later to include case-law support.",
                    ),
                ),
                unavailable=True,
            )

        # Never fall back across jurisdictions, even if the corpus returns extra rows
        seen: set[str] = set()
        eligible: list[PrecedentCase] = []
        for precedent in candidates:
            if precedent.id in seen:
                continue
            if precedent.jurisdiction == context.jurisdiction and precedent.charge_categories & categories:
                seen.add(precedent.id)
                eligible.append(precedent)

        if not eligible:
            logger.info("No precedents for %s %s", context.jurisdiction, sorted(categories))
            return RetrievalResult(
                precedents=(),
                issues=(
                    ValidationIssue(
                        kind=IssueKind.INFO,
                        message=(
                            f"No precedent cases found in {context.jurisdiction} for "
                            f"{', '.join(sorted(categories)) or 'these charges'}; guidance is based on statute data only."
                        ),
                        source_tier=SourceTier.TIER2,
                    ),
                ),
                candidates_considered=len(candidates),
            )

        weights = await self._load_weights([p.id for p in eligible])
        ranked = rank_precedents(eligible, categories, weights, as_of, self.policy)
        logger.info(
            "Ranked %s/%s precedents in %.2fs (policy=%s)",
            len(ranked),
            len(eligible),
            time.time() - t0,
            self.policy.version,
        )
        return RetrievalResult(precedents=tuple(ranked), candidates_considered=len(candidates))

    async def _load_candidates(self, jurisdiction: str, categories: frozenset[str]) -> list[PrecedentCase]:
        key = (jurisdiction, tuple(sorted(categories)))
        cached = self.candidate_cache.get(key)
        if cached is not None:
            logger.debug("Corpus cache hit for %s %s", jurisdiction, list(key[1]))
            return list(cached)
        candidates = await call_collaborator(
            lambda: self.corpus.find_candidates(jurisdiction, categories),
            "case_law_corpus",
            self.corpus_timeout,
        )
        self.candidate_cache.set(key, tuple(candidates))
        return candidates

    async def _load_weights(self, precedent_ids: list[str]) -> list[RelevanceWeight]:
        if self.feedback_store is None:
            return []
        try:
            return await call_collaborator(
                lambda: self.feedback_store.get_weights(precedent_ids),
                "feedback_store",
                self.weights_timeout,
            )
        except (CollaboratorTimeout, CollaboratorUnavailable) as exc:
            logger.warning("Feedback weights unavailable, using neutral adjustment: %s", exc)
            return []
