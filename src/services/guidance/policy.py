"""
Versioned ranking and aggregation policy.

The numeric constants that determine relevance ordering and confidence are
grouped here so a single frozen object can be pinned in tests and echoed in
every response. Changing any value is a policy update and needs a new version.
"""

from dataclasses import dataclass

from src.config.settings import config
from src.services.guidance.models import CourtLevel

COURT_LEVEL_WEIGHTS: dict[CourtLevel, float] = {
    CourtLevel.SUPREME: 1.0,
    CourtLevel.APPELLATE: 0.7,
    CourtLevel.TRIAL: 0.4,
    CourtLevel.UNKNOWN: 0.2,
}


@dataclass(frozen=True)
class RankingPolicy:
    version: str = "v1"

    # Relevance = overlap * w1 + court * w2 + recency * w3 + feedback * w4
    weight_overlap: float = 0.5
    weight_court: float = 0.2
    weight_recency: float = 0.2
    weight_feedback: float = 0.1
    recency_decay_years: float = 10.0
    feedback_smoothing: float = 5.0
    neutral_feedback: float = 0.5
    top_n: int = 10

    # Confidence = tier1 * t1 + (tier2 or fallback) * t2
    tier1_weight: float = 0.6
    tier2_weight: float = 0.4
    tier2_fallback_score: float = 0.4
    tier2_gate: float = 0.5
    validity_threshold: float = 0.6
    tier2_max_precedents: int = 5

    @classmethod
    def from_config(cls) -> "RankingPolicy":
        return cls(
            version=config.RANKING_POLICY_VERSION,
            weight_overlap=config.RANK_WEIGHT_OVERLAP,
            weight_court=config.RANK_WEIGHT_COURT,
            weight_recency=config.RANK_WEIGHT_RECENCY,
            weight_feedback=config.RANK_WEIGHT_FEEDBACK,
            recency_decay_years=config.RECENCY_DECAY_YEARS,
            feedback_smoothing=config.FEEDBACK_SMOOTHING,
            top_n=config.PRECEDENT_TOP_N,
            tier1_weight=config.TIER1_WEIGHT,
            tier2_weight=config.TIER2_WEIGHT,
            tier2_fallback_score=config.TIER2_FALLBACK_SCORE,
            tier2_gate=config.TIER2_GATE,
            validity_threshold=config.VALIDITY_THRESHOLD,
            tier2_max_precedents=config.TIER2_MAX_PRECEDENTS,
        )

    @staticmethod
    def court_weight(level: CourtLevel) -> float:
        return COURT_LEVEL_WEIGHTS[level]


DEFAULT_POLICY = RankingPolicy()
