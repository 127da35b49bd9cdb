"""
Configuration settings for the Guidance Validation & Precedent Retrieval Engine
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Use find_dotenv() to locate .env regardless of the current working directory.
# Falls back to an explicit path relative to this file (project root) if not found.
_dotenv_path = find_dotenv(usecwd=True) or str(Path(__file__).resolve().parent.parent.parent / ".env")
load_dotenv(_dotenv_path)


def _env_bool(name: str, default: str) -> bool:
    return (os.getenv(name, default)).strip().lower() in ("true", "1", "yes")


# ============================================
# Environment-based Configuration
# ============================================


class Config:
    """
    Centralized configuration loaded from environment variables.
    Edit .env file to change these values.
    """

    # Ranking policy (precedent relevance). Any change here is a ranking-policy
    # update: bump RANKING_POLICY_VERSION so results stay reproducible per version.
    RANKING_POLICY_VERSION: str = os.getenv("RANKING_POLICY_VERSION", "v1")
    RANK_WEIGHT_OVERLAP: float = float(os.getenv("RANK_WEIGHT_OVERLAP", "0.5"))
    RANK_WEIGHT_COURT: float = float(os.getenv("RANK_WEIGHT_COURT", "0.2"))
    RANK_WEIGHT_RECENCY: float = float(os.getenv("RANK_WEIGHT_RECENCY", "0.2"))
    RANK_WEIGHT_FEEDBACK: float = float(os.getenv("RANK_WEIGHT_FEEDBACK", "0.1"))
    # exp(-years / RECENCY_DECAY_YEARS)
    RECENCY_DECAY_YEARS: float = float(os.getenv("RECENCY_DECAY_YEARS", "10"))
    # helpful / (helpful + unhelpful + FEEDBACK_SMOOTHING)
    FEEDBACK_SMOOTHING: float = float(os.getenv("FEEDBACK_SMOOTHING", "5"))
    PRECEDENT_TOP_N: int = int(os.getenv("PRECEDENT_TOP_N", "10"))

    # Confidence aggregation
    TIER1_WEIGHT: float = float(os.getenv("TIER1_WEIGHT", "0.6"))
    TIER2_WEIGHT: float = float(os.getenv("TIER2_WEIGHT", "0.4"))
    # Score used for an absent or inconclusive Tier-2 (neither pass nor fail).
    TIER2_FALLBACK_SCORE: float = float(os.getenv("TIER2_FALLBACK_SCORE", "0.4"))
    # Tier-2 only runs when Tier-1 reaches this score.
    TIER2_GATE: float = float(os.getenv("TIER2_GATE", "0.5"))
    VALIDITY_THRESHOLD: float = float(os.getenv("VALIDITY_THRESHOLD", "0.6"))
    TIER2_MAX_PRECEDENTS: int = int(os.getenv("TIER2_MAX_PRECEDENTS", "5"))

    # Collaborator timeouts (seconds) and retry budget
    RULE_LOOKUP_TIMEOUT: float = float(os.getenv("RULE_LOOKUP_TIMEOUT", "2.0"))
    CHARGE_REGISTRY_TIMEOUT: float = float(os.getenv("CHARGE_REGISTRY_TIMEOUT", "2.0"))
    CORPUS_QUERY_TIMEOUT: float = float(os.getenv("CORPUS_QUERY_TIMEOUT", "5.0"))
    FEEDBACK_WEIGHTS_TIMEOUT: float = float(os.getenv("FEEDBACK_WEIGHTS_TIMEOUT", "1.0"))
    COLLABORATOR_RETRIES: int = int(os.getenv("COLLABORATOR_RETRIES", "2"))
    COLLABORATOR_RETRY_DELAY: float = float(os.getenv("COLLABORATOR_RETRY_DELAY", "0.1"))
    # Seconds corpus candidates stay cached per (jurisdiction, categories); 0 disables
    CORPUS_CACHE_TTL: float = float(os.getenv("CORPUS_CACHE_TTL", "300"))

    # Feedback abuse control: max submissions per session per window
    FEEDBACK_RATE_LIMIT: int = int(os.getenv("FEEDBACK_RATE_LIMIT", "10"))
    FEEDBACK_RATE_WINDOW: int = int(os.getenv("FEEDBACK_RATE_WINDOW", "60"))
    RATE_LIMIT_ENABLED: bool = _env_bool("RATE_LIMIT_ENABLED", "true")

    # Backends: "memory" (seeded, single process) or "supabase"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
    CORPUS_BACKEND: str = os.getenv("CORPUS_BACKEND", "memory").strip().lower()

    # API server
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))


# Singleton instance
config = Config()

KNOWN_BACKENDS = ("memory", "supabase")


def validate_config_dependencies() -> list[str]:
    """
    Cross-field configuration checks.
    Returns a list of human-readable errors (empty when the configuration is consistent).
    """
    errors: list[str] = []

    unit_interval = (
        "RANK_WEIGHT_OVERLAP",
        "RANK_WEIGHT_COURT",
        "RANK_WEIGHT_RECENCY",
        "RANK_WEIGHT_FEEDBACK",
        "TIER1_WEIGHT",
        "TIER2_WEIGHT",
        "TIER2_FALLBACK_SCORE",
        "TIER2_GATE",
        "VALIDITY_THRESHOLD",
    )
    for name in unit_interval:
        value = getattr(config, name)
        if not 0.0 <= value <= 1.0:
            errors.append(f"{name} must be between 0 and 1 (got {value})")

    rank_sum = (
        config.RANK_WEIGHT_OVERLAP + config.RANK_WEIGHT_COURT + config.RANK_WEIGHT_RECENCY + config.RANK_WEIGHT_FEEDBACK
    )
    if abs(rank_sum - 1.0) > 1e-6:
        errors.append(f"RANK_WEIGHT_* must sum to 1.0 (got {rank_sum:.4f})")

    tier_sum = config.TIER1_WEIGHT + config.TIER2_WEIGHT
    if abs(tier_sum - 1.0) > 1e-6:
        errors.append(f"TIER1_WEIGHT + TIER2_WEIGHT must sum to 1.0 (got {tier_sum:.4f})")

    for name in ("RULE_LOOKUP_TIMEOUT", "CHARGE_REGISTRY_TIMEOUT", "CORPUS_QUERY_TIMEOUT", "FEEDBACK_WEIGHTS_TIMEOUT"):
        if getattr(config, name) <= 0:
            errors.append(f"{name} must be positive")

    for name in ("PRECEDENT_TOP_N", "TIER2_MAX_PRECEDENTS", "FEEDBACK_RATE_LIMIT", "FEEDBACK_RATE_WINDOW"):
        if getattr(config, name) < 1:
            errors.append(f"{name} must be at least 1")

    if config.RECENCY_DECAY_YEARS <= 0:
        errors.append("RECENCY_DECAY_YEARS must be positive")
    if config.FEEDBACK_SMOOTHING < 0:
        errors.append("FEEDBACK_SMOOTHING must not be negative")
    if config.COLLABORATOR_RETRIES < 0:
        errors.append("COLLABORATOR_RETRIES must not be negative")
    if config.CORPUS_CACHE_TTL < 0:
        errors.append("CORPUS_CACHE_TTL must not be negative")
    if not config.RANKING_POLICY_VERSION.strip():
        errors.append("RANKING_POLICY_VERSION must not be empty")

    for name in ("STORAGE_BACKEND", "CORPUS_BACKEND"):
        backend = getattr(config, name)
        if backend not in KNOWN_BACKENDS:
            errors.append(f"{name} must be one of {', '.join(KNOWN_BACKENDS)} (got '{backend}')")

    if "supabase" in (config.STORAGE_BACKEND, config.CORPUS_BACKEND):
        missing = [k for k in ("SUPABASE_URL", "SUPABASE_KEY") if not os.getenv(k, "").strip()]
        if missing:
            errors.append(f"Supabase backend selected but {', '.join(missing)} not set")

    return errors


def validate_env_for_app() -> None:
    """
    Validate configuration for the API server. Call at startup.
    Raises SystemExit with clear message if anything is inconsistent.
    """
    errors = validate_config_dependencies()
    if errors:
        raise SystemExit("Invalid configuration:\n  - " + "\n  - ".join(errors))


# ============================================
# API Configuration (static values)
# ============================================

APP_TITLE = "Guidance Validation & Precedent Retrieval API"
APP_VERSION = "1.0.0"
