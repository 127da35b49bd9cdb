"""
Unit tests for config cross-field validation.

Verifies that validate_config_dependencies() catches misconfiguration
before it causes silent runtime failures.
"""

import os
from contextlib import ExitStack
from unittest.mock import patch

import pytest

import src.config.settings as settings_mod
from src.services.guidance.policy import RankingPolicy


def _run_validation(env: dict | None = None, **overrides):
    """Run validate_config_dependencies with config attribute overrides (restored afterwards)."""
    with ExitStack() as stack:
        if env is not None:
            stack.enter_context(patch.dict(os.environ, env, clear=False))
        for attr, value in overrides.items():
            stack.enter_context(patch.object(settings_mod.config, attr, value))
        return settings_mod.validate_config_dependencies()


class TestDefaults:
    def test_no_errors_with_valid_defaults(self):
        errors = _run_validation()
        assert errors == [], f"Expected no errors, got: {errors}"

    def test_policy_from_config_matches_documented_defaults(self):
        policy = RankingPolicy.from_config()
        assert policy == RankingPolicy()


class TestWeights:
    def test_rank_weight_out_of_range(self):
        errors = _run_validation(RANK_WEIGHT_COURT=1.5)
        assert any("RANK_WEIGHT_COURT" in e for e in errors)

    def test_rank_weights_must_sum_to_one(self):
        errors = _run_validation(RANK_WEIGHT_OVERLAP=0.6)
        assert any("sum to 1.0" in e for e in errors)

    def test_tier_weights_must_sum_to_one(self):
        errors = _run_validation(TIER1_WEIGHT=0.7)
        assert any("TIER1_WEIGHT + TIER2_WEIGHT" in e for e in errors)

    @pytest.mark.parametrize("name", ["TIER2_FALLBACK_SCORE", "TIER2_GATE", "VALIDITY_THRESHOLD"])
    def test_thresholds_must_be_unit_interval(self, name):
        errors = _run_validation(**{name: -0.1})
        assert any(name in e for e in errors)


class TestNumericRanges:
    def test_timeouts_must_be_positive(self):
        errors = _run_validation(CORPUS_QUERY_TIMEOUT=0)
        assert any("CORPUS_QUERY_TIMEOUT" in e for e in errors)

    def test_top_n_at_least_one(self):
        errors = _run_validation(PRECEDENT_TOP_N=0)
        assert any("PRECEDENT_TOP_N" in e for e in errors)

    def test_rate_limit_at_least_one(self):
        errors = _run_validation(FEEDBACK_RATE_LIMIT=0)
        assert any("FEEDBACK_RATE_LIMIT" in e for e in errors)

    def test_negative_cache_ttl_rejected(self):
        errors = _run_validation(CORPUS_CACHE_TTL=-1)
        assert any("CORPUS_CACHE_TTL" in e for e in errors)
        assert not any("CORPUS_CACHE_TTL" in e for e in _run_validation(CORPUS_CACHE_TTL=0))

    def test_empty_policy_version_rejected(self):
        errors = _run_validation(RANKING_POLICY_VERSION="  ")
        assert any("RANKING_POLICY_VERSION" in e for e in errors)


class TestBackends:
    def test_unknown_backend_rejected(self):
        errors = _run_validation(STORAGE_BACKEND="redis")
        assert any("STORAGE_BACKEND" in e for e in errors)

    def test_supabase_backend_requires_credentials(self):
        errors = _run_validation(env={"SUPABASE_URL": "", "SUPABASE_KEY": ""}, CORPUS_BACKEND="supabase")
        assert any("SUPABASE_URL" in e and "SUPABASE_KEY" in e for e in errors)

    def test_memory_backends_do_not_require_credentials(self):
        errors = _run_validation(env={"SUPABASE_URL": "", "SUPABASE_KEY": ""})
        assert errors == []


class TestValidateEnvForApp:
    def test_raises_system_exit_listing_errors(self):
        with patch.object(settings_mod.config, "PRECEDENT_TOP_N", 0):
            with pytest.raises(SystemExit, match="PRECEDENT_TOP_N"):
                settings_mod.validate_env_for_app()
