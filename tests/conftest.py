"""
Pytest configuration and shared fixtures.
Run from project root: python -m pytest tests/ -v
"""

import os
import sys
from pathlib import Path

# Set env vars before any app imports (ensures deterministic test behavior)
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["CORPUS_BACKEND"] = "memory"
os.environ["RANKING_POLICY_VERSION"] = "v1"
os.environ["COLLABORATOR_RETRIES"] = "2"
os.environ["COLLABORATOR_RETRY_DELAY"] = "0.001"
os.environ["CORPUS_CACHE_TTL"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["FEEDBACK_RATE_LIMIT"] = "10"
os.environ["FEEDBACK_RATE_WINDOW"] = "60"

# Ensure project root is on path when running tests
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
