"""
Unit tests for the Supabase case-law corpus: court level inference, row
mapping and query construction (mocked client, no network).
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from postgrest.exceptions import APIError as PostgrestAPIError

from src.services.guidance.errors import CollaboratorUnavailable
from src.services.guidance.models import CourtLevel
from src.services.retrieval.corpus import SupabaseCaseLawCorpus, determine_court_level, precedent_from_row


@pytest.mark.parametrize(
    "court, level",
    [
        ("Supreme Court of California", CourtLevel.SUPREME),
        ("SCOTUS", CourtLevel.SUPREME),
        ("Court of Appeals for the Ninth Circuit", CourtLevel.APPELLATE),
        ("California Court of Appeal, Second District", CourtLevel.APPELLATE),
        ("Superior Court of Los Angeles County", CourtLevel.TRIAL),
        ("U.S. District Court for the Northern District of Texas", CourtLevel.TRIAL),
        ("Board of Immigration Review", CourtLevel.UNKNOWN),
        ("", CourtLevel.UNKNOWN),
    ],
)
def test_determine_court_level(court, level):
    assert determine_court_level(court) == level


class TestPrecedentFromRow:
    def test_full_row(self):
        precedent = precedent_from_row(
            {
                "id": 42,
                "case_name": "People v. Row",
                "citation": "1 Cal. 1",
                "court": "California Court of Appeal",
                "court_level": "supreme",
                "jurisdiction": "ca",
                "date_filed": "2019-06-03T00:00:00",
                "charge_categories": ["Theft", "dui"],
                "holding_classification": "Felony",
                "url": "https://example.org/case/42",
            }
        )
        assert precedent.id == "42"
        assert precedent.court_level == CourtLevel.SUPREME
        assert precedent.jurisdiction == "CA"
        assert precedent.date_filed == date(2019, 6, 3)
        assert precedent.charge_categories == frozenset({"theft", "dui"})
        assert precedent.holding_classification == "felony"

    def test_missing_level_inferred_from_court(self):
        precedent = precedent_from_row({"id": "x", "court": "Superior Court of Orange County", "court_level": None})
        assert precedent.court_level == CourtLevel.TRIAL
        assert precedent.date_filed is None
        assert precedent.charge_categories == frozenset()

    def test_bad_level_and_date_tolerated(self):
        precedent = precedent_from_row({"id": "x", "court": "", "court_level": "tribunal", "date_filed": "n/a"})
        assert precedent.court_level == CourtLevel.UNKNOWN
        assert precedent.date_filed is None


class TestSupabaseCaseLawCorpus:
    def _corpus(self, query) -> SupabaseCaseLawCorpus:
        client = MagicMock()
        client.table.return_value = query
        corpus = SupabaseCaseLawCorpus(url="http://localhost:54321", key="test-key")
        corpus.client = client
        return corpus

    def _query(self, data=None, error=None):
        query = MagicMock()
        for name in ("select", "eq", "ov"):
            getattr(query, name).return_value = query
        query.execute = AsyncMock(return_value=MagicMock(data=data), side_effect=error)
        return query

    def test_filters_by_jurisdiction_and_overlap(self):
        query = self._query([{"id": "a", "jurisdiction": "CA", "charge_categories": ["theft"]}, {"case_name": "no id"}])
        results = asyncio.run(self._corpus(query).find_candidates("CA", frozenset({"theft", "dui"})))
        query.eq.assert_called_with("jurisdiction", "CA")
        query.ov.assert_called_with("charge_categories", ["dui", "theft"])
        assert [p.id for p in results] == ["a"]

    def test_no_categories_skips_query(self):
        query = self._query([])
        assert asyncio.run(self._corpus(query).find_candidates("CA", frozenset())) == []
        query.execute.assert_not_called()

    def test_api_error_is_unavailable(self):
        error = PostgrestAPIError({"code": "57014", "message": "statement timeout", "hint": None, "details": None})
        query = self._query(error=error)
        with pytest.raises(CollaboratorUnavailable):
            asyncio.run(self._corpus(query).find_candidates("CA", frozenset({"theft"})))
