"""
Supabase-backed case-law corpus (precedent_cases table).

Candidates are filtered server-side by exact jurisdiction and by array
overlap between the row's charge_categories and the case's categories.
"""

import asyncio
import os
from datetime import date

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import AsyncClient, create_async_client

from src.config.logging_config import setup_logger
from src.services.guidance.errors import CollaboratorUnavailable
from src.services.guidance.models import CourtLevel, PrecedentCase

logger = setup_logger(__name__)

_SUPREME_MARKERS = ("supreme", "scotus")
_APPELLATE_MARKERS = ("appellate", "circuit", "court of appeal", "appeals")
_TRIAL_MARKERS = ("district", "superior", "county", "municipal")


def determine_court_level(court_name: str | None) -> CourtLevel:
    """Infer the court level from its name when the corpus does not provide one."""
    lower = (court_name or "").lower()
    if any(marker in lower for marker in _SUPREME_MARKERS):
        return CourtLevel.SUPREME
    if any(marker in lower for marker in _APPELLATE_MARKERS):
        return CourtLevel.APPELLATE
    if any(marker in lower for marker in _TRIAL_MARKERS):
        return CourtLevel.TRIAL
    return CourtLevel.UNKNOWN


def _parse_date(value) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def precedent_from_row(row: dict) -> PrecedentCase:
    court = row.get("court") or "Unknown Court"
    level = row.get("court_level")
    try:
        court_level = CourtLevel(level) if level else determine_court_level(court)
    except ValueError:
        court_level = determine_court_level(court)

    return PrecedentCase(
        id=str(row["id"]),
        case_name=row.get("case_name") or "",
        citation=row.get("citation") or "",
        court=court,
        court_level=court_level,
        jurisdiction=(row.get("jurisdiction") or "").upper(),
        date_filed=_parse_date(row.get("date_filed")),
        charge_categories=frozenset(c.lower() for c in row.get("charge_categories") or []),
        holding_classification=(row.get("holding_classification") or "").lower() or None,
        excerpt=row.get("excerpt"),
        url=row.get("url"),
    )


class SupabaseCaseLawCorpus:
    TABLE = "precedent_cases"

    def __init__(self, url: str | None = None, key: str | None = None):
        self.url = url or os.getenv("SUPABASE_URL")
        self.key = key or os.getenv("SUPABASE_KEY")

        if not self.url or not self.key:
            raise ValueError("Supabase URL and KEY required")

        self.client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        """Lazy load async client."""
        async with self._client_lock:
            if self.client is None:
                self.client = await create_async_client(self.url, self.key)
        return self.client

    async def find_candidates(self, jurisdiction: str, categories: frozenset[str]) -> list[PrecedentCase]:
        if not categories:
            return []
        client = await self._get_client()
        try:
            response = await (
                client.table(self.TABLE)
                .select("*")
                .eq("jurisdiction", jurisdiction)
                .ov("charge_categories", sorted(categories))
                .execute()
            )
        except (PostgrestAPIError, OSError) as e:
            logger.error("Case-law corpus query error (%s): %s", jurisdiction, e)
            raise CollaboratorUnavailable(["case_law_corpus"], detail=str(e)) from e

        precedents: list[PrecedentCase] = []
        for row in response.data or []:
            try:
                precedents.append(precedent_from_row(row))
            except KeyError:
                logger.warning("Skipping precedent row without id: %s", row.get("case_name"))
        return precedents
