"""
Case Context Normalizer

Canonicalizes raw case facts into a typed, immutable CaseContext. Any malformed
or unknown value is a hard stop (InvalidCaseContext); no partial context is
ever returned.
"""

import asyncio
import re

from src.config.logging_config import setup_logger
from src.config.settings import config
from src.services.guidance.errors import (
    CollaboratorTimeout,
    CollaboratorUnavailable,
    InvalidCaseContext,
    UnknownJurisdiction,
)
from src.services.guidance.models import CaseContext, CaseStage, ChargeDefinition, CustodyStatus
from src.services.protocols import ChargeRegistry, RuleTable
from src.services.reference.seed_data import STATE_NAME_TO_CODE
from src.utils.retry import call_collaborator

logger = setup_logger(__name__)

_CHARGE_CODE_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_JURISDICTION_CODE_RE = re.compile(r"^[A-Z]{2}$")

FEDERAL_JURISDICTION = "US"

# Alternate spellings accepted for case stages
_STAGE_ALIASES: dict[str, CaseStage] = {
    "pretrial": CaseStage.PRE_TRIAL,
    "pre-trial": CaseStage.PRE_TRIAL,
    "bail_hearing": CaseStage.BAIL,
}


def canonical_jurisdiction(raw: object) -> str:
    """Map "ca", "California" or "federal" to the 2-letter code; raise on malformed input."""
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidCaseContext("jurisdiction", "is required")
    value = " ".join(raw.split()).upper()
    value = STATE_NAME_TO_CODE.get(value, value)
    if not _JURISDICTION_CODE_RE.match(value):
        raise InvalidCaseContext("jurisdiction", f"'{raw}' is not a 2-letter jurisdiction code")
    return value


def canonical_case_stage(raw: object) -> CaseStage:
    if isinstance(raw, CaseStage):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidCaseContext("caseStage", "is required")
    value = raw.strip().lower().replace(" ", "_")
    if value in _STAGE_ALIASES:
        return _STAGE_ALIASES[value]
    try:
        return CaseStage(value)
    except ValueError:
        allowed = ", ".join(s.value for s in CaseStage)
        raise InvalidCaseContext("caseStage", f"'{raw}' is not one of: {allowed}") from None


def canonical_custody_status(raw: object) -> CustodyStatus:
    if isinstance(raw, CustodyStatus):
        return raw
    if raw is None:
        return CustodyStatus.UNKNOWN
    if not isinstance(raw, str):
        raise InvalidCaseContext("custodyStatus", "must be a string")
    value = raw.strip().lower().replace(" ", "_").replace("-", "_")
    if not value:
        return CustodyStatus.UNKNOWN
    try:
        return CustodyStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in CustodyStatus)
        raise InvalidCaseContext("custodyStatus", f"'{raw}' is not one of: {allowed}") from None


def canonical_charge_codes(raw: object) -> list[str]:
    if isinstance(raw, str) or not isinstance(raw, (list, tuple, set, frozenset)):
        raise InvalidCaseContext("chargeCodes", "must be a list of charge codes")
    codes: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise InvalidCaseContext("chargeCodes", "charge codes must be strings")
        code = item.strip().lower()
        if not _CHARGE_CODE_RE.match(code):
            raise InvalidCaseContext("chargeCodes", f"'{item}' is not a valid charge code")
        if code not in codes:
            codes.append(code)
    if not codes:
        raise InvalidCaseContext("chargeCodes", "at least one charge code is required")
    return sorted(codes)


class CaseContextNormalizer:
    """Validate raw case facts against the known jurisdictions and the charge registry."""

    def __init__(
        self,
        rule_table: RuleTable,
        charge_registry: ChargeRegistry,
        registry_timeout: float | None = None,
    ):
        self.rule_table = rule_table
        self.charge_registry = charge_registry
        self.registry_timeout = registry_timeout or config.CHARGE_REGISTRY_TIMEOUT

    async def normalize(
        self,
        jurisdiction: object,
        charge_codes: object,
        case_stage: object,
        custody_status: object = None,
        has_attorney: object = False,
    ) -> CaseContext:
        code = canonical_jurisdiction(jurisdiction)
        stage = canonical_case_stage(case_stage)
        custody = canonical_custody_status(custody_status)
        if not isinstance(has_attorney, bool):
            raise InvalidCaseContext("hasAttorney", "must be true or false")
        codes = canonical_charge_codes(charge_codes)

        try:
            known = await call_collaborator(
                self.rule_table.known_jurisdictions, "rule_table", self.registry_timeout
            )
        except (CollaboratorTimeout, CollaboratorUnavailable) as exc:
            logger.warning("Known-jurisdiction lookup failed: %s", exc)
            raise CollaboratorUnavailable(["rule_table"], detail="jurisdiction list unavailable") from exc
        if code not in known:
            raise UnknownJurisdiction(code)

        charges = await self._resolve_charges(codes)
        for charge in charges:
            if charge.jurisdiction not in (code, FEDERAL_JURISDICTION):
                raise InvalidCaseContext(
                    "chargeCodes",
                    f"charge '{charge.code}' belongs to {charge.jurisdiction}, not {code}",
                )

        return CaseContext(
            jurisdiction=code,
            charge_codes=frozenset(codes),
            case_stage=stage,
            custody_status=custody,
            has_attorney=has_attorney,
            charges=tuple(charges),
        )

    async def _resolve_charges(self, codes: list[str]) -> list[ChargeDefinition]:
        async def _lookup(code: str):
            return await call_collaborator(
                lambda: self.charge_registry.get_charge(code), "charge_registry", self.registry_timeout
            )

        try:
            found = await asyncio.gather(*(_lookup(code) for code in codes))
        except (CollaboratorTimeout, CollaboratorUnavailable) as exc:
            # Without categories nothing downstream can run
            logger.warning("Charge registry unavailable during normalization: %s", exc)
            raise CollaboratorUnavailable(["charge_registry"], detail=str(exc)) from exc

        charges: list[ChargeDefinition] = []
        for code, charge in zip(codes, found):
            if charge is None:
                raise InvalidCaseContext("chargeCodes", f"unknown charge code '{code}'")
            charges.append(charge)
        return charges
