"""
Guidance Validation Engine

Request flow:
    normalize → (Tier-1 ‖ precedent retrieval) → gate → Tier-2 → aggregate

Tier-1 and retrieval have no data dependency and run concurrently; Tier-2
needs retrieval's output and runs after the join.
"""

import asyncio
import dataclasses
import time
from dataclasses import dataclass, field
from datetime import date

from src.config.logging_config import setup_logger
from src.services.guidance.aggregator import aggregate
from src.services.guidance.errors import CollaboratorUnavailable
from src.services.guidance.models import GuidanceStatement, GuidanceValidation, TierResult
from src.services.guidance.normalizer import CaseContextNormalizer
from src.services.guidance.policy import RankingPolicy
from src.services.guidance.precedent_validator import validate_precedents
from src.services.guidance.statute_validator import StatuteValidator
from src.services.protocols import CaseLawCorpus, ChargeRegistry, FeedbackStore, RuleTable
from src.services.retrieval.precedents import PrecedentRanker

logger = setup_logger(__name__)


@dataclass
class ValidationRequest:
    """Raw validation input as received from the API or a JSON file."""

    jurisdiction: str
    charge_codes: list[str]
    case_stage: str
    custody_status: str | None = None
    has_attorney: bool = False
    guidance_statements: list[GuidanceStatement] = field(default_factory=list)


class GuidanceValidationEngine:
    def __init__(
        self,
        rule_table: RuleTable,
        charge_registry: ChargeRegistry,
        corpus: CaseLawCorpus,
        feedback_store: FeedbackStore | None = None,
        policy: RankingPolicy | None = None,
    ):
        self.policy = policy or RankingPolicy.from_config()
        self.normalizer = CaseContextNormalizer(rule_table, charge_registry)
        self.statute_validator = StatuteValidator(rule_table)
        self.ranker = PrecedentRanker(corpus, feedback_store, policy=self.policy)
        self.precedent_validator = validate_precedents

    async def validate(self, request: ValidationRequest, as_of: date | None = None) -> GuidanceValidation:
        """
        Validate guidance statements for a case.

        Raises:
            InvalidCaseContext: malformed or unknown jurisdiction/charge/stage
            CollaboratorUnavailable: nothing partial could be computed
        """
        t0 = time.time()
        context = await self.normalizer.normalize(
            request.jurisdiction,
            request.charge_codes,
            request.case_stage,
            request.custody_status,
            request.has_attorney,
        )
        statements = list(request.guidance_statements)
        logger.info(
            "Validating %s statements (%s, %s, charges=%s)",
            len(statements),
            context.jurisdiction,
            context.case_stage.value,
            sorted(context.charge_codes),
        )

        tier1, retrieval = await asyncio.gather(
            self.statute_validator.validate(context, statements),
            self.ranker.retrieve(context, as_of=as_of),
        )

        if statements and tier1.degraded_checks == tier1.checks_performed and retrieval.unavailable:
            logger.error("Rule table and case-law corpus both unavailable; no partial result")
            raise CollaboratorUnavailable(["rule_table", "case_law_corpus"])

        tier2: TierResult | None = None
        if not tier1.inconclusive and tier1.score >= self.policy.tier2_gate:
            tier2 = self.precedent_validator(context, statements, retrieval.precedents, self.policy)
        else:
            logger.info("Tier-2 skipped: Tier-1 score %.2f below gate %.2f", tier1.score, self.policy.tier2_gate)

        result = aggregate(tier1, tier2, retrieval, self.policy)
        elapsed = time.time() - t0
        result = dataclasses.replace(
            result,
            metadata={
                "jurisdiction": context.jurisdiction,
                "chargeCategories": sorted(context.charge_categories),
                "candidatesConsidered": retrieval.candidates_considered,
                "durationMs": round(elapsed * 1000, 1),
            },
        )
        logger.info(
            "Validation done in %.2fs: confidence=%.4f valid=%s tier1=%.2f tier2=%s precedents=%s",
            elapsed,
            result.confidence_score,
            result.is_valid,
            tier1.score,
            "skipped" if tier2 is None else f"{tier2.score:.2f}",
            len(result.precedents),
        )
        return result
