"""
Analysis-stage clients: intelligence extraction, risk, compliance, pricing.

Each stage builds its prompt, calls the completion capability, parses the
raw text tolerantly and validates it against the stage schema. Capability,
parse and validation failures never raise out of a stage; they come back as
a failed StageResult carrying a static fallback with confidence 0.
"""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from contract_intel.config import Settings
from contract_intel.exceptions import CapabilityError, CapabilityUnavailableError, ParseError
from contract_intel.models.analysis import (
    ComplianceResult,
    IntelligenceExtraction,
    PricingResult,
    RiskAssessmentResult,
    StageErrorKind,
    StageResult,
    StageSchema,
)
from contract_intel.models.contract import FinancialTerm, MarketPosition, RiskLevel
from contract_intel.services import prompts
from contract_intel.services.llm_service import CompletionCapability
from contract_intel.utils.json_repair import parse_structured

logger = structlog.get_logger(__name__)

UNAVAILABLE_MESSAGE = "AI service unavailable - manual review required"


# =============================================================================
# Fallbacks
# =============================================================================


def fallback_intelligence() -> IntelligenceExtraction:
    return IntelligenceExtraction(confidence=0.0, note=UNAVAILABLE_MESSAGE)


def fallback_risk() -> RiskAssessmentResult:
    return RiskAssessmentResult(
        risk_level=RiskLevel.MEDIUM,
        overall_assessment="AI service unavailable - manual review recommended",
        confidence=0.0,
    )


def fallback_compliance() -> ComplianceResult:
    return ComplianceResult(
        compliance_score=50,
        recommendations=["Manual compliance review recommended"],
        confidence=0.0,
    )


def fallback_pricing() -> PricingResult:
    return PricingResult(
        market_position=MarketPosition.AVERAGE,
        analysis="AI service unavailable",
        recommendations=["Manual pricing review recommended"],
        confidence=0.0,
    )


class AnalysisService:
    """Runs the individual AI analysis stages against a completion capability."""

    def __init__(self, settings: Settings, llm: CompletionCapability):
        self.llm = llm
        self.text_limit = settings.analysis_text_limit
        self.pricing_text_limit = settings.pricing_text_limit
        self.max_tokens = settings.llm_max_tokens
        self.pricing_max_tokens = settings.pricing_max_tokens

    async def _run_stage(
        self,
        stage: str,
        prompt: str,
        schema: type[StageSchema],
        fallback: StageSchema,
        max_tokens: int,
    ) -> StageResult:
        if not self.llm.available:
            logger.info("stage_skipped", stage=stage, reason="ai_unavailable")
            return StageResult.failure(
                stage, UNAVAILABLE_MESSAGE, StageErrorKind.CAPABILITY, fallback
            )

        try:
            raw = await self.llm.complete(prompt, max_tokens)
        except (CapabilityUnavailableError, CapabilityError) as e:
            logger.error("stage_capability_failed", stage=stage, error=str(e))
            return StageResult.failure(stage, str(e), StageErrorKind.CAPABILITY, fallback)

        try:
            parsed = parse_structured(raw)
        except ParseError as e:
            logger.warning("stage_parse_failed", stage=stage, kind=e.kind.value, error=str(e))
            return StageResult.failure(stage, str(e), StageErrorKind.PARSE, fallback)

        try:
            data = schema.model_validate(parsed)
        except PydanticValidationError as e:
            logger.warning("stage_validation_failed", stage=stage, errors=e.error_count())
            return StageResult.failure(
                stage,
                f"Invalid {stage} response: {e.errors()[0]['msg']}",
                StageErrorKind.VALIDATION,
                fallback,
            )

        logger.info("stage_completed", stage=stage, confidence=data.confidence)
        return StageResult.success(stage, data)

    # =========================================================================
    # Stages
    # =========================================================================

    async def extract_intelligence(
        self, contract_text: str, title: str
    ) -> StageResult[IntelligenceExtraction]:
        """Parties, key dates, financial terms and clauses from the full text."""
        return await self._run_stage(
            "intelligence",
            prompts.build_intelligence_prompt(contract_text, title),
            IntelligenceExtraction,
            fallback_intelligence(),
            self.max_tokens,
        )

    async def assess_risks(
        self, contract_text: str, intelligence: IntelligenceExtraction
    ) -> StageResult[RiskAssessmentResult]:
        return await self._run_stage(
            "risk",
            prompts.build_risk_prompt(
                contract_text[: self.text_limit], intelligence.summary()
            ),
            RiskAssessmentResult,
            fallback_risk(),
            self.max_tokens,
        )

    async def check_compliance(
        self, contract_text: str, intelligence: IntelligenceExtraction
    ) -> StageResult[ComplianceResult]:
        return await self._run_stage(
            "compliance",
            prompts.build_compliance_prompt(
                contract_text[: self.text_limit], intelligence.summary()
            ),
            ComplianceResult,
            fallback_compliance(),
            self.max_tokens,
        )

    async def analyze_pricing(
        self, contract_text: str, financial_terms: list[FinancialTerm]
    ) -> StageResult[PricingResult]:
        """Callers skip this stage entirely when there are no financial terms."""
        terms: list[dict[str, Any]] = [
            t.model_dump(mode="json", by_alias=True) for t in financial_terms
        ]
        return await self._run_stage(
            "pricing",
            prompts.build_pricing_prompt(contract_text[: self.pricing_text_limit], terms),
            PricingResult,
            fallback_pricing(),
            self.pricing_max_tokens,
        )
