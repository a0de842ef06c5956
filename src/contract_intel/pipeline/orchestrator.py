"""
Analysis Orchestrator

Runs one contract through the analysis stages in a fixed order, merges
partial results into the stored record and finalizes it.
"""

import asyncio
from datetime import datetime
from typing import Any, Protocol

import structlog

from contract_intel.config import Settings
from contract_intel.exceptions import EmptyContentError, NotFoundError
from contract_intel.models.analysis import IntelligenceExtraction, StageResult
from contract_intel.models.api import NotificationResult
from contract_intel.models.contract import (
    ContractRecord,
    ContractStatus,
    KeyDate,
    PricingAnalysis,
    utcnow,
)
from contract_intel.services.analysis_service import (
    AnalysisService,
    fallback_compliance,
    fallback_risk,
)
from contract_intel.services.similarity_service import find_similar
from contract_intel.storage.base import ContractFilter, ContractStore

logger = structlog.get_logger(__name__)

INTELLIGENCE_FIELDS = ("parties", "key_dates", "financial_terms", "clauses")


class Notifier(Protocol):
    async def notify(
        self, record: ContractRecord, deadlines: list[KeyDate]
    ) -> NotificationResult: ...


class AnalysisOutcome:
    """Result of one analysis run."""

    def __init__(
        self,
        contract_id: str,
        ok: bool,
        record: ContractRecord | None = None,
        error: str | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.contract_id = contract_id
        self.ok = ok
        self.record = record
        self.error = error
        self.started_at = started_at
        self.completed_at = completed_at

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


def overall_confidence(*results: StageResult) -> float:
    """Mean of the non-zero stage confidences; 0 when every stage reported 0."""
    scores = [r.confidence for r in results if r.confidence > 0]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


class AnalysisOrchestrator:
    """
    Sequences the analysis of a single contract.

    Steps:
    1. Intelligence extraction (fatal only when the AI capability is missing or down)
    2. Risk assessment
    3. Compliance check
    4. Pricing analysis, when financial terms were found
    5. Lexical similarity against other stored contracts
    6. Finalize and schedule the deadline alert

    Each phase writes through the store by id, so every write starts from a
    fresh read of the record.
    """

    def __init__(
        self,
        settings: Settings,
        store: ContractStore,
        analysis: AnalysisService,
        notifier: Notifier | None = None,
    ):
        self.settings = settings
        self.store = store
        self.analysis = analysis
        self.notifier = notifier
        self._notifications: set[asyncio.Task] = set()

    async def analyze(self, contract_id: str) -> AnalysisOutcome:
        """
        Analyze a stored contract.

        Raises NotFoundError for unknown ids and EmptyContentError when the
        record has no text. Every other failure is recorded on the contract
        and returned as an unsuccessful outcome.
        """
        record = await self.store.get(contract_id)
        if record is None:
            raise NotFoundError(contract_id)
        if not record.has_text:
            raise EmptyContentError("Contract has no text content")

        started_at = utcnow()
        record = await self.store.update(contract_id, {"status": ContractStatus.PROCESSING})
        logger.info("analysis_started", contract_id=contract_id, title=record.title)

        try:
            return await self._run(record, started_at)
        except Exception as e:
            logger.exception("analysis_failed", contract_id=contract_id, error=str(e))
            return await self._fail(contract_id, str(e) or type(e).__name__, started_at)

    async def _run(self, record: ContractRecord, started_at: datetime) -> AnalysisOutcome:
        contract_id = record.id
        text = record.raw_text
        warnings: list[str] = []

        # Step 1: Intelligence
        intel = await self.analysis.extract_intelligence(text, record.title)
        if intel.capability_failed:
            return await self._fail(contract_id, intel.error, started_at)
        if not intel.ok:
            warnings.append(f"intelligence: {intel.error}")

        intelligence: IntelligenceExtraction = intel.value
        merged = {
            field: getattr(intelligence, field)
            for field in INTELLIGENCE_FIELDS
            if getattr(intelligence, field)
        }
        if merged:
            record = await self.store.update(contract_id, merged)

        # Step 2: Risk
        risk = await self.analysis.assess_risks(text, intelligence)
        if risk.ok:
            record = await self.store.update(
                contract_id,
                {"risk_level": risk.data.risk_level, "risks": risk.data.risks},
            )
        else:
            warnings.append(f"risk: {risk.error}")

        # Step 3: Compliance
        compliance = await self.analysis.check_compliance(text, intelligence)
        if compliance.ok:
            patch: dict[str, Any] = {"compliance_issues": compliance.data.issues}
            if compliance.data.compliance_score is not None:
                patch["compliance_score"] = compliance.data.compliance_score
            record = await self.store.update(contract_id, patch)
        else:
            warnings.append(f"compliance: {compliance.error}")

        # Step 4: Pricing
        if record.financial_terms:
            pricing = await self.analysis.analyze_pricing(text, record.financial_terms)
            if pricing.ok:
                record = await self.store.update(
                    contract_id,
                    {
                        "pricing_analysis": PricingAnalysis(
                            market_position=pricing.data.market_position,
                            recommendations=pricing.data.recommendations,
                            comparable_terms=pricing.data.comparable_terms,
                        )
                    },
                )
            else:
                warnings.append(f"pricing: {pricing.error}")

        # Step 5: Similarity
        others = await self.store.find(
            ContractFilter(has_text=True, exclude_id=contract_id),
            limit=self.settings.similarity_candidate_limit,
        )
        similar = find_similar(
            text,
            [(other.id, other.raw_text) for other in others],
            limit=self.settings.similarity_top_k,
            threshold=self.settings.similarity_threshold,
        )

        # Finalize
        completed_at = utcnow()
        final: dict[str, Any] = {
            "similar_contracts": similar,
            "ai_confidence_score": overall_confidence(intel, risk, compliance),
            "ai_analysis_date": completed_at,
            "ai_processing_time": completed_at - started_at,
            "analysis_warnings": warnings,
            "status": ContractStatus.ANALYZED,
            "last_error": None,
            "error_count": 0,
        }
        # An analyzed record always carries a risk level and a compliance score
        if record.risk_level is None:
            final["risk_level"] = fallback_risk().risk_level
        if record.compliance_score is None:
            final["compliance_score"] = fallback_compliance().compliance_score
        record = await self.store.update(contract_id, final)

        logger.info(
            "analysis_completed",
            contract_id=contract_id,
            risk_level=record.risk_level.value,
            compliance_score=record.compliance_score,
            confidence=round(record.ai_confidence_score, 3),
            similar=len(similar),
            warnings=len(warnings),
            duration_seconds=round(record.ai_processing_time.total_seconds(), 2),
        )

        deadlines = record.upcoming_deadlines(completed_at, self.settings.deadline_window_days)
        if deadlines:
            self._schedule_notification(record, deadlines)

        return AnalysisOutcome(
            contract_id, ok=True, record=record,
            started_at=started_at, completed_at=completed_at,
        )

    async def _fail(
        self, contract_id: str, message: str, started_at: datetime
    ) -> AnalysisOutcome:
        """Mark the freshly fetched record as failed."""
        current = await self.store.get(contract_id)
        if current is None:
            logger.error("analysis_failed_record_missing", contract_id=contract_id)
            return AnalysisOutcome(
                contract_id, ok=False, error=message,
                started_at=started_at, completed_at=utcnow(),
            )

        record = await self.store.update(
            contract_id,
            {
                "status": ContractStatus.FAILED,
                "last_error": message,
                "error_count": current.error_count + 1,
            },
        )
        logger.warning(
            "analysis_marked_failed",
            contract_id=contract_id,
            error=message,
            error_count=record.error_count,
        )
        return AnalysisOutcome(
            contract_id, ok=False, record=record, error=message,
            started_at=started_at, completed_at=utcnow(),
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    def _schedule_notification(self, record: ContractRecord, deadlines: list[KeyDate]) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self.notifier.notify(record, deadlines))
        self._notifications.add(task)
        task.add_done_callback(self._notification_done)
        logger.info("deadline_alert_scheduled", contract_id=record.id, deadlines=len(deadlines))

    def _notification_done(self, task: asyncio.Task) -> None:
        self._notifications.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("deadline_alert_failed", error=str(error))
            return
        result = task.result()
        if not result.ok:
            logger.warning("deadline_alert_failed", error=result.error)

    async def wait_for_notifications(self) -> None:
        """Let pending deadline alerts finish, e.g. before a CLI process exits."""
        if self._notifications:
            await asyncio.gather(*self._notifications, return_exceptions=True)
