"""
Contract lifecycle and dashboard aggregation.

Upload, lookup, listing and deletion of contract records, plus the stats the
dashboard shows. Analysis itself lives in the pipeline orchestrator.
"""

import asyncio
from datetime import datetime, timedelta
from pathlib import Path

import structlog

from contract_intel.config import Settings
from contract_intel.exceptions import NotFoundError, ValidationError
from contract_intel.models.api import DashboardStats, DeleteResult
from contract_intel.models.contract import (
    ContractRecord,
    ContractStatus,
    Deadline,
    RiskLevel,
    utcnow,
)
from contract_intel.services.text_extractor import TextExtractor, detect_file_type
from contract_intel.storage.base import ContractFilter, ContractStore, NEWEST_FIRST

logger = structlog.get_logger(__name__)

HIGH_RISK = frozenset({RiskLevel.HIGH, RiskLevel.CRITICAL})
MAX_TITLE_LENGTH = 200


class ContractService:
    """Business logic for contract records outside of analysis runs."""

    def __init__(
        self,
        settings: Settings,
        store: ContractStore,
        extractor: TextExtractor | None = None,
    ):
        self.settings = settings
        self.store = store
        self.extractor = extractor or TextExtractor()

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_contract(
        self,
        file_path: Path | str,
        file_name: str,
        content_type: str | None = None,
        title: str | None = None,
    ) -> ContractRecord:
        """
        Extract text from a stored upload and create a pending record.

        Raises ExtractionFailedError when the file yields no text.
        """
        if title is not None:
            title = title.strip()
            if len(title) > MAX_TITLE_LENGTH:
                raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")

        file_type = detect_file_type(content_type, file_name)
        text = await asyncio.to_thread(self.extractor.extract_text, file_path, file_type)

        record = ContractRecord(
            title=title or file_name,
            file_name=file_name,
            file_path=str(file_path),
            file_type=file_type,
            raw_text=text,
        )
        return await self.store.create(record)

    async def get_contract(self, contract_id: str) -> ContractRecord:
        record = await self.store.get(contract_id)
        if record is None:
            raise NotFoundError(contract_id)
        return record

    async def list_contracts(
        self,
        status: ContractStatus | None = None,
        risk_level: RiskLevel | None = None,
        limit: int = 100,
    ) -> list[ContractRecord]:
        """Newest first, optionally filtered by status and risk level."""
        where = ContractFilter(
            status=status,
            risk_levels=frozenset({risk_level}) if risk_level else None,
        )
        return await self.store.find(where, NEWEST_FIRST, limit)

    async def delete_contract(self, contract_id: str) -> DeleteResult:
        """
        Remove the record and its backing file.

        A file that cannot be removed does not block record deletion; the
        reason is reported in the result.
        """
        record = await self.get_contract(contract_id)

        file_deleted = True
        file_error = None
        try:
            Path(record.file_path).unlink()
        except OSError as e:
            file_deleted = False
            file_error = str(e)
            logger.warning(
                "contract_file_delete_failed",
                contract_id=contract_id,
                file=record.file_path,
                error=file_error,
            )

        await self.store.delete(contract_id)
        logger.info("contract_deleted", contract_id=contract_id, file_deleted=file_deleted)

        return DeleteResult(
            contract_id=contract_id,
            deleted=True,
            file_deleted=file_deleted,
            file_error=file_error,
        )

    # =========================================================================
    # Dashboard
    # =========================================================================

    def _deadline_window(self, now: datetime | None) -> tuple[datetime, datetime]:
        now = now or utcnow()
        return now, now + timedelta(days=self.settings.deadline_window_days)

    async def list_upcoming_deadlines(self, now: datetime | None = None) -> list[Deadline]:
        """Key dates across all contracts inside the alert window, soonest first."""
        start, end = self._deadline_window(now)
        records = await self.store.find(ContractFilter(key_date_from=start, key_date_to=end))

        deadlines = [
            Deadline(
                contract_id=record.id,
                contract_title=record.title,
                date_type=kd.date_type,
                date=kd.date,
                description=kd.description,
            )
            for record in records
            for kd in record.upcoming_deadlines(start, self.settings.deadline_window_days)
        ]
        deadlines.sort(key=lambda d: d.date)
        return deadlines

    async def dashboard_stats(self, now: datetime | None = None) -> DashboardStats:
        total = await self.store.count()
        analyzed = await self.store.count(ContractFilter(status=ContractStatus.ANALYZED))
        high_risk = await self.store.count(ContractFilter(risk_levels=HIGH_RISK))
        avg_score = await self.store.average(
            "compliance_score", ContractFilter(has_compliance_score=True)
        )
        deadlines = await self.list_upcoming_deadlines(now)

        return DashboardStats(
            total_contracts=total,
            analyzed_contracts=analyzed,
            high_risk_contracts=high_risk,
            avg_compliance_score=avg_score or 0.0,
            upcoming_deadlines=len(deadlines),
        )
