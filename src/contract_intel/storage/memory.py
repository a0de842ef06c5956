"""In-memory contract store, the default backend for development and tests."""

from typing import Any

import structlog

from contract_intel.exceptions import NotFoundError, ValidationError
from contract_intel.models.contract import ContractRecord
from contract_intel.storage.base import (
    ALL,
    NEWEST_FIRST,
    ContractFilter,
    Sort,
    apply_patch,
    average_of,
    sort_records,
)

logger = structlog.get_logger(__name__)


class InMemoryContractStore:
    """Dict-backed store. Records are copied in and out so callers never share state."""

    def __init__(self):
        self._records: dict[str, ContractRecord] = {}

    async def create(self, record: ContractRecord) -> ContractRecord:
        if record.id in self._records:
            raise ValidationError(f"Contract already exists: {record.id}")
        self._records[record.id] = record.model_copy(deep=True)
        logger.info("contract_created", contract_id=record.id)
        return record.model_copy(deep=True)

    async def get(self, contract_id: str) -> ContractRecord | None:
        record = self._records.get(contract_id)
        return record.model_copy(deep=True) if record else None

    async def update(self, contract_id: str, patch: dict[str, Any]) -> ContractRecord:
        current = self._records.get(contract_id)
        if current is None:
            raise NotFoundError(contract_id)
        updated = apply_patch(current, patch)
        self._records[contract_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, contract_id: str) -> bool:
        return self._records.pop(contract_id, None) is not None

    async def find(
        self,
        where: ContractFilter = ALL,
        sort: Sort = NEWEST_FIRST,
        limit: int | None = None,
    ) -> list[ContractRecord]:
        matched = [r for r in self._records.values() if where.matches(r)]
        ordered = sort_records(matched, sort)
        if limit is not None:
            ordered = ordered[:limit]
        return [r.model_copy(deep=True) for r in ordered]

    async def count(self, where: ContractFilter = ALL) -> int:
        return sum(1 for r in self._records.values() if where.matches(r))

    async def average(self, field: str, where: ContractFilter = ALL) -> float | None:
        return average_of(
            [r for r in self._records.values() if where.matches(r)], field
        )
