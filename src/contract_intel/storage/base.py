"""Storage protocol and query predicates shared by all contract stores."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from contract_intel.exceptions import ValidationError
from contract_intel.models.contract import ContractRecord, ContractStatus, RiskLevel, utcnow


@dataclass(frozen=True)
class ContractFilter:
    """Conjunction of the predicates the core needs. Unset fields match everything."""

    status: ContractStatus | None = None
    risk_levels: frozenset[RiskLevel] | None = None
    has_text: bool | None = None
    exclude_id: str | None = None
    key_date_from: datetime | None = None
    key_date_to: datetime | None = None
    has_compliance_score: bool | None = None

    def matches(self, record: ContractRecord) -> bool:
        if self.status is not None and record.status != self.status:
            return False
        if self.risk_levels is not None and record.risk_level not in self.risk_levels:
            return False
        if self.has_text is not None and record.has_text != self.has_text:
            return False
        if self.exclude_id is not None and record.id == self.exclude_id:
            return False
        if self.has_compliance_score is not None and (
            (record.compliance_score is not None) != self.has_compliance_score
        ):
            return False
        if self.key_date_from is not None or self.key_date_to is not None:
            return any(
                kd.date is not None
                and (self.key_date_from is None or kd.date >= self.key_date_from)
                and (self.key_date_to is None or kd.date <= self.key_date_to)
                for kd in record.key_dates
            )
        return True


ALL = ContractFilter()


@dataclass(frozen=True)
class Sort:
    field: str = "created_at"
    descending: bool = True


NEWEST_FIRST = Sort()


def apply_patch(record: ContractRecord, patch: dict[str, Any]) -> ContractRecord:
    """Validate a partial update against the record schema and stamp updated_at."""
    unknown = set(patch) - set(ContractRecord.model_fields)
    if unknown:
        raise ValidationError(f"Unknown contract fields: {sorted(unknown)}")

    data = record.model_dump()
    data.update(patch)
    data["id"] = record.id
    data["updated_at"] = utcnow()
    try:
        return ContractRecord.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid contract update: {e}") from e


def sort_records(records: list[ContractRecord], sort: Sort) -> list[ContractRecord]:
    """Sort by a record attribute; records missing the value go last."""
    present = [r for r in records if getattr(r, sort.field) is not None]
    missing = [r for r in records if getattr(r, sort.field) is None]
    present.sort(key=lambda r: getattr(r, sort.field), reverse=sort.descending)
    return present + missing


def average_of(records: list[ContractRecord], field: str) -> float | None:
    values = [getattr(r, field) for r in records if getattr(r, field) is not None]
    if not values:
        return None
    return sum(values) / len(values)


class ContractStore(Protocol):
    """Document store for contract records."""

    async def create(self, record: ContractRecord) -> ContractRecord: ...
    async def get(self, contract_id: str) -> ContractRecord | None: ...
    async def update(self, contract_id: str, patch: dict[str, Any]) -> ContractRecord: ...
    async def delete(self, contract_id: str) -> bool: ...
    async def find(
        self,
        where: ContractFilter = ALL,
        sort: Sort = NEWEST_FIRST,
        limit: int | None = None,
    ) -> list[ContractRecord]: ...
    async def count(self, where: ContractFilter = ALL) -> int: ...
    async def average(self, field: str, where: ContractFilter = ALL) -> float | None: ...
