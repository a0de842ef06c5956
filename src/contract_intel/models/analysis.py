"""
Schemas for the output of each analysis stage.

Parsed model output is validated against these right after parsing. Unknown
keys are dropped, list items that fail validation are skipped individually,
and out-of-range scalar values are omitted rather than stored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from contract_intel.models.contract import (
    Clause,
    ComplianceIssue,
    FinancialTerm,
    KeyDate,
    MarketPosition,
    Party,
    RiskLevel,
    Risk,
)

logger = structlog.get_logger(__name__)


def _valid_items(model: type[BaseModel], value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []

    kept = []
    for item in value:
        try:
            kept.append(model.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(
                "stage_item_rejected",
                item_type=model.__name__,
                errors=e.error_count(),
            )
    return kept


def _string_items(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class StageSchema(BaseModel):
    """Common behaviour for stage outputs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def bound_confidence(cls, v: Any) -> float:
        number = _as_number(v)
        if number is None or not 0.0 <= number <= 1.0:
            return 0.0
        return number


class IntelligenceExtraction(StageSchema):
    parties: list[Party] = Field(default_factory=list)
    key_dates: list[KeyDate] = Field(default_factory=list, alias="keyDates")
    financial_terms: list[FinancialTerm] = Field(default_factory=list, alias="financialTerms")
    clauses: list[Clause] = Field(default_factory=list)
    note: str | None = None

    @field_validator("parties", mode="before")
    @classmethod
    def valid_parties(cls, v: Any) -> list[Party]:
        return _valid_items(Party, v)

    @field_validator("key_dates", mode="before")
    @classmethod
    def valid_key_dates(cls, v: Any) -> list[KeyDate]:
        return _valid_items(KeyDate, v)

    @field_validator("financial_terms", mode="before")
    @classmethod
    def valid_financial_terms(cls, v: Any) -> list[FinancialTerm]:
        return _valid_items(FinancialTerm, v)

    @field_validator("clauses", mode="before")
    @classmethod
    def valid_clauses(cls, v: Any) -> list[Clause]:
        return _valid_items(Clause, v)

    def summary(self) -> dict[str, Any]:
        """Compact JSON-able view passed to downstream prompts."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={"parties", "key_dates", "financial_terms", "clauses"},
        )


class RiskAssessmentResult(StageSchema):
    risk_level: RiskLevel = Field(alias="riskLevel")
    risks: list[Risk] = Field(default_factory=list)
    overall_assessment: str | None = Field(default=None, alias="overallAssessment")

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("risks", mode="before")
    @classmethod
    def valid_risks(cls, v: Any) -> list[Risk]:
        return _valid_items(Risk, v)


class ComplianceResult(StageSchema):
    compliance_score: int | None = Field(default=None, alias="complianceScore")
    issues: list[ComplianceIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("compliance_score", mode="before")
    @classmethod
    def bound_score(cls, v: Any) -> int | None:
        number = _as_number(v)
        if number is None or not 0 <= number <= 100:
            return None
        return int(round(number))

    @field_validator("issues", mode="before")
    @classmethod
    def valid_issues(cls, v: Any) -> list[ComplianceIssue]:
        return _valid_items(ComplianceIssue, v)

    @field_validator("recommendations", mode="before")
    @classmethod
    def valid_recommendations(cls, v: Any) -> list[str]:
        return _string_items(v)


class PricingResult(StageSchema):
    market_position: MarketPosition = Field(alias="marketPosition")
    analysis: str | None = None
    recommendations: list[str] = Field(default_factory=list)
    comparable_terms: list[str] = Field(default_factory=list, alias="comparableTerms")

    @field_validator("market_position", mode="before")
    @classmethod
    def normalize_position(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("recommendations", "comparable_terms", mode="before")
    @classmethod
    def valid_strings(cls, v: Any) -> list[str]:
        return _string_items(v)


# =============================================================================
# Stage Results
# =============================================================================


class StageErrorKind(str, Enum):
    CAPABILITY = "capability"
    PARSE = "parse"
    VALIDATION = "validation"


T = TypeVar("T", bound=StageSchema)


@dataclass
class StageResult(Generic[T]):
    """Outcome of one stage: real data, or an error plus a safe fallback."""

    stage: str
    ok: bool
    data: T | None = None
    error: str | None = None
    error_kind: StageErrorKind | None = None
    fallback: T | None = None

    @classmethod
    def success(cls, stage: str, data: T) -> "StageResult[T]":
        return cls(stage=stage, ok=True, data=data)

    @classmethod
    def failure(
        cls,
        stage: str,
        error: str,
        error_kind: StageErrorKind,
        fallback: T,
    ) -> "StageResult[T]":
        return cls(
            stage=stage,
            ok=False,
            error=error,
            error_kind=error_kind,
            fallback=fallback,
        )

    @property
    def value(self) -> T | None:
        """The data on success, the fallback otherwise."""
        return self.data if self.ok else self.fallback

    @property
    def confidence(self) -> float:
        if self.ok and self.data is not None:
            return self.data.confidence
        return 0.0

    @property
    def capability_failed(self) -> bool:
        return not self.ok and self.error_kind == StageErrorKind.CAPABILITY
