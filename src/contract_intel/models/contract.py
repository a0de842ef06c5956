"""
Contract models for representing uploaded legal documents and their analysis.
"""

import math
import re
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class ContractStatus(str, Enum):
    """Processing status for a contract."""

    PENDING = "pending"
    PROCESSING = "processing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MarketPosition(str, Enum):
    FAVORABLE = "favorable"
    AVERAGE = "average"
    UNFAVORABLE = "unfavorable"


class FileType(str, Enum):
    PDF = "pdf"
    TEXT = "text"


class _Item(BaseModel):
    """Base for list items that arrive as camelCase JSON from the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Extracted Intelligence
# =============================================================================


class Party(_Item):
    name: str
    role: str | None = None


class KeyDate(_Item):
    date_type: str = Field(default="other", alias="dateType")
    date: datetime | None = None
    description: str | None = None

    @field_validator("date_type", mode="before")
    @classmethod
    def default_date_type(cls, v: Any) -> Any:
        return v or "other"

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime | None:
        """Accept YYYY-MM-DD or ISO timestamps; anything else becomes None."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            parsed = v
        elif isinstance(v, date):
            parsed = datetime.combine(v, time.min)
        elif isinstance(v, str):
            text = v.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


_AMOUNT_RE = re.compile(r"^(?:\d+|\d{1,3}(?:,\d{3})+)(?:\.\d+)?$")


class FinancialTerm(_Item):
    kind: str | None = Field(default=None, alias="type")
    amount: float | None = None
    currency: str | None = None
    description: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> float | None:
        """Only well-formed, non-negative numbers are stored."""
        if v is None:
            return None
        if isinstance(v, bool):
            raise ValueError("amount must be a number")

        if isinstance(v, (int, float)):
            number = float(v)
        elif isinstance(v, str) and _AMOUNT_RE.match(v.strip()):
            number = float(v.strip().replace(",", ""))
        else:
            raise ValueError(f"malformed amount: {v!r}")

        if not math.isfinite(number) or number < 0:
            raise ValueError(f"amount out of range: {v!r}")
        return number


class Clause(_Item):
    clause_type: str = Field(default="other", alias="clauseType")
    content: str | None = None
    importance: str | None = None

    @field_validator("clause_type", mode="before")
    @classmethod
    def default_clause_type(cls, v: Any) -> Any:
        return v or "other"


# =============================================================================
# Risk & Compliance
# =============================================================================


class Risk(_Item):
    category: str | None = None
    severity: str | None = None
    description: str
    recommendation: str | None = None


class ComplianceIssue(_Item):
    standard: str | None = None
    issue: str
    severity: str | None = None


# =============================================================================
# Recommendations
# =============================================================================


class PricingAnalysis(_Item):
    market_position: MarketPosition = Field(alias="marketPosition")
    recommendations: list[str] = Field(default_factory=list)
    comparable_terms: list[str] = Field(default_factory=list, alias="comparableTerms")


class SimilarContract(_Item):
    contract_id: str = Field(alias="contractId")
    similarity: float = Field(ge=0.0, le=1.0)
    matched_features: list[str] = Field(default_factory=list, alias="matchedFeatures")


class Deadline(BaseModel):
    """A key date falling inside the alert window, flattened for dashboards."""

    contract_id: str
    contract_title: str
    date_type: str
    date: datetime
    description: str | None = None


# =============================================================================
# Contract Record
# =============================================================================

LIST_FIELDS = (
    "parties",
    "key_dates",
    "financial_terms",
    "clauses",
    "risks",
    "compliance_issues",
    "similar_contracts",
    "analysis_warnings",
)


class ContractRecord(BaseModel):
    """
    Persisted per-document analysis state.

    The orchestrator is the only writer while a run is in progress.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid4().hex)

    # Source
    title: str
    file_name: str
    file_path: str
    file_type: FileType
    raw_text: str = ""

    status: ContractStatus = ContractStatus.PENDING

    # Extracted intelligence
    parties: list[Party] = Field(default_factory=list)
    key_dates: list[KeyDate] = Field(default_factory=list)
    financial_terms: list[FinancialTerm] = Field(default_factory=list)
    clauses: list[Clause] = Field(default_factory=list)

    # Risk assessment
    risk_level: RiskLevel | None = None
    risks: list[Risk] = Field(default_factory=list)

    # Compliance
    compliance_score: int | None = Field(default=None, ge=0, le=100)
    compliance_issues: list[ComplianceIssue] = Field(default_factory=list)

    # Recommendations
    pricing_analysis: PricingAnalysis | None = None
    similar_contracts: list[SimilarContract] = Field(default_factory=list)

    # AI processing metadata
    ai_analysis_date: datetime | None = None
    ai_confidence_score: float | None = Field(default=None, ge=0.0, le=1.0)
    ai_processing_time: timedelta | None = None
    analysis_warnings: list[str] = Field(default_factory=list)

    # Error tracking
    last_error: str | None = None
    error_count: int = Field(default=0, ge=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def has_text(self) -> bool:
        return bool(self.raw_text and self.raw_text.strip())

    def upcoming_deadlines(
        self,
        now: datetime | None = None,
        window_days: int = 30,
    ) -> list[KeyDate]:
        """Key dates within [now, now + window_days], both ends inclusive."""
        now = now or utcnow()
        horizon = now + timedelta(days=window_days)
        return [
            kd for kd in self.key_dates
            if kd.date is not None and now <= kd.date <= horizon
        ]
