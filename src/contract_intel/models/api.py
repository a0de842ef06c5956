"""
API and service-level response models.
"""

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_contracts: int = 0
    analyzed_contracts: int = 0
    high_risk_contracts: int = 0
    avg_compliance_score: float = 0.0
    upcoming_deadlines: int = 0


class DeleteResult(BaseModel):
    contract_id: str
    deleted: bool = True
    file_deleted: bool = True
    file_error: str | None = Field(
        default=None,
        description="Reason the backing file could not be removed, if any",
    )


class NotificationResult(BaseModel):
    ok: bool
    skipped: bool = False
    message_id: str | None = None
    error: str | None = None
