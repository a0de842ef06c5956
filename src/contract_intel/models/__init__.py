"""
Pydantic models for contract-intel.

This module contains all data models used throughout the application:
- Contract record and its extracted intelligence
- Stage output schemas and stage results
- API / service response models
"""

from contract_intel.models.contract import (
    Clause,
    ComplianceIssue,
    ContractRecord,
    ContractStatus,
    Deadline,
    FileType,
    FinancialTerm,
    KeyDate,
    MarketPosition,
    Party,
    PricingAnalysis,
    Risk,
    RiskLevel,
    SimilarContract,
    utcnow,
)
from contract_intel.models.analysis import (
    ComplianceResult,
    IntelligenceExtraction,
    PricingResult,
    RiskAssessmentResult,
    StageErrorKind,
    StageResult,
)
from contract_intel.models.api import (
    DashboardStats,
    DeleteResult,
    NotificationResult,
)

__all__ = [
    # Contract models
    "Clause",
    "ComplianceIssue",
    "ContractRecord",
    "ContractStatus",
    "Deadline",
    "FileType",
    "FinancialTerm",
    "KeyDate",
    "MarketPosition",
    "Party",
    "PricingAnalysis",
    "Risk",
    "RiskLevel",
    "SimilarContract",
    "utcnow",
    # Stage models
    "ComplianceResult",
    "IntelligenceExtraction",
    "PricingResult",
    "RiskAssessmentResult",
    "StageErrorKind",
    "StageResult",
    # API models
    "DashboardStats",
    "DeleteResult",
    "NotificationResult",
]
