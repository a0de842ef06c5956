"""
Analysis pipeline for uploaded contracts.
"""

from contract_intel.pipeline.orchestrator import (
    AnalysisOrchestrator,
    AnalysisOutcome,
    overall_confidence,
)

__all__ = [
    "AnalysisOrchestrator",
    "AnalysisOutcome",
    "overall_confidence",
]
