"""
Business logic services for contract-intel.
"""

from contract_intel.services.llm_service import CompletionCapability, LLMService
from contract_intel.services.analysis_service import AnalysisService
from contract_intel.services.contract_service import ContractService
from contract_intel.services.notification_service import EmailNotifier
from contract_intel.services.similarity_service import find_similar
from contract_intel.services.text_extractor import TextExtractor, detect_file_type

__all__ = [
    "CompletionCapability",
    "LLMService",
    "AnalysisService",
    "ContractService",
    "EmailNotifier",
    "find_similar",
    "TextExtractor",
    "detect_file_type",
]
