"""
Error taxonomy for contract-intel.

Every error carries a human-readable message; the HTTP layer maps them to
status codes and the orchestrator records them on the contract.
"""

from enum import Enum


class ContractIntelError(Exception):
    """Base class for all contract-intel errors."""


class NotFoundError(ContractIntelError):
    """A contract record lookup found nothing."""

    def __init__(self, contract_id: str):
        super().__init__(f"Contract not found: {contract_id}")
        self.contract_id = contract_id


class EmptyContentError(ContractIntelError):
    """The contract has no text to analyze."""


class ExtractionFailedError(ContractIntelError):
    """Text could not be extracted from the uploaded file."""


class ValidationError(ContractIntelError):
    """A field was rejected before reaching storage."""


class CapabilityUnavailableError(ContractIntelError):
    """No LLM provider is configured."""


class CapabilityError(ContractIntelError):
    """The LLM call failed (network, timeout, remote error)."""


class ParseErrorKind(str, Enum):
    NO_STRUCTURE_FOUND = "no_structure_found"
    UNPARSEABLE = "unparseable"


class ParseError(ContractIntelError):
    """Model output could not be turned into a structured record."""

    def __init__(self, kind: ParseErrorKind, underlying: Exception | None = None):
        message = f"Could not parse AI response ({kind.value})"
        if underlying is not None:
            message = f"{message}: {underlying}"
        super().__init__(message)
        self.kind = kind
        self.underlying = underlying
