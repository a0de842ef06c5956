"""
contract-intel: AI analysis pipeline for legal contracts

Uploaded contracts are turned into plain text, run through a fixed sequence
of LLM analysis stages (intelligence extraction, risk, compliance, pricing)
plus a lexical similarity search, and stored as a structured analysis record.
"""

__version__ = "0.1.0"

from contract_intel.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
