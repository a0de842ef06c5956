"""Shared helpers: tolerant JSON parsing, logging setup."""

from contract_intel.utils.json_repair import parse_structured, unwrap_nested
from contract_intel.utils.logging_config import configure_logging

__all__ = ["parse_structured", "unwrap_nested", "configure_logging"]
