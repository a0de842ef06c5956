"""
FastAPI application for contract-intel.
"""

from contract_intel.api.main import create_app

__all__ = ["create_app"]
