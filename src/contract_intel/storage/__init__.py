"""
Storage backends for contract records.
"""

from contract_intel.config import Settings
from contract_intel.storage.base import ALL, NEWEST_FIRST, ContractFilter, ContractStore, Sort
from contract_intel.storage.memory import InMemoryContractStore
from contract_intel.storage.redis_store import RedisContractStore


def create_store(settings: Settings) -> ContractStore:
    """Pick the backend from configuration."""
    if settings.redis_enabled:
        return RedisContractStore(settings)
    return InMemoryContractStore()


__all__ = [
    "ALL",
    "NEWEST_FIRST",
    "ContractFilter",
    "ContractStore",
    "Sort",
    "InMemoryContractStore",
    "RedisContractStore",
    "create_store",
]
