"""
Redis-backed contract store.

Each record is a JSON document under {prefix}:contract:{id}; a set at
{prefix}:contracts holds the ids. Queries load the documents and filter
client-side with the same predicates as the in-memory store.
"""

from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from contract_intel.config import Settings
from contract_intel.exceptions import NotFoundError, ValidationError
from contract_intel.models.contract import ContractRecord
from contract_intel.storage.base import (
    ALL,
    NEWEST_FIRST,
    ContractFilter,
    Sort,
    apply_patch,
    average_of,
    sort_records,
)

logger = structlog.get_logger(__name__)


class RedisContractStore:
    """Contract store on top of redis.asyncio."""

    def __init__(self, settings: Settings, client: Redis | None = None):
        self.url = settings.redis_url
        self.prefix = settings.redis_key_prefix
        self._client = client

    @property
    def client(self) -> Redis:
        """Get or create the Redis client."""
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=True)
            logger.info("redis_connected", url=self.url)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisConnectionError as e:
            logger.error("redis_health_check_failed", error=str(e))
            return False

    # =========================================================================
    # Keys & Serialization
    # =========================================================================

    def _key(self, contract_id: str) -> str:
        return f"{self.prefix}:contract:{contract_id}"

    @property
    def _index_key(self) -> str:
        return f"{self.prefix}:contracts"

    @staticmethod
    def _load(raw: str | None) -> ContractRecord | None:
        if raw is None:
            return None
        return ContractRecord.model_validate_json(raw)

    async def _save(self, record: ContractRecord) -> None:
        await self.client.set(self._key(record.id), record.model_dump_json())

    async def _load_all(self) -> list[ContractRecord]:
        ids = await self.client.smembers(self._index_key)
        if not ids:
            return []
        raws = await self.client.mget([self._key(i) for i in sorted(ids)])
        return [r for r in (self._load(raw) for raw in raws) if r is not None]

    # =========================================================================
    # Store Operations
    # =========================================================================

    async def create(self, record: ContractRecord) -> ContractRecord:
        if await self.client.exists(self._key(record.id)):
            raise ValidationError(f"Contract already exists: {record.id}")
        await self._save(record)
        await self.client.sadd(self._index_key, record.id)
        logger.info("contract_created", contract_id=record.id, backend="redis")
        return record

    async def get(self, contract_id: str) -> ContractRecord | None:
        return self._load(await self.client.get(self._key(contract_id)))

    async def update(self, contract_id: str, patch: dict[str, Any]) -> ContractRecord:
        current = await self.get(contract_id)
        if current is None:
            raise NotFoundError(contract_id)
        updated = apply_patch(current, patch)
        await self._save(updated)
        return updated

    async def delete(self, contract_id: str) -> bool:
        removed = await self.client.delete(self._key(contract_id))
        await self.client.srem(self._index_key, contract_id)
        return bool(removed)

    async def find(
        self,
        where: ContractFilter = ALL,
        sort: Sort = NEWEST_FIRST,
        limit: int | None = None,
    ) -> list[ContractRecord]:
        matched = [r for r in await self._load_all() if where.matches(r)]
        ordered = sort_records(matched, sort)
        return ordered[:limit] if limit is not None else ordered

    async def count(self, where: ContractFilter = ALL) -> int:
        if where == ALL:
            return await self.client.scard(self._index_key)
        return sum(1 for r in await self._load_all() if where.matches(r))

    async def average(self, field: str, where: ContractFilter = ALL) -> float | None:
        return average_of([r for r in await self._load_all() if where.matches(r)], field)
