"""
Storage for completed comparisons

InMemoryResultStore keeps results for the process lifetime. RedisResultStore is a
durable drop-in behind the same create/get/list contract.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio import Redis

from ...core.config import settings
from ...schemas.classification import AggregateComparisonResult


logger = logging.getLogger(__name__)


def _newest_first(results: List[AggregateComparisonResult]) -> List[AggregateComparisonResult]:
    return sorted(results, key=lambda result: result.created_at, reverse=True)


class ResultStore(ABC):
    """Create/get/list contract shared by every comparison store"""

    @abstractmethod
    async def create(self, result: AggregateComparisonResult) -> AggregateComparisonResult:
        ...

    @abstractmethod
    async def get(self, result_id: str) -> Optional[AggregateComparisonResult]:
        ...

    @abstractmethod
    async def list(self) -> List[AggregateComparisonResult]:
        """All stored comparisons, newest first"""
        ...


class InMemoryResultStore(ResultStore):
    """Process-lifetime keyed collection, cleared on restart"""

    def __init__(self):
        self._results: Dict[str, AggregateComparisonResult] = {}
        self._lock = asyncio.Lock()

    async def create(self, result: AggregateComparisonResult) -> AggregateComparisonResult:
        async with self._lock:
            if result.id in self._results:
                raise ValueError(f"Comparison {result.id} already exists")
            self._results[result.id] = result
        return result

    async def get(self, result_id: str) -> Optional[AggregateComparisonResult]:
        return self._results.get(result_id)

    async def list(self) -> List[AggregateComparisonResult]:
        # Reversed insertion order keeps equal timestamps newest first
        return _newest_first(list(reversed(self._results.values())))

    async def clear(self) -> None:
        async with self._lock:
            self._results.clear()

    def __len__(self) -> int:
        return len(self._results)


class RedisResultStore(ResultStore):
    """Redis-backed store: one JSON document per comparison plus a timestamp-ordered index"""

    KEY_PREFIX = "dutysnap:comparison"
    INDEX_KEY = "dutysnap:comparisons"

    def __init__(self, redis_client: Optional[Redis] = None, redis_url: Optional[str] = None):
        self._redis = redis_client
        self._redis_url = redis_url or settings.REDIS_URL

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=3,
            )
            logger.info("Redis result store connected")
        return self._redis

    def _key(self, result_id: str) -> str:
        return f"{self.KEY_PREFIX}:{result_id}"

    async def create(self, result: AggregateComparisonResult) -> AggregateComparisonResult:
        client = await self._get_redis()
        key = self._key(result.id)
        created = await client.set(key, result.model_dump_json(), nx=True)
        if not created:
            raise ValueError(f"Comparison {result.id} already exists")
        try:
            await client.zadd(self.INDEX_KEY, {result.id: result.created_at.timestamp()})
        except Exception as e:
            # An unindexed document would be invisible to list()
            logger.error(f"Failed to index comparison {result.id}, removing document: {e}")
            await client.delete(key)
            raise
        return result

    async def get(self, result_id: str) -> Optional[AggregateComparisonResult]:
        client = await self._get_redis()
        cached_data = await client.get(self._key(result_id))
        if not cached_data:
            return None
        return AggregateComparisonResult.model_validate_json(cached_data)

    async def list(self) -> List[AggregateComparisonResult]:
        client = await self._get_redis()
        result_ids = await client.zrevrange(self.INDEX_KEY, 0, -1)
        if not result_ids:
            return []

        documents = await client.mget([self._key(result_id) for result_id in result_ids])
        results = [
            AggregateComparisonResult.model_validate_json(document)
            for document in documents
            if document
        ]
        return _newest_first(results)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def create_result_store(backend: Optional[str] = None) -> ResultStore:
    """Build the store selected by RESULT_STORE_BACKEND"""
    backend = backend or settings.RESULT_STORE_BACKEND
    if backend == "redis":
        logger.info(f"Using Redis result store at {settings.REDIS_URL}")
        return RedisResultStore()
    return InMemoryResultStore()
