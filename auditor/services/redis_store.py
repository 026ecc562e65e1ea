"""
Redis-backed snapshot store.

Each file record is kept as JSON in a hash under ``auditor:file:{file_name}``;
the set ``auditor:files`` tracks which files have records. Includes
connection pooling and retry logic for transient failures.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import List, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from auditor.models.record import FileRecord
from auditor.services.snapshot_store import SnapshotStore
from auditor.utils.logging import get_logger

logger = get_logger(__name__)


class StorageConnectionError(Exception):
    """Raised when Redis stays unreachable after retries."""
    pass


class RedisSnapshotStore(SnapshotStore):
    """Stores file records in Redis."""

    RECORD_KEY = "auditor:file:{file_name}"
    FILES_KEY = "auditor:files"

    def __init__(
        self,
        redis_url: str,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        connection_timeout: int = 5,
    ):
        """
        Initialize the store.

        Args:
            redis_url: Redis connection URL
            max_retries: Maximum attempts for transient errors
            retry_delay: Base delay between retries (exponential backoff)
            connection_timeout: Socket timeout in seconds
        """
        self._redis_url = redis_url
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._connection_timeout = connection_timeout

    async def initialize(self) -> None:
        """
        Create the connection pool and check that Redis answers.

        Raises:
            StorageConnectionError: If Redis cannot be reached
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._redis_url,
                max_connections=10,
                decode_responses=True,
                socket_timeout=self._connection_timeout,
                socket_connect_timeout=self._connection_timeout,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
            logger.info("Redis snapshot store connected")
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise StorageConnectionError(f"Failed to connect to Redis: {e}") from e

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        logger.info("Redis snapshot store closed")

    @asynccontextmanager
    async def _get_client(self):
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call initialize() first.")
        yield self._client

    async def _retry_operation(self, operation, *args, **kwargs):
        """
        Run a Redis operation, retrying transient failures with backoff.

        Raises:
            StorageConnectionError: If every attempt failed
            RedisError: For non-transient failures, without retrying
        """
        last_error = None

        for attempt in range(self._max_retries):
            try:
                return await operation(*args, **kwargs)
            except (ConnectionError, TimeoutError) as e:
                last_error = e
                if attempt < self._max_retries - 1:
                    delay = self._retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Redis operation failed (attempt {attempt + 1}/{self._max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Redis operation failed after {self._max_retries} attempts: {e}")

        raise StorageConnectionError(
            f"Redis operation failed after {self._max_retries} retries: {last_error}"
        )

    def _record_key(self, file_name: str) -> str:
        return self.RECORD_KEY.format(file_name=file_name)

    async def load_record(self, file_name: str) -> Optional[FileRecord]:
        async def _load():
            async with self._get_client() as client:
                data = await client.hget(self._record_key(file_name), "data")
                if not data:
                    return None
                return FileRecord.model_validate_json(data)

        return await self._retry_operation(_load)

    async def save_record(self, record: FileRecord) -> None:
        async def _save():
            async with self._get_client() as client:
                async with client.pipeline(transaction=True) as pipe:
                    pipe.hset(self._record_key(record.file_name), "data", record.model_dump_json())
                    pipe.sadd(self.FILES_KEY, record.file_name)
                    await pipe.execute()

        await self._retry_operation(_save)
        logger.debug("Saved file record", extra={"file_name": record.file_name})

    async def list_records(self) -> List[FileRecord]:
        async def _list():
            async with self._get_client() as client:
                file_names = sorted(await client.smembers(self.FILES_KEY))
                records = []
                for file_name in file_names:
                    data = await client.hget(self._record_key(file_name), "data")
                    if data:
                        records.append(FileRecord.model_validate_json(data))
                return records

        return await self._retry_operation(_list)
