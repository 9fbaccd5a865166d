# storefront/repos/storage.py
from typing import Protocol

import redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.storage_entry import StorageEntryModel
from storefront.domain.errors import StorageReadError, StorageWriteError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CART_STORAGE_BACKEND, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(Protocol):
    """
    Durable local storage: string keys, string values.
    No atomicity across keys.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStorage:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> str | None:
        try:
            entry = self.db.get(StorageEntryModel, key)
        except SQLAlchemyError as e:
            raise StorageReadError(f"Cannot read '{key}': {e}") from e
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        try:
            self.db.merge(StorageEntryModel(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageWriteError(f"Cannot write '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            entry = self.db.get(StorageEntryModel, key)
            if entry:
                self.db.delete(entry)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageWriteError(f"Cannot remove '{key}': {e}") from e


class RedisKeyValueStorage:
    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    def get(self, key: str) -> str | None:
        try:
            return self._get(key)
        except RedisError as e:
            raise StorageReadError(f"Cannot read '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self._set(key, value)
        except RedisError as e:
            raise StorageWriteError(f"Cannot write '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            self._delete(key)
        except RedisError as e:
            raise StorageWriteError(f"Cannot remove '{key}': {e}") from e

    @redis_retry()
    def _get(self, key: str) -> str | None:
        return self.redis.get(key)

    @redis_retry()
    def _set(self, key: str, value: str) -> None:
        #no TTL, the cart lives until cleared
        self.redis.set(name=key, value=value)

    @redis_retry()
    def _delete(self, key: str) -> None:
        self.redis.delete(key)


def get_storage(db: Session | None = None, backend: str | None = None) -> KeyValueStorage:
    backend = (backend or CART_STORAGE_BACKEND).lower()

    if backend == "redis":
        return RedisKeyValueStorage()

    if backend == "sql":
        if db is None:
            raise ValueError("SQL storage backend needs a database session")
        return SqlKeyValueStorage(db)

    raise ValueError(f"Unknown storage backend: {backend}")
