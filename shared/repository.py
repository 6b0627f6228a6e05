"""
repository.py – entity stores behind the refresh core
=====================================================

Two interchangeable implementations of one small interface:

InMemoryRepository  → ordered dict, used by tests and local runs
RedisRepository     → one Redis HASH per entity kind
                       field = entity key, value = JSON (`to_dict()`)

Entities are keyed by `key_fn(entity)`; saving an entity whose key is
already present replaces it (upsert).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

import redis

from .errors import PersistenceFailed
from .logging import get_logger
from .models import Page

T = TypeVar("T")
Predicate = Callable[[T], bool]

log = get_logger("shared.repository")


def _default_key(entity: Any) -> str:
    return entity.key


class Repository(ABC, Generic[T]):
    def __init__(self, key_fn: Callable[[T], str] = _default_key) -> None:
        self.key_fn = key_fn

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Entity stored under `key`, or None."""

    @abstractmethod
    def find_all(self, predicate: Optional[Predicate] = None) -> List[T]:
        """Every stored entity (matching `predicate` when given)."""

    @abstractmethod
    def save_all(self, entities: Iterable[T]) -> List[T]:
        """Upsert all entities in one write."""

    @abstractmethod
    def delete_where(self, predicate: Predicate) -> int:
        """Remove matching entities, return how many went."""

    def save(self, entity: T) -> T:
        self.save_all([entity])
        return entity

    def find_page(self, page: int, size: int,
                  predicate: Optional[Predicate] = None) -> Page:
        if page < 0 or size < 1:
            raise ValueError("page must be >= 0 and size >= 1")
        rows = self.find_all(predicate)
        start = page * size
        return Page(content=rows[start:start + size], page=page,
                    size=size, total=len(rows))


class InMemoryRepository(Repository[T]):
    def __init__(self, entities: Iterable[T] = (),
                 key_fn: Callable[[T], str] = _default_key) -> None:
        super().__init__(key_fn)
        self._rows: Dict[str, T] = {}
        self.save_all(entities)

    def get(self, key: str) -> Optional[T]:
        return self._rows.get(key)

    def find_all(self, predicate: Optional[Predicate] = None) -> List[T]:
        return [e for e in self._rows.values() if predicate is None or predicate(e)]

    def save_all(self, entities: Iterable[T]) -> List[T]:
        batch = list(entities)
        for e in batch:
            self._rows[self.key_fn(e)] = e
        return batch

    def delete_where(self, predicate: Predicate) -> int:
        doomed = [k for k, e in self._rows.items() if predicate(e)]
        for k in doomed:
            del self._rows[k]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._rows)


class RedisRepository(Repository[T]):
    """
    Entities live in HASH `hash_key`. Reads decode through `decode`
    (normally the entity's `from_dict`); writes go through `to_dict()`.
    Any `redis.RedisError` surfaces as `PersistenceFailed`.
    """

    def __init__(self, client: Any, hash_key: str,
                 decode: Callable[[Dict[str, Any]], T],
                 key_fn: Callable[[T], str] = _default_key) -> None:
        super().__init__(key_fn)
        self._rds = client
        self.hash_key = hash_key
        self._decode = decode

    def _load(self, raw: str) -> T:
        return self._decode(json.loads(raw))

    def get(self, key: str) -> Optional[T]:
        try:
            raw = self._rds.hget(self.hash_key, key)
        except redis.RedisError as exc:
            raise PersistenceFailed(f"read {self.hash_key}[{key}] – {exc}") from exc
        return self._load(raw) if raw else None

    def find_all(self, predicate: Optional[Predicate] = None) -> List[T]:
        try:
            rows = self._rds.hgetall(self.hash_key) or {}
        except redis.RedisError as exc:
            raise PersistenceFailed(f"read {self.hash_key} – {exc}") from exc
        out: List[T] = []
        for field, raw in sorted(rows.items()):
            try:
                entity = self._load(raw)
            except (ValueError, KeyError, TypeError) as exc:
                log.error("skipping corrupt row %s[%s] – %s", self.hash_key, field, exc)
                continue
            if predicate is None or predicate(entity):
                out.append(entity)
        return out

    def save_all(self, entities: Iterable[T]) -> List[T]:
        batch = list(entities)
        if not batch:
            return batch
        mapping = {self.key_fn(e): json.dumps(e.to_dict()) for e in batch}
        try:
            self._rds.hset(self.hash_key, mapping=mapping)
        except redis.RedisError as exc:
            raise PersistenceFailed(f"write {self.hash_key} – {exc}") from exc
        return batch

    def delete_where(self, predicate: Predicate) -> int:
        doomed = [self.key_fn(e) for e in self.find_all(predicate)]
        if not doomed:
            return 0
        try:
            self._rds.hdel(self.hash_key, *doomed)
        except redis.RedisError as exc:
            raise PersistenceFailed(f"delete from {self.hash_key} – {exc}") from exc
        return len(doomed)
