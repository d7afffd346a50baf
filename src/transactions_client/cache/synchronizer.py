"""Keeps cached transaction queries consistent with accepted mutations."""

from __future__ import annotations

import logging
from typing import Protocol

from transactions_client.cache.query_cache import QueryCache, QueryKey, Snapshot
from transactions_client.domain.models import Transaction, TransactionId

logger = logging.getLogger(__name__)

ROOT_KEY: QueryKey = ("transactions",)
LIST_KEY: QueryKey = (*ROOT_KEY, "list")
DETAIL_PREFIX: QueryKey = (*ROOT_KEY, "detail")
COUNTERPARTY_PREFIX: QueryKey = (*ROOT_KEY, "tenpista")


def detail_key(transaction_id: TransactionId) -> QueryKey:
    return (*DETAIL_PREFIX, str(transaction_id))


def counterparty_key(name: str) -> QueryKey:
    return (*COUNTERPARTY_PREFIX, name)


class TransactionSource(Protocol):
    async def list(self) -> list[Transaction]: ...

    async def get_by_id(self, transaction_id: TransactionId) -> Transaction: ...

    async def get_by_counterparty(self, name: str) -> list[Transaction]: ...

    async def create(self, record: Transaction) -> Transaction: ...

    async def update(self, transaction_id: TransactionId, record: Transaction) -> Transaction: ...

    async def delete(self, transaction_id: TransactionId) -> None: ...


class TransactionStore:
    """Cached reads and cache-invalidating writes over a gateway.

    Gateway failures propagate unchanged and leave the cache untouched. An
    accepted write invalidates the full list, the affected detail entry and
    the per-counterparty lists, so the next read of any of them refetches.
    """

    def __init__(self, gateway: TransactionSource, cache: QueryCache) -> None:
        self._gateway = gateway
        self._cache = cache

    @property
    def cache(self) -> QueryCache:
        return self._cache

    async def list_transactions(self, *, urgent: bool = True) -> list[Transaction]:
        return await self._cache.fetch(LIST_KEY, self._gateway.list, urgent=urgent)

    async def get_transaction(
        self, transaction_id: TransactionId, *, urgent: bool = True
    ) -> Transaction:
        async def fetch() -> Transaction:
            return await self._gateway.get_by_id(transaction_id)

        return await self._cache.fetch(detail_key(transaction_id), fetch, urgent=urgent)

    async def transactions_for_counterparty(
        self, name: str, *, urgent: bool = True
    ) -> list[Transaction]:
        async def fetch() -> list[Transaction]:
            return await self._gateway.get_by_counterparty(name)

        return await self._cache.fetch(counterparty_key(name), fetch, urgent=urgent)

    def list_snapshot(self) -> Snapshot[list[Transaction]] | None:
        return self._cache.peek(LIST_KEY)

    def is_list_stale(self) -> bool:
        return self._cache.is_stale(LIST_KEY)

    async def create_transaction(self, record: Transaction) -> Transaction:
        created = await self._gateway.create(record)
        self._invalidate_after_write(None)
        return created

    async def update_transaction(
        self, transaction_id: TransactionId, record: Transaction
    ) -> Transaction:
        updated = await self._gateway.update(transaction_id, record)
        self._invalidate_after_write(transaction_id)
        return updated

    async def delete_transaction(self, transaction_id: TransactionId) -> None:
        await self._gateway.delete(transaction_id)
        self._invalidate_after_write(transaction_id)

    def _invalidate_after_write(self, transaction_id: TransactionId | None) -> None:
        self._cache.invalidate(LIST_KEY)
        # A write can move a record between counterparties; drop them all.
        self._cache.invalidate(COUNTERPARTY_PREFIX)
        if transaction_id is not None:
            self._cache.invalidate(detail_key(transaction_id))
        logger.debug("Cache invalidated after write (id=%s)", transaction_id)
