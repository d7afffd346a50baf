"""Query cache and the synchronizer that keeps it consistent with writes."""

from transactions_client.cache.query_cache import QueryCache, Snapshot
from transactions_client.cache.synchronizer import (
    LIST_KEY,
    TransactionStore,
    counterparty_key,
    detail_key,
)

__all__ = [
    "LIST_KEY",
    "QueryCache",
    "Snapshot",
    "TransactionStore",
    "counterparty_key",
    "detail_key",
]
