"""Application wiring: shared dependencies and the session facade."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable

import httpx

from transactions_client.cache.query_cache import QueryCache
from transactions_client.cache.synchronizer import TransactionStore
from transactions_client.config import Settings, load_settings
from transactions_client.domain.models import Transaction, TransactionId
from transactions_client.form.controller import FormController, SubmitOutcome, SubmitResult
from transactions_client.gateway.client_id import ClientIdStore, LocalStorage
from transactions_client.gateway.errors import GatewayError
from transactions_client.gateway.remote import TransactionGateway
from transactions_client.notifications import Notifier
from transactions_client.utils.time import utc_now
from transactions_client.views.list_view import ListProjection, ListView

logger = logging.getLogger(__name__)

MSG_CREATED = "Transaction created successfully"
MSG_UPDATED = "Transaction updated successfully"
MSG_DELETED = "Transaction deleted successfully"
MSG_CREATE_FAILED = "Could not create the transaction"
MSG_UPDATE_FAILED = "Could not update the transaction"
MSG_DELETE_FAILED = "Could not delete the transaction"
MSG_LOAD_FAILED = "Could not load transactions"


@lru_cache(maxsize=1)
def get_client_id_store() -> ClientIdStore:
    """Process-wide client identifier store, created on first access.

    It lives for the rest of the process; tests build their own
    ``ClientIdStore`` instead of going through this accessor.
    """
    settings = load_settings()
    return ClientIdStore(LocalStorage(settings.storage.client_state_path))


@lru_cache(maxsize=1)
def get_query_cache() -> QueryCache:
    """Process-wide query cache, created on first access."""
    settings = load_settings()
    return QueryCache(settings.cache.stale_seconds, settings.cache.max_entries)


@dataclass
class AppContext:
    """Dependencies shared by every consumer of the transaction data."""

    settings: Settings
    gateway: TransactionGateway
    cache: QueryCache
    store: TransactionStore


def build_context(
    settings: Settings | None = None,
    *,
    client_ids: ClientIdStore | None = None,
    cache: QueryCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppContext:
    settings = settings or load_settings()
    gateway = TransactionGateway(
        settings.api.base_url,
        client_ids or get_client_id_store(),
        timeout_seconds=settings.api.timeout_seconds,
        transport=transport,
    )
    cache = cache or get_query_cache()
    return AppContext(
        settings=settings,
        gateway=gateway,
        cache=cache,
        store=TransactionStore(gateway, cache),
    )


class TransactionsApp:
    """One user session: list, form and notices over a shared store.

    Gateway failures end up as a single error notice; the form keeps its
    draft so nothing typed is lost.
    """

    def __init__(
        self,
        store: TransactionStore,
        *,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.notifier = notifier or Notifier()
        self.list_view = ListView()
        self.form = FormController(store, clock=clock)

    async def refresh(self, *, urgent: bool = True) -> ListProjection:
        try:
            records = await self.store.list_transactions(urgent=urgent)
        except GatewayError as exc:
            self.notifier.error(exc.message or MSG_LOAD_FAILED)
            return self.visible_transactions()
        return self.list_view.render(records)

    def visible_transactions(self) -> ListProjection:
        """Project whatever snapshot is cached, flagged when it is not current."""
        snapshot = self.store.list_snapshot()
        if snapshot is None:
            return self.list_view.render([], stale=True)
        return self.list_view.render(snapshot.data, stale=self.store.is_list_stale())

    def search(self, term: str) -> ListProjection:
        self.list_view.search(term)
        return self.visible_transactions()

    def sort_by(self, field: str) -> ListProjection:
        self.list_view.sort_by(field)
        return self.visible_transactions()

    def start_edit(self, record: Transaction) -> None:
        self.form.load(record)

    def cancel_edit(self) -> None:
        self.form.on_cancel()

    def change_field(self, field: str, value: object) -> None:
        self.form.on_field_change(field, value)

    def blur_field(self, field: str) -> None:
        self.form.on_field_blur(field)

    async def submit(self) -> SubmitResult:
        editing = self.form.is_edit_mode
        result = await self.form.on_submit()
        if result.outcome is SubmitOutcome.CREATED:
            self.notifier.success(MSG_CREATED)
        elif result.outcome is SubmitOutcome.UPDATED:
            self.notifier.success(MSG_UPDATED)
        elif result.outcome is SubmitOutcome.FAILED and result.error is not None:
            fallback = MSG_UPDATE_FAILED if editing else MSG_CREATE_FAILED
            self.notifier.error(result.error.message or fallback)

        if result.succeeded:
            await self.refresh()
        return result

    async def delete(self, transaction_id: TransactionId) -> bool:
        try:
            await self.store.delete_transaction(transaction_id)
        except GatewayError as exc:
            self.notifier.error(exc.message or MSG_DELETE_FAILED)
            return False

        self.notifier.success(MSG_DELETED)
        mode_record = getattr(self.form.mode, "record", None)
        if mode_record is not None and str(mode_record.id) == str(transaction_id):
            self.form.on_cancel()
        await self.refresh()
        return True


def build_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[TransactionsApp, AppContext]:
    context = build_context(settings, transport=transport)
    return TransactionsApp(context.store), context
