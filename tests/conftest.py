from __future__ import annotations

import asyncio
import contextlib
import os
from datetime import datetime, timezone

import pytest

from transactions_client.domain.models import Transaction, TransactionId


def pytest_sessionstart(session: pytest.Session) -> None:
    # Keep configuration independent of any developer .env file.
    os.environ.setdefault("TRANSACTIONS_API_URL", "http://testserver/api")


@pytest.fixture(autouse=True)
def _close_default_event_loop() -> None:
    yield
    policy = asyncio.get_event_loop_policy()
    local = getattr(policy, "_local", None)
    loop = getattr(local, "_loop", None) if local is not None else None
    if loop is not None and not loop.is_running() and not loop.is_closed():
        with contextlib.suppress(Exception):
            loop.close()
    if loop is not None:
        with contextlib.suppress(Exception):
            policy.set_event_loop(None)


def make_record(
    record_id: TransactionId | None = 1,
    *,
    amount: int = 15000,
    category: str = "Farmacia",
    name: str = "Juan Pérez",
    date: datetime | None = None,
) -> Transaction:
    return Transaction(
        id=record_id,
        amount=amount,
        business_category=category,
        counterparty_name=name,
        transaction_date=date or datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
    )


class FakeGateway:
    """In-memory stand-in for ``TransactionGateway`` that counts calls."""

    def __init__(self, records: list[Transaction] | None = None) -> None:
        self.records: dict[str, Transaction] = {str(r.id): r for r in records or []}
        self.calls: list[tuple[str, object]] = []
        self.fail_with: Exception | None = None
        self._next_id = 100

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _check(self, operation: str, arg: object = None) -> None:
        self.calls.append((operation, arg))
        if self.fail_with is not None:
            raise self.fail_with

    async def list(self) -> list[Transaction]:
        self._check("list")
        return list(self.records.values())

    async def get_by_id(self, transaction_id: TransactionId) -> Transaction:
        self._check("get_by_id", transaction_id)
        return self.records[str(transaction_id)]

    async def get_by_counterparty(self, name: str) -> list[Transaction]:
        self._check("get_by_counterparty", name)
        return [r for r in self.records.values() if r.counterparty_name == name]

    async def create(self, record: Transaction) -> Transaction:
        self._check("create", record)
        self._next_id += 1
        created = record.model_copy(update={"id": self._next_id})
        self.records[str(created.id)] = created
        return created

    async def update(self, transaction_id: TransactionId, record: Transaction) -> Transaction:
        self._check("update", transaction_id)
        updated = record.model_copy(update={"id": transaction_id})
        self.records[str(transaction_id)] = updated
        return updated

    async def delete(self, transaction_id: TransactionId) -> None:
        self._check("delete", transaction_id)
        self.records.pop(str(transaction_id), None)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway(
        [
            make_record(1, amount=15000, category="Farmacia Cruz", name="Ana"),
            make_record(2, amount=3000, category="Panadería", name="Luis"),
        ]
    )
