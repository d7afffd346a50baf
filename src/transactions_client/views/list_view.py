"""Filtered, sorted projection of a transaction snapshot.

The projection is recomputed from the full snapshot on every change.
Ascending order keeps records with equal keys in snapshot order (Python's
sort is stable); descending order is the exact reverse of ascending, so
flipping direction always inverts the list.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable

from transactions_client.domain.models import Transaction

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SortField(str, Enum):
    DATE = "date"
    AMOUNT = "amount"
    NAME = "name"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


_SORT_KEYS: dict[str, Callable[[Transaction], object]] = {
    SortField.DATE.value: lambda record: record.transaction_date or _EPOCH,
    SortField.AMOUNT.value: lambda record: record.amount,
    SortField.NAME.value: lambda record: record.counterparty_name.casefold(),
}


@dataclass(frozen=True)
class SortSpec:
    field: str = SortField.DATE.value
    direction: SortDirection = SortDirection.DESC

    def toggle(self, field: str) -> "SortSpec":
        """Flip direction on the active field; a new field starts descending."""
        if field == self.field:
            return replace(self, direction=self.direction.flipped())
        return SortSpec(field=field, direction=SortDirection.DESC)


def matches(record: Transaction, search_term: str) -> bool:
    needle = search_term.casefold()
    return (
        needle in record.counterparty_name.casefold()
        or needle in record.business_category.casefold()
    )


def project(
    records: Iterable[Transaction],
    search_term: str = "",
    sort_field: str = SortField.DATE.value,
    sort_direction: SortDirection | str = SortDirection.DESC,
) -> list[Transaction]:
    filtered = [record for record in records if matches(record, search_term or "")]

    sort_key = _SORT_KEYS.get(str(getattr(sort_field, "value", sort_field)))
    if sort_key is None:
        return filtered

    ordered = sorted(filtered, key=sort_key)
    if SortDirection(sort_direction) is SortDirection.DESC:
        ordered.reverse()
    return ordered


@dataclass(frozen=True)
class ListProjection:
    rows: list[Transaction]
    total: int
    search_term: str
    sort: SortSpec
    stale: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.rows


class ListView:
    """Search and sort state for the transaction list."""

    def __init__(self, search_term: str = "", sort: SortSpec | None = None) -> None:
        self.search_term = search_term
        self.sort = sort or SortSpec()

    def search(self, term: str) -> None:
        self.search_term = term

    def sort_by(self, field: str) -> SortSpec:
        self.sort = self.sort.toggle(field)
        return self.sort

    def render(
        self, records: Iterable[Transaction] | None, *, stale: bool = False
    ) -> ListProjection:
        rows = project(records or (), self.search_term, self.sort.field, self.sort.direction)
        return ListProjection(
            rows=rows,
            total=len(rows),
            search_term=self.search_term,
            sort=self.sort,
            stale=stale,
        )
