"""Transaction record and editable draft."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from transactions_client.utils.time import parse_instant, to_wire_instant

FIELD_NAMES: tuple[str, ...] = (
    "amount",
    "business_category",
    "counterparty_name",
    "transaction_date",
)

MAX_TEXT_LENGTH = 255

TransactionId = int | str


class Transaction(BaseModel):
    """A transaction as exchanged with the remote service.

    ``id`` is assigned by the service and is ``None`` for records that were
    never persisted. Wire names differ from attribute names: ``businessName``
    carries the business category and ``name`` the counterparty.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: TransactionId | None = None
    amount: int = Field(ge=0)
    business_category: str = Field(alias="businessName")
    counterparty_name: str = Field(alias="name")
    # The service omits the date on some responses.
    transaction_date: datetime | None = Field(default=None, alias="transactionDate")

    @field_validator("transaction_date", mode="before")
    @classmethod
    def _aware_instant(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, (str, datetime)):
            return parse_instant(value)
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "Transaction":
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, object]:
        """Request body for create/update; identity travels in the URL."""
        body: dict[str, object] = {
            "amount": self.amount,
            "businessName": self.business_category,
            "name": self.counterparty_name,
        }
        if self.transaction_date is not None:
            body["transactionDate"] = to_wire_instant(self.transaction_date)
        return body


@dataclass(frozen=True)
class Draft:
    """In-progress form data. Any field may be absent or invalid."""

    amount: object = None
    business_category: object = None
    counterparty_name: object = None
    transaction_date: object = None

    @classmethod
    def from_transaction(cls, record: Transaction) -> "Draft":
        return cls(
            amount=record.amount,
            business_category=record.business_category,
            counterparty_name=record.counterparty_name,
            transaction_date=record.transaction_date,
        )

    def with_value(self, field: str, value: object) -> "Draft":
        if field not in FIELD_NAMES:
            raise KeyError(f"Unknown draft field: {field}")
        return replace(self, **{field: value})

    def is_blank(self) -> bool:
        return all(getattr(self, name) in (None, "") for name in FIELD_NAMES)
