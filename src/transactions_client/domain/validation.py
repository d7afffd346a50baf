"""Field-level validation of transaction drafts.

Every rule runs independently; a draft is valid only when all four fields
pass. Validation never raises: missing or malformed input is reported as a
field message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

from transactions_client.domain.models import (
    FIELD_NAMES,
    MAX_TEXT_LENGTH,
    Draft,
    Transaction,
    TransactionId,
)
from transactions_client.utils.time import parse_instant, utc_now

AMOUNT_REQUIRED = "Amount is required"
AMOUNT_NEGATIVE = "Amount cannot be negative"
AMOUNT_NOT_INTEGER = "Amount must be a whole number"
CATEGORY_REQUIRED = "Business category is required"
CATEGORY_TOO_LONG = f"Business category cannot exceed {MAX_TEXT_LENGTH} characters"
COUNTERPARTY_REQUIRED = "Counterparty name is required"
COUNTERPARTY_TOO_LONG = f"Counterparty name cannot exceed {MAX_TEXT_LENGTH} characters"
DATE_REQUIRED = "Transaction date is required"
DATE_INVALID = "Transaction date is not a valid date"
DATE_IN_FUTURE = "Transaction date cannot be in the future"


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def _is_absent(value: object) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _coerce_number(value: object) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if value == value else None
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


def coerce_amount(value: object) -> int | None:
    """Integer value of a draft amount, or ``None`` when it is not integral."""
    number = _coerce_number(value)
    if number is None or not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def _amount_error(value: object) -> str:
    if _is_absent(value):
        return AMOUNT_REQUIRED
    number = _coerce_number(value)
    if number is not None and not number.is_nan() and number < 0:
        return AMOUNT_NEGATIVE
    if coerce_amount(value) is None:
        return AMOUNT_NOT_INTEGER
    return ""


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _text_error(value: object, required: str, too_long: str) -> str:
    if _is_absent(value):
        return required
    text = value if isinstance(value, str) else str(value)
    if _utf16_length(text) > MAX_TEXT_LENGTH:
        return too_long
    return ""


def _date_error(value: object, now: datetime) -> str:
    if _is_absent(value):
        return DATE_REQUIRED
    if not isinstance(value, (str, datetime)):
        return DATE_INVALID
    try:
        instant = parse_instant(value)
    except ValueError:
        return DATE_INVALID
    if instant > parse_instant(now):
        return DATE_IN_FUTURE
    return ""


def _field_error(draft: Draft, name: str, now: datetime) -> str:
    value = getattr(draft, name)
    if name == "amount":
        return _amount_error(value)
    if name == "business_category":
        return _text_error(value, CATEGORY_REQUIRED, CATEGORY_TOO_LONG)
    if name == "counterparty_name":
        return _text_error(value, COUNTERPARTY_REQUIRED, COUNTERPARTY_TOO_LONG)
    return _date_error(value, now)


def validate(draft: Draft, now: datetime | None = None) -> ValidationResult:
    """Validate every field of ``draft`` against ``now`` (defaults to the current instant)."""
    reference = now or utc_now()
    errors = {name: _field_error(draft, name, reference) for name in FIELD_NAMES}
    return ValidationResult(
        is_valid=all(message == "" for message in errors.values()),
        errors=errors,
    )


def validate_field(draft: Draft, name: str, now: datetime | None = None) -> str:
    if name not in FIELD_NAMES:
        raise KeyError(f"Unknown draft field: {name}")
    return _field_error(draft, name, now or utc_now())


def to_transaction(draft: Draft, record_id: TransactionId | None = None) -> Transaction:
    """Build the record to send for a draft that passed :func:`validate`."""
    amount = coerce_amount(draft.amount)
    if amount is None or not isinstance(draft.transaction_date, (str, datetime)):
        raise ValueError("draft has not passed validation")
    return Transaction(
        id=record_id,
        amount=amount,
        business_category=str(draft.business_category),
        counterparty_name=str(draft.counterparty_name),
        transaction_date=parse_instant(draft.transaction_date),
    )
