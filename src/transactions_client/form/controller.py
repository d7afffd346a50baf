"""Create/edit form state machine.

The form is always in one of two modes: ``Creating`` a new record or
``Editing`` an existing one. The mode comes from whether an existing record
was supplied, never from field values. Validation errors stay local to the
form; gateway failures are reported back to the caller with the draft kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Protocol

from transactions_client.domain.models import FIELD_NAMES, Draft, Transaction, TransactionId
from transactions_client.domain.validation import to_transaction, validate, validate_field
from transactions_client.gateway.errors import GatewayError
from transactions_client.utils.time import utc_now

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    EMPTY = "empty"
    EDITING = "editing"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class Creating:
    pass


@dataclass(frozen=True)
class Editing:
    record: Transaction


FormMode = Creating | Editing


class SubmitOutcome(str, Enum):
    INVALID = "invalid"
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SubmitResult:
    outcome: SubmitOutcome
    record: Transaction | None = None
    error: GatewayError | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (SubmitOutcome.CREATED, SubmitOutcome.UPDATED)


class TransactionWriter(Protocol):
    async def create_transaction(self, record: Transaction) -> Transaction: ...

    async def update_transaction(
        self, transaction_id: TransactionId, record: Transaction
    ) -> Transaction: ...


def _empty_errors() -> dict[str, str]:
    return {name: "" for name in FIELD_NAMES}


class FormController:
    def __init__(
        self,
        writer: TransactionWriter,
        existing: Transaction | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._writer = writer
        self._clock = clock
        self.mode: FormMode = Creating()
        self.state = FormState.EMPTY
        self.draft = Draft()
        self.touched: set[str] = set()
        self.errors = _empty_errors()
        self.submit_error: GatewayError | None = None
        if existing is not None:
            self.load(existing)

    @property
    def is_edit_mode(self) -> bool:
        return isinstance(self.mode, Editing)

    @property
    def is_submitting(self) -> bool:
        return self.state is FormState.SUBMITTING

    def load(self, record: Transaction) -> None:
        """Enter edit mode with a draft cloned from ``record``."""
        if self.is_submitting:
            raise RuntimeError("Cannot switch records while a submit is in flight")
        self.mode = Editing(record)
        self.draft = Draft.from_transaction(record)
        self.touched = set()
        self.errors = _empty_errors()
        self.submit_error = None
        self.state = FormState.EDITING

    def on_field_change(self, field: str, value: object) -> None:
        self.draft = self.draft.with_value(field, value)
        if self.errors.get(field):
            self.errors[field] = ""
        if self.state is FormState.EMPTY:
            self.state = FormState.EDITING

    def on_field_blur(self, field: str) -> None:
        error = validate_field(self.draft, field, self._clock())
        self.touched.add(field)
        self.errors[field] = error
        if self.state is FormState.EMPTY:
            self.state = FormState.EDITING

    def visible_error(self, field: str) -> str:
        """The message to show for ``field``: only once touched and non-empty."""
        if field in self.touched and self.errors.get(field):
            return self.errors[field]
        return ""

    def visible_errors(self) -> dict[str, str]:
        return {name: self.visible_error(name) for name in FIELD_NAMES}

    async def on_submit(self) -> SubmitResult:
        if self.is_submitting:
            logger.info("Ignoring submit while a previous submit is in flight")
            return SubmitResult(SubmitOutcome.REJECTED)

        self.touched = set(FIELD_NAMES)
        self.submit_error = None
        result = validate(self.draft, self._clock())
        if not result.is_valid:
            self.errors = dict(result.errors)
            self.state = FormState.EDITING
            return SubmitResult(SubmitOutcome.INVALID)

        mode = self.mode
        record_id = mode.record.id if isinstance(mode, Editing) else None
        record = to_transaction(self.draft, record_id)

        self.state = FormState.SUBMITTING
        try:
            if isinstance(mode, Editing):
                saved = await self._writer.update_transaction(mode.record.id, record)
                outcome = SubmitOutcome.UPDATED
            else:
                saved = await self._writer.create_transaction(record)
                outcome = SubmitOutcome.CREATED
        except GatewayError as exc:
            logger.warning("Submit failed (%s): %s", exc.kind, exc.message)
            self.submit_error = exc
            return SubmitResult(SubmitOutcome.FAILED, error=exc)
        finally:
            # Never left in flight, whether the write failed, raised or was cancelled.
            self.state = FormState.EDITING

        self._clear(Creating())
        return SubmitResult(outcome, record=saved)

    def on_cancel(self) -> bool:
        """Discard the draft and leave edit mode. Ignored while submitting."""
        if self.is_submitting:
            return False
        self._clear(Creating())
        return True

    def on_reset(self) -> bool:
        """Discard the draft, keeping the current mode. Ignored while submitting."""
        if self.is_submitting:
            return False
        self._clear(self.mode)
        return True

    def _clear(self, mode: FormMode) -> None:
        self.mode = mode
        self.draft = Draft()
        self.touched = set()
        self.errors = _empty_errors()
        self.submit_error = None
        self.state = FormState.EMPTY
