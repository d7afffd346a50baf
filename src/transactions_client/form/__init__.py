"""Create/edit form controller."""

from transactions_client.form.controller import (
    Creating,
    Editing,
    FormController,
    FormState,
    SubmitOutcome,
    SubmitResult,
)

__all__ = [
    "Creating",
    "Editing",
    "FormController",
    "FormState",
    "SubmitOutcome",
    "SubmitResult",
]
