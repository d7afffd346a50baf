"""Transaction records, drafts and their validation."""

from transactions_client.domain.models import FIELD_NAMES, Draft, Transaction
from transactions_client.domain.validation import (
    ValidationResult,
    validate,
    validate_field,
)

__all__ = [
    "FIELD_NAMES",
    "Draft",
    "Transaction",
    "ValidationResult",
    "validate",
    "validate_field",
]
