"""Store-facing persistence: batched commits and retrying reads."""

from __future__ import annotations

from .controller import (
    BatchedPersistenceController,
    BatchPolicy,
    PersistenceReport,
    VerificationEntry,
    VerificationMismatch,
)
from .reads import ReadRetryPolicy, load_fields_with_retry

__all__ = [
    "BatchPolicy",
    "BatchedPersistenceController",
    "PersistenceReport",
    "ReadRetryPolicy",
    "VerificationEntry",
    "VerificationMismatch",
    "load_fields_with_retry",
]
