"""Per-record reconciliation of store state against acquired data."""

from __future__ import annotations

from .engine import RowReconciliationEngine, ValueAcquirer, is_same_item
from .normalize import cells_match, normalize_grade, parse_quoted_value
from .policy import ModePolicy, ReconcileOptions, policy_for

__all__ = [
    "ModePolicy",
    "ReconcileOptions",
    "RowReconciliationEngine",
    "ValueAcquirer",
    "cells_match",
    "is_same_item",
    "normalize_grade",
    "parse_quoted_value",
    "policy_for",
]
