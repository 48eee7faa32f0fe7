"""Store error taxonomy shared by the persistence controller and store adapters."""

from __future__ import annotations


class StoreError(RuntimeError):
    """Base class for failures reported by a ``TabularStore``."""


class TransientStoreError(StoreError):
    """A store call failed in a way that may succeed when repeated later."""


class StoreTimeoutError(TransientStoreError):
    """The store did not answer in time; the outcome of a write is unknown."""


class StoreQuotaError(TransientStoreError):
    """The store rejected the call because a rate quota was exceeded."""


class HardStoreError(StoreError):
    """The store rejected the call outright."""
