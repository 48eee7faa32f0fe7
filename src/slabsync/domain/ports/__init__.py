"""Domain ports for external collaborators."""

from __future__ import annotations

from .acquisition import MetadataLookup, QuoteSource, QuoteSourceError, ValueApi, ValueApiError
from .store import CellLocation, CellWrite, TabularStore

__all__ = [
    "CellLocation",
    "CellWrite",
    "MetadataLookup",
    "QuoteSource",
    "QuoteSourceError",
    "TabularStore",
    "ValueApi",
    "ValueApiError",
]
