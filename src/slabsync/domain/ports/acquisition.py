"""Ports for acquiring quotes and metadata from external sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slabsync.domain.model import AcquisitionResult, ItemMetadata


class QuoteSourceError(RuntimeError):
    """Raised by a quote source when the interactive session cannot be driven."""


class ValueApiError(RuntimeError):
    """Raised by a value API for any failed or malformed estimate request."""


@runtime_checkable
class QuoteSource(Protocol):
    """Interactive source whose displayed quote updates asynchronously."""

    async def submit_query(self, item_id: str) -> bool:
        """Search for ``item_id``; return ``False`` if no results render."""
        ...

    async def read_primary_quote(self) -> float | None: ...

    async def read_comparison_quotes(self) -> Sequence[float | None]: ...

    async def read_confidence(self) -> int | None: ...


@runtime_checkable
class MetadataLookup(Protocol):
    """Callable port resolving an item id to its classification metadata."""

    async def __call__(self, item_id: str) -> ItemMetadata | None: ...


class ValueApi(Protocol):
    """Structured, point-in-time quote API."""

    async def fetch_estimate(self, item_id: str, *, api_key: str) -> AcquisitionResult: ...


__all__ = ["MetadataLookup", "QuoteSource", "QuoteSourceError", "ValueApi", "ValueApiError"]
