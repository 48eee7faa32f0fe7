"""Public interface for the Card Ladder adapter."""

from __future__ import annotations

from .auth import ensure_logged_in
from .client import CardLadderAPIError, CardLadderClient, estimate_to_result
from .page import CardLadderQuoteSource
from .schema import EstimatePayload

__all__ = [
    "CardLadderAPIError",
    "CardLadderClient",
    "CardLadderQuoteSource",
    "EstimatePayload",
    "ensure_logged_in",
    "estimate_to_result",
]
