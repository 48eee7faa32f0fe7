"""Quote acquisition: structured API tier and convergence-sampling fallback."""

from __future__ import annotations

from .protocol import (
    ApiQuoteStrategy,
    QuoteStrategy,
    SamplerQuoteStrategy,
    ValueAcquisitionProtocol,
)
from .sampler import StaleConvergenceSampler

__all__ = [
    "ApiQuoteStrategy",
    "QuoteStrategy",
    "SamplerQuoteStrategy",
    "StaleConvergenceSampler",
    "ValueAcquisitionProtocol",
]
