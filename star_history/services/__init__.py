"""Star-history aggregation services."""

from star_history.services.aggregator import StarAggregator
from star_history.services.finalizer import finalize_series

__all__ = [
    "StarAggregator",
    "finalize_series",
]
