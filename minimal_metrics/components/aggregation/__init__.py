"""
Aggregation component - hourly/daily rollups and retention.

Invariants:
- I1: one stats row per bucket key; re-aggregation overwrites
- I2: a cycle commits or rolls back as a whole
- I3: a bucket is never rewritten once any of its raw events were purged
"""

from ._impl import AggregationService
from .models import AggregationConfig, AggregationResult, RetentionResult
from .ports import (
    AggregateStorePort,
    AggregationUnitOfWorkPort,
    RawEventSourcePort,
    UnitOfWorkFactory,
)

__all__ = [
    "AggregationService",
    "AggregationConfig",
    "AggregationResult",
    "RetentionResult",
    "AggregateStorePort",
    "AggregationUnitOfWorkPort",
    "RawEventSourcePort",
    "UnitOfWorkFactory",
]
