"""
Ingest component - beacon acceptance, attribution and batched persistence.

Invariants:
- I1: only validated payloads become events
- I2: no raw IP or session id leaves this component; only fingerprints
- I3: buffered events are persisted in enqueue order, each independently
"""

from ._buffer import DEFAULT_FLUSH_DELAY_SECONDS, IngestionBuffer
from ._impl import (
    DEFAULT_ATTRIBUTION,
    AttributionConfig,
    CollectService,
    build_event,
    parse_page_path,
    parse_referrer,
)
from .models import FlushResult, IngestOutput, RequestContext
from .ports import EventSinkPort, TimerFactory, TimerHandle

__all__ = [
    # Services
    "CollectService",
    "IngestionBuffer",
    "DEFAULT_FLUSH_DELAY_SECONDS",
    # Attribution
    "AttributionConfig",
    "DEFAULT_ATTRIBUTION",
    "build_event",
    "parse_page_path",
    "parse_referrer",
    # Models
    "FlushResult",
    "IngestOutput",
    "RequestContext",
    # Ports
    "EventSinkPort",
    "TimerFactory",
    "TimerHandle",
]
