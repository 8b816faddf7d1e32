"""
Ingest component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from minimal_metrics.core.entities import Event


@dataclass(frozen=True)
class RequestContext:
    """Caller information gathered by the HTTP layer."""

    network_address: str
    country: str | None = None


@dataclass(frozen=True)
class IngestOutput:
    """Result of accepting (or rejecting) one beacon."""

    event: Event | None
    accepted: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FlushResult:
    """Outcome of draining the ingestion buffer once."""

    persisted: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.persisted + self.failed
