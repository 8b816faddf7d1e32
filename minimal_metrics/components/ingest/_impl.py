"""
CollectService - turns an untrusted beacon into a buffered Event.

Pipeline: validate -> fingerprint -> build event -> enqueue.

Key behaviors:
- Rejected payloads never reach the buffer; all field errors are returned
- Tracked URL is reduced to its path (query and fragment dropped)
- Referrer is normalized to a known-source label, the bare hostname,
  or None for direct traffic
- Free-text fields are stripped of control characters before storage
- Missing timestamp defaults to server time; event name to "pageview"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlparse

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.components.anonymizer import VisitorAnonymizer
from minimal_metrics.components.validation import sanitize_string, validate_collect_data
from minimal_metrics.core.entities import PAGEVIEW, Event
from minimal_metrics.ports.clock import ClockPort

from .models import IngestOutput, RequestContext

# --- Configuration ---


@dataclass(frozen=True)
class AttributionConfig:
    """Referrer normalization rules, checked in order."""

    # (pattern, label); dotted patterns match a domain or its subdomains,
    # bare patterns match anywhere in the hostname
    known_sources: tuple[tuple[str, str], ...] = field(
        default_factory=lambda: (
            ("google", "Google"),
            ("facebook", "Facebook"),
            ("twitter", "Twitter"),
            ("t.co", "Twitter"),
            ("x.com", "Twitter"),
            ("linkedin", "LinkedIn"),
            ("reddit", "Reddit"),
            ("youtube", "YouTube"),
            ("github", "GitHub"),
            ("bing", "Bing"),
            ("duckduckgo", "DuckDuckGo"),
        )
    )


DEFAULT_ATTRIBUTION = AttributionConfig()


class BufferPort(Protocol):
    def enqueue(self, event: Event) -> None: ...


# --- Parsing ---


def parse_page_path(url: str) -> str:
    """Path component of a tracked URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.netloc:
        return url
    return parsed.path or "/"


def _matches(host: str, pattern: str) -> bool:
    if "." in pattern:
        return host == pattern or host.endswith("." + pattern)
    return pattern in host


def parse_referrer(
    referrer: str | None,
    config: AttributionConfig = DEFAULT_ATTRIBUTION,
) -> str | None:
    """
    Normalize a referrer URL to a source label.

    Returns None for direct traffic, a known-source label such as "Google",
    otherwise the hostname. Unparseable values are returned unchanged.
    """
    if not referrer:
        return None

    try:
        host = urlparse(referrer).hostname
    except ValueError:
        return referrer

    if not host:
        return referrer

    for pattern, label in config.known_sources:
        if _matches(host, pattern):
            return label

    return host


def _clean(value: Any) -> str | None:
    if value is None or value == "":
        return None
    cleaned = sanitize_string(value)
    return cleaned or None


# --- Event Construction ---


def build_event(
    data: dict[str, Any],
    visitor_fingerprint: str,
    country: str | None,
    now_ms: int,
    config: AttributionConfig = DEFAULT_ATTRIBUTION,
) -> Event:
    """Build an Event from an already validated payload."""
    ts = data.get("ts")
    props = data.get("props")

    return Event(
        timestamp=int(ts) if ts not in (None, "") else now_ms,
        page_path=sanitize_string(parse_page_path(data["url"])) or "/",
        referrer_label=_clean(parse_referrer(data.get("ref"), config)),
        visitor_fingerprint=visitor_fingerprint,
        country=_clean(country),
        screen_size=_clean(data.get("scr")),
        timezone=_clean(data.get("tz")),
        event_name=_clean(data.get("evt")) or PAGEVIEW,
        event_properties=props if isinstance(props, dict) and props else None,
        campaign_source=_clean(data.get("utm_source")),
        campaign_medium=_clean(data.get("utm_medium")),
        campaign_name=_clean(data.get("utm_campaign")),
        campaign_term=_clean(data.get("utm_term")),
        campaign_content=_clean(data.get("utm_content")),
    )


# --- Collect Service ---


class CollectService:
    """
    Accepts beacons on behalf of the HTTP layer.

    Fire-and-forget: an accepted beacon is only enqueued; durability is the
    buffer's concern.
    """

    def __init__(
        self,
        buffer: BufferPort,
        clock: ClockPort | None = None,
        config: AttributionConfig | None = None,
    ) -> None:
        self._buffer = buffer
        self._clock = clock or SystemClock()
        self._config = config or DEFAULT_ATTRIBUTION
        self._anonymizer = VisitorAnonymizer(self._clock)

    def ingest(self, data: dict[str, Any], context: RequestContext) -> IngestOutput:
        now_ms = self._clock.now_ms()

        result = validate_collect_data(data, now_ms)
        if not result.valid:
            return IngestOutput(event=None, accepted=False, errors=result.errors)

        visitor = self._anonymizer.fingerprint(data["sid"], context.network_address)
        event = build_event(data, visitor, context.country, now_ms, self._config)
        self._buffer.enqueue(event)

        return IngestOutput(event=event, accepted=True)
