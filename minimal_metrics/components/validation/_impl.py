"""
Collect payload validation.

Checks every field of an inbound beacon against type, length, format and
range constraints before it may become a stored event.

Key behaviors:
- All failing fields are reported, never just the first
- None or "" for an optional field means "absent" and is valid
- A value of the wrong type is always invalid
- Pure: no I/O, "now" is passed in
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# --- Limits ---

MAX_URL_LENGTH = 2000
MAX_SESSION_ID_LENGTH = 50
MAX_REFERRER_LENGTH = 2000
MAX_SCREEN_SIZE_LENGTH = 20
MAX_TIMEZONE_LENGTH = 50
MAX_EVENT_NAME_LENGTH = 100
MAX_EVENT_PROPS_SIZE = 5000
MAX_UTM_LENGTH = 200

MIN_TIMESTAMP_MS = int(datetime(2020, 1, 1, tzinfo=UTC).timestamp() * 1000)
MAX_FUTURE_MS = 24 * 60 * 60 * 1000

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")

_SESSION_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_SCREEN_SIZE_RE = re.compile(r"^\d+x\d+$")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


# --- Result ---


@dataclass
class ValidationResult:
    """Outcome of validating a collect payload."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def _absent(value: Any) -> bool:
    return value is None or value == ""


def _now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


# --- Field Validators ---


def validate_url(url: Any) -> str | None:
    if not isinstance(url, str):
        return "URL must be a string"
    if len(url) == 0:
        return "URL is required"
    if len(url) > MAX_URL_LENGTH:
        return f"URL exceeds maximum length of {MAX_URL_LENGTH}"
    if not url.startswith(("http://", "https://")):
        return "URL must start with http:// or https://"
    return None


def validate_session_id(sid: Any) -> str | None:
    if not isinstance(sid, str):
        return "Session ID must be a string"
    if len(sid) == 0:
        return "Session ID is required"
    if len(sid) > MAX_SESSION_ID_LENGTH:
        return f"Session ID exceeds maximum length of {MAX_SESSION_ID_LENGTH}"
    if not _SESSION_ID_RE.match(sid):
        return "Session ID contains invalid characters"
    return None


def validate_referrer(ref: Any) -> str | None:
    if _absent(ref):
        return None
    if not isinstance(ref, str):
        return "Referrer must be a string"
    if len(ref) > MAX_REFERRER_LENGTH:
        return f"Referrer exceeds maximum length of {MAX_REFERRER_LENGTH}"
    return None


def validate_screen_size(scr: Any) -> str | None:
    if _absent(scr):
        return None
    if not isinstance(scr, str):
        return "Screen size must be a string"
    if len(scr) > MAX_SCREEN_SIZE_LENGTH:
        return f"Screen size exceeds maximum length of {MAX_SCREEN_SIZE_LENGTH}"
    if not _SCREEN_SIZE_RE.match(scr):
        return "Screen size must be in format WIDTHxHEIGHT"
    return None


def validate_timezone(tz: Any) -> str | None:
    if _absent(tz):
        return None
    if not isinstance(tz, str):
        return "Timezone must be a string"
    if len(tz) > MAX_TIMEZONE_LENGTH:
        return f"Timezone exceeds maximum length of {MAX_TIMEZONE_LENGTH}"
    return None


def validate_timestamp(ts: Any, now_ms: int | None = None) -> str | None:
    """Timestamp must be numeric ms within [2020-01-01, now + 24h]."""
    if _absent(ts):
        return None
    # bool is an int subclass but never a valid timestamp
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        return "Timestamp must be a number"
    now_ms = _now_ms() if now_ms is None else now_ms
    if ts != ts or ts < MIN_TIMESTAMP_MS or ts > now_ms + MAX_FUTURE_MS:
        return "Timestamp is out of valid range"
    return None


def validate_event_name(evt: Any) -> str | None:
    if _absent(evt):
        return None
    if not isinstance(evt, str):
        return "Event name must be a string"
    if len(evt) > MAX_EVENT_NAME_LENGTH:
        return f"Event name exceeds maximum length of {MAX_EVENT_NAME_LENGTH}"
    return None


def validate_event_props(props: Any) -> str | None:
    if _absent(props):
        return None
    if not isinstance(props, dict):
        return "Event properties must be an object"
    try:
        serialized = json.dumps(props, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return "Event properties must be JSON serializable"
    if len(serialized.encode("utf-8")) > MAX_EVENT_PROPS_SIZE:
        return f"Event properties exceed maximum size of {MAX_EVENT_PROPS_SIZE}"
    return None


def validate_utm(value: Any, name: str) -> str | None:
    if _absent(value):
        return None
    if not isinstance(value, str):
        return f"{name} must be a string"
    if len(value) > MAX_UTM_LENGTH:
        return f"{name} exceeds maximum length of {MAX_UTM_LENGTH}"
    return None


# --- Payload Validation ---


def validate_collect_data(data: dict[str, Any], now_ms: int | None = None) -> ValidationResult:
    """
    Validate a complete collect payload.

    Every field is checked independently; the result lists one message per
    failing field.
    """
    checks = [
        validate_url(data.get("url")),
        validate_session_id(data.get("sid")),
        validate_referrer(data.get("ref")),
        validate_screen_size(data.get("scr")),
        validate_timezone(data.get("tz")),
        validate_timestamp(data.get("ts"), now_ms),
        validate_event_name(data.get("evt")),
        validate_event_props(data.get("props")),
    ]
    checks.extend(validate_utm(data.get(name), name) for name in UTM_FIELDS)

    errors = [message for message in checks if message is not None]
    return ValidationResult(valid=not errors, errors=errors)


def validate(payload: dict[str, Any], now_ms: int | None = None) -> tuple[bool, list[str]]:
    """Tuple form of validate_collect_data: (ok, errors)."""
    result = validate_collect_data(payload, now_ms)
    return result.valid, result.errors


# --- Sanitization ---


def sanitize_string(value: Any) -> str:
    """Strip ASCII control characters, keeping tab and newline."""
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS_RE.sub("", value)
