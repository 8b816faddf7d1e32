"""
Validation component - collect payload checks and text sanitization.
"""

from ._impl import (
    MAX_EVENT_PROPS_SIZE,
    MIN_TIMESTAMP_MS,
    UTM_FIELDS,
    ValidationResult,
    sanitize_string,
    validate,
    validate_collect_data,
    validate_event_name,
    validate_event_props,
    validate_referrer,
    validate_screen_size,
    validate_session_id,
    validate_timestamp,
    validate_timezone,
    validate_url,
    validate_utm,
)

__all__ = [
    "MAX_EVENT_PROPS_SIZE",
    "MIN_TIMESTAMP_MS",
    "UTM_FIELDS",
    "ValidationResult",
    "sanitize_string",
    "validate",
    "validate_collect_data",
    "validate_event_name",
    "validate_event_props",
    "validate_referrer",
    "validate_screen_size",
    "validate_session_id",
    "validate_timestamp",
    "validate_timezone",
    "validate_url",
    "validate_utm",
]
