"""
Visitor anonymizer - day-rotating, non-reversible visitor fingerprints.

Derives the only visitor identity that is ever persisted. The raw session
token and network address are hashed together with the server-local calendar
date, so the same visitor yields a new fingerprint after local midnight and
no identity can be linked across days.

Invariants:
- I1: output is always 16 lowercase hex characters
- I2: deterministic for the same (token, address) within one calendar day
- I3: rotation unit is the calendar day, not a rolling 24h window
"""

from __future__ import annotations

import hashlib
from datetime import date

from minimal_metrics.adapters.clock import SystemClock
from minimal_metrics.ports.clock import ClockPort

FINGERPRINT_LENGTH = 16


def format_day(day: date) -> str:
    """Render a calendar date with day granularity (e.g. 'Sun Oct 18 2026')."""
    return day.strftime("%a %b %d %Y")


def fingerprint(session_token: str, network_address: str, day: date | None = None) -> str:
    """
    Compute the visitor fingerprint for a session token and network address.

    Args:
        session_token: Client-supplied session id.
        network_address: Caller address as seen by the server.
        day: Calendar date to salt with (defaults to today, server-local).

    Returns:
        First 16 hex characters of a SHA-256 digest.
    """
    day = day or date.today()
    material = f"{session_token}:{network_address}:{format_day(day)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


class VisitorAnonymizer:
    """Fingerprint provider bound to a clock."""

    def __init__(self, clock: ClockPort | None = None) -> None:
        self._clock = clock or SystemClock()

    def fingerprint(self, session_token: str, network_address: str) -> str:
        return fingerprint(session_token, network_address, self._clock.today())
