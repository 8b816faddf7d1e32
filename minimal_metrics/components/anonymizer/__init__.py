"""
Anonymizer component - visitor fingerprinting.
"""

from .component import (
    FINGERPRINT_LENGTH,
    VisitorAnonymizer,
    fingerprint,
    format_day,
)

__all__ = [
    "FINGERPRINT_LENGTH",
    "VisitorAnonymizer",
    "fingerprint",
    "format_day",
]
