"""
Export component - JSON/CSV downloads of aggregate views.
"""

from ._impl import ExportService, format_csv
from .models import (
    CSV_COLUMNS,
    EXPORT_PERIODS,
    EXPORT_TYPES,
    ExportConfig,
    ExportError,
    ExportResult,
)

__all__ = [
    "ExportService",
    "format_csv",
    "CSV_COLUMNS",
    "EXPORT_PERIODS",
    "EXPORT_TYPES",
    "ExportConfig",
    "ExportError",
    "ExportResult",
]
