"""Export of batch results to the universe-building platform."""

from .exceptions import ExportError
from .models import ExportResult, ExportRow, build_export_rows
from .service import SoprismExportService
from .spreadsheet import COLUMNS, SHEET_TITLE, write_universe_workbook

__all__ = [
    "COLUMNS",
    "ExportError",
    "ExportResult",
    "ExportRow",
    "SHEET_TITLE",
    "SoprismExportService",
    "build_export_rows",
    "write_universe_workbook",
]
