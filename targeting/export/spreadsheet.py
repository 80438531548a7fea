"""Universe import workbook written with openpyxl."""

from pathlib import Path
from typing import Iterable

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .models import ExportRow

SHEET_TITLE = "Universe Import"

# (header, column width)
COLUMNS = (
    ("Name", 30),
    ("Category", 30),
    ("Meta ID", 20),
    ("Audience Size", 15),
    ("Meta Name", 30),
)


def write_universe_workbook(rows: Iterable[ExportRow], path: Path) -> Path:
    """Write the rows to an .xlsx file in the platform's import layout.

    Returns:
        The path written
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([header for header, _ in COLUMNS])
    for index, (_, width) in enumerate(COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    for row in rows:
        sheet.append([row.criterion, row.category, row.meta_id, row.audience_size, row.meta_name])

    path = Path(path)
    workbook.save(path)
    return path
