"""Rows and results of a universe export."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from targeting.pipeline.models import BatchItem


@dataclass(frozen=True)
class ExportRow:
    """One criterion as it appears in the universe spreadsheet."""

    criterion: str
    category: str = ""
    meta_id: str = ""
    audience_size: int = 0
    meta_name: str = ""


@dataclass(frozen=True)
class ExportResult:
    universe_name: str
    exported_count: int
    universe_id: Optional[str] = None


def build_export_rows(items: Iterable[BatchItem], category: str = "") -> List[ExportRow]:
    """One row per batch item, using its best (first) match.

    Items without matches still export, with empty interest columns and an
    audience of 0.
    """
    rows = []
    for item in items:
        best = item.best_match
        if best is None:
            rows.append(ExportRow(criterion=item.original, category=category))
            continue
        rows.append(ExportRow(
            criterion=item.original,
            category=category or (best.topic or ""),
            meta_id=best.id,
            audience_size=best.audience_size or 0,
            meta_name=best.name,
        ))
    return rows
