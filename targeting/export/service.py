"""Export of batch results as a universe on the universe-building platform."""

import os
import tempfile
from pathlib import Path
from typing import List, Optional

from targeting.adapters.exceptions import AdapterError
from targeting.adapters.soprism import SoprismAdapter, UniverseRequest
from targeting.logging import get_logger

from .exceptions import ExportError
from .models import ExportResult, ExportRow
from .spreadsheet import write_universe_workbook

logger = get_logger(__name__, component="export")


class SoprismExportService:
    """Builds the import workbook, uploads it and creates the universe."""

    def __init__(self, adapter: SoprismAdapter):
        self.adapter = adapter

    def export(
        self,
        universe_name: str,
        country_ref: str,
        rows: List[ExportRow],
        token: str,
        description: Optional[str] = None,
        exclude_default: bool = False,
        avoid_duplicates: bool = True,
    ) -> ExportResult:
        """
        Export rows as a new universe.

        The temporary workbook is removed whether or not the export succeeds.

        Args:
            universe_name: Name of the universe to create
            country_ref: Country reference (two-letter code)
            rows: Spreadsheet rows (see build_export_rows)
            token: Bearer token from ``SoprismAdapter.authenticate``
            description: Optional universe description
            exclude_default: Exclude the platform's default interests
            avoid_duplicates: Merge rows pointing at the same interest

        Returns:
            ExportResult with the number of exported rows and the universe id

        Raises:
            ExportError: If inputs are missing or the platform rejects the export
        """
        if not universe_name or not universe_name.strip():
            raise ExportError("Universe name is required")
        if not country_ref or not country_ref.strip():
            raise ExportError("Country reference is required")
        if not rows:
            raise ExportError("No results to export")

        fd, tmp_name = tempfile.mkstemp(prefix="soprism_export_", suffix=".xlsx")
        os.close(fd)
        workbook_path = Path(tmp_name)

        try:
            write_universe_workbook(rows, workbook_path)
            upload = self.adapter.upload_spreadsheet(workbook_path, token)
            universe_id = self.adapter.create_universe(
                UniverseRequest(
                    name=universe_name.strip(),
                    country_ref=country_ref.strip(),
                    file_id=upload.file_id,
                    description=description,
                    exclude_default=exclude_default,
                    avoid_duplicates=avoid_duplicates,
                ),
                token,
            )
        except AdapterError as e:
            logger.error(
                f"Universe export failed: {e}",
                extra={"event": "export.failed", "error_type": type(e).__name__},
            )
            raise ExportError(f"Universe export failed: {e}") from e
        finally:
            workbook_path.unlink(missing_ok=True)

        result = ExportResult(
            universe_name=universe_name.strip(),
            exported_count=len(rows),
            universe_id=universe_id,
        )
        logger.info(
            f"Exported {result.exported_count} criteria to universe '{result.universe_name}'",
            extra={
                "event": "export.completed",
                "universe_id": universe_id,
                "exported_count": result.exported_count,
            },
        )
        return result
