"""
Ingestion service: workbook upload to stored product records.

Runs the sheet ingestor over each requested sheet and persists every
sheet that produced records. Sheets are independent: a sheet that fails
to load or to persist is reported in its own summary and the others
still go through.
"""

from typing import Optional

import structlog

from exceptions import AppError
from models.ingest import IngestOptions, SheetImportSummary
from parsers.excel_parser import ExcelSource, ingest_workbook
from parsers.sheet_ingestor import RawGrid, SheetIngestResult, ingest_sheet
from services.product_service import ProductService, get_product_service

logger = structlog.get_logger(__name__)


class IngestionService:
    """
    Price list import workflow.

    Handles:
    - Ingesting a whole workbook or a single pre-read grid
    - Replacing (default) or appending each sheet's stored records
    - Turning store failures into per-sheet alerts
    """

    def __init__(self, product_service: ProductService):
        self.product_service = product_service

    def import_workbook(
        self,
        file: ExcelSource,
        sheet_options: Optional[dict[str, IngestOptions]] = None,
        replace: bool = True
    ) -> list[SheetImportSummary]:
        """
        Import every requested sheet of a workbook.

        Args:
            file: File path or file-like object
            sheet_options: Sheet name -> options; None imports every sheet
            replace: Replace each sheet's stored records instead of appending

        Returns:
            One SheetImportSummary per sheet, in workbook / request order
        """
        logger.info(
            "importing_workbook",
            sheets=list(sheet_options) if sheet_options is not None else "all",
            replace=replace
        )

        results = ingest_workbook(file, sheet_options)
        summaries = [self._persist(result, replace) for result in results.values()]

        logger.info(
            "workbook_imported",
            sheets=len(summaries),
            inserted=sum(s.inserted for s in summaries),
            deleted=sum(s.deleted for s in summaries),
            failed=sum(1 for s in summaries if not s.success)
        )

        return summaries

    def import_grid(
        self,
        grid: RawGrid,
        sheet: str,
        options: Optional[IngestOptions] = None,
        replace: bool = True
    ) -> SheetImportSummary:
        """
        Import one sheet from an already-read grid.

        Args:
            grid: Rows of raw cells
            sheet: Sheet name
            options: Ingestion options for the sheet
            replace: Replace the sheet's stored records instead of appending

        Returns:
            SheetImportSummary for the sheet
        """
        result = ingest_sheet(grid, sheet, options=options)
        return self._persist(result, replace)

    def _persist(self, result: SheetIngestResult, replace: bool) -> SheetImportSummary:
        """Write one ingested sheet to the store."""
        summary = SheetImportSummary(
            sheet=result.sheet or "(unnamed)",
            processed=result.processed,
            skipped=result.skipped,
            alerts=list(result.alerts),
            diagnostics=[
                {"row": d.row, "reason": d.reason, "row_key": d.row_key}
                for d in result.diagnostics
            ],
        )

        # Nothing to write: leave whatever the store already holds
        if not result.has_data:
            logger.info("sheet_not_persisted", sheet=summary.sheet, alerts=len(summary.alerts))
            return summary

        try:
            if replace:
                summary.deleted, summary.inserted = self.product_service.replace_sheet(
                    result.sheet, result.records
                )
            else:
                summary.inserted = self.product_service.insert_records(
                    result.sheet, result.records
                )
        except AppError as e:
            logger.error(
                "sheet_persist_failed",
                sheet=result.sheet,
                error_code=e.code,
                error=e.message
            )
            summary.alerts.append(f"Failed to save sheet '{result.sheet}': {e.message}")

        return summary


# Singleton instance
_ingestion_service: Optional[IngestionService] = None


def get_ingestion_service() -> IngestionService:
    """Get or create IngestionService instance."""
    global _ingestion_service
    if _ingestion_service is None:
        _ingestion_service = IngestionService(get_product_service())
    return _ingestion_service
