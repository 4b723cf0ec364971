"""
Product store backed by Supabase.

Persists ingested product records and serves sheet listings and search.
A sheet is the unit of replacement: re-importing a sheet removes every
stored record of that sheet before the new batch goes in.
"""

from collections import Counter
from typing import Optional, Union

import structlog

from config import get_supabase_client, settings
from exceptions import (
    DatabaseError,
    InvalidSheetNameError,
    SheetNotFoundError,
)
from models.base import Pagination, PaginationParams
from models.product import ProductCreate, ProductResponse, SheetSummary
from models.search import SearchResult, SortMode
from services.search_service import parse_query, search_records

logger = structlog.get_logger(__name__)

# Rows requested per page; larger reads are paged
FETCH_PAGE_SIZE = 1000


class ProductService:
    """
    Product store operations.

    Handles bulk insert, per-sheet replacement and deletion, sheet
    listing, paged sheet reads and search over stored records.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.products_table
        self.chunk_size = settings.insert_chunk_size

    # ===================
    # READ OPERATIONS
    # ===================

    def list_sheets(self) -> list[SheetSummary]:
        """
        List stored sheets with their product counts.

        Returns:
            SheetSummary list, largest sheet first, then by name
        """
        logger.debug("listing_sheets")

        try:
            rows = self._fetch_all(columns="sheet")
        except Exception as e:
            logger.error("list_sheets_failed", error=str(e))
            raise DatabaseError("select", str(e))

        counts = Counter(row["sheet"] for row in rows)
        summaries = [
            SheetSummary(sheet=sheet, count=count)
            for sheet, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ]

        logger.info("sheets_listed", sheets=len(summaries), products=len(rows))
        return summaries

    def get_by_sheet(
        self,
        sheet: str,
        page: Optional[int] = 1,
        per_page: Optional[int] = None
    ) -> tuple[list[ProductResponse], Pagination]:
        """
        Get one page of a sheet's records in sheet order.

        Args:
            sheet: Sheet name
            page: Page number (1-indexed)
            per_page: Items per page (clamped to [1, 100])

        Returns:
            Tuple of (records, pagination)

        Raises:
            InvalidSheetNameError: If sheet is blank
        """
        sheet = self._require_sheet(sheet)
        params = PaginationParams.clamped(page, per_page)

        logger.info(
            "getting_sheet_products",
            sheet=sheet,
            page=params.page,
            per_page=params.per_page
        )

        try:
            total = (
                self.db.table(self.table)
                .select("id", count="exact")
                .eq("sheet", sheet)
                .limit(1)
                .execute()
            ).count or 0

            # A range past the last row is rejected by the server
            if params.offset >= total:
                records = []
            else:
                result = (
                    self.db.table(self.table)
                    .select("*")
                    .eq("sheet", sheet)
                    .order("row_index")
                    .order("id", desc=True)
                    .range(params.offset, params.offset + params.limit - 1)
                    .execute()
                )
                records = [ProductResponse(**row) for row in result.data]

            pagination = Pagination.create(total, params)

            logger.info(
                "sheet_products_retrieved",
                sheet=sheet,
                count=len(records),
                total=pagination.total
            )

            return records, pagination

        except Exception as e:
            logger.error(
                "get_sheet_products_failed",
                sheet=sheet,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def search(
        self,
        query: Optional[str],
        sheet: Optional[str] = None,
        sort: Union[SortMode, str, None] = SortMode.RELEVANCE,
        page: Optional[int] = 1,
        per_page: Optional[int] = None
    ) -> SearchResult:
        """
        Search stored records.

        Args:
            query: Free-text query, every term must match
            sheet: Restrict to one sheet (empty means all)
            sort: relevance, price_asc, price_desc or newest
            page: Page number (1-indexed)
            per_page: Items per page (clamped to [1, 100])

        Returns:
            SearchResult page

        Raises:
            InvalidSearchQueryError: If the query has no terms
            DatabaseError: If candidates cannot be read
        """
        # Reject empty queries before touching the store
        parse_query(query)
        sheet = (sheet or "").strip() or None

        try:
            rows = self._fetch_all(sheet=sheet)
        except Exception as e:
            logger.error("search_fetch_failed", sheet=sheet, error=str(e))
            raise DatabaseError("select", str(e))

        candidates = [ProductResponse(**row) for row in rows]
        return search_records(
            candidates,
            query,
            sheet=sheet,
            sort=sort,
            page=page,
            per_page=per_page
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def insert_records(self, sheet: str, records: list[ProductCreate]) -> int:
        """
        Insert a sheet's records.

        Records are stamped with `sheet` and written in chunks. If a chunk
        fails, the chunks already written for this call are removed so the
        batch lands all-or-nothing.

        Args:
            sheet: Target sheet name
            records: Records to insert

        Returns:
            Number of records inserted

        Raises:
            InvalidSheetNameError: If sheet is blank
            DatabaseError: If the insert fails
        """
        sheet = self._require_sheet(sheet)
        if not records:
            return 0

        rows = [record.model_copy(update={"sheet": sheet}).to_row() for record in records]
        inserted_ids: list[int] = []

        logger.info("inserting_records", sheet=sheet, count=len(rows))

        try:
            for start in range(0, len(rows), self.chunk_size):
                chunk = rows[start:start + self.chunk_size]
                result = self.db.table(self.table).insert(chunk).execute()
                inserted_ids.extend(row["id"] for row in result.data or [])

        except Exception as e:
            logger.error(
                "insert_records_failed",
                sheet=sheet,
                written=len(inserted_ids),
                error=str(e)
            )
            self._remove_ids(sheet, inserted_ids)
            raise DatabaseError("insert", str(e))

        logger.info("records_inserted", sheet=sheet, count=len(rows))
        return len(rows)

    def delete_sheet(self, sheet: str, missing_ok: bool = False) -> int:
        """
        Delete every record of a sheet.

        Args:
            sheet: Sheet name
            missing_ok: Return 0 instead of raising when the sheet is empty

        Returns:
            Number of records deleted

        Raises:
            InvalidSheetNameError: If sheet is blank
            SheetNotFoundError: If no record has this sheet and not missing_ok
            DatabaseError: If the delete fails
        """
        sheet = self._require_sheet(sheet)
        deleted = len(self._delete_rows(sheet))

        if deleted == 0 and not missing_ok:
            raise SheetNotFoundError(sheet)

        return deleted

    def replace_sheet(self, sheet: str, records: list[ProductCreate]) -> tuple[int, int]:
        """
        Replace a sheet's stored records with a new batch.

        If the new batch cannot be written, the removed records are put
        back so the sheet keeps its previous contents.

        Args:
            sheet: Sheet name
            records: New records for the sheet

        Returns:
            Tuple of (deleted count, inserted count)

        Raises:
            InvalidSheetNameError: If sheet is blank
            DatabaseError: If the delete or insert fails
        """
        sheet = self._require_sheet(sheet)
        logger.info("replacing_sheet", sheet=sheet, count=len(records))

        removed = self._delete_rows(sheet)
        try:
            inserted = self.insert_records(sheet, records)
        except DatabaseError:
            self._restore_rows(sheet, removed)
            raise

        logger.info(
            "sheet_replaced",
            sheet=sheet,
            deleted=len(removed),
            inserted=inserted
        )
        return len(removed), inserted

    # ===================
    # HELPERS
    # ===================

    def _require_sheet(self, sheet: Optional[str]) -> str:
        sheet = (sheet or "").strip()
        if not sheet:
            raise InvalidSheetNameError(sheet)
        return sheet

    def _fetch_all(self, sheet: Optional[str] = None, columns: str = "*") -> list[dict]:
        """Read every matching row, paging past the server row cap."""
        rows: list[dict] = []
        offset = 0
        while True:
            query = self.db.table(self.table).select(columns)
            if sheet:
                query = query.eq("sheet", sheet)
            result = (
                query.order("id")
                .range(offset, offset + FETCH_PAGE_SIZE - 1)
                .execute()
            )
            batch = result.data or []
            # The server may cap a page below FETCH_PAGE_SIZE
            if not batch:
                return rows
            rows.extend(batch)
            offset += len(batch)

    def _remove_ids(self, sheet: str, ids: list[int]) -> None:
        """Remove rows written by a failed insert."""
        if not ids:
            return
        try:
            self.db.table(self.table).delete().in_("id", ids).execute()
            logger.warning("partial_insert_rolled_back", sheet=sheet, removed=len(ids))
        except Exception as e:
            # The original insert error is what the caller sees
            logger.error(
                "partial_insert_rollback_failed",
                sheet=sheet,
                ids=len(ids),
                error=str(e)
            )

    def _delete_rows(self, sheet: str) -> list[dict]:
        """Delete a sheet's rows and return them as they were stored."""
        logger.info("deleting_sheet", sheet=sheet)

        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq("sheet", sheet)
                .execute()
            )
        except Exception as e:
            logger.error("delete_sheet_failed", sheet=sheet, error=str(e))
            raise DatabaseError("delete", str(e))

        removed = result.data or []
        logger.info("sheet_deleted", sheet=sheet, deleted=len(removed))
        return removed

    def _restore_rows(self, sheet: str, rows: list[dict]) -> None:
        """Put back rows removed by a replacement whose insert failed."""
        if not rows:
            return
        try:
            self.db.table(self.table).insert(rows).execute()
            logger.warning("sheet_restored", sheet=sheet, restored=len(rows))
        except Exception as e:
            logger.error(
                "sheet_restore_failed",
                sheet=sheet,
                rows=len(rows),
                error=str(e)
            )


# Singleton instance
_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create product service instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
