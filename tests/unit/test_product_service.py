"""
Unit tests for ProductService.

Run: pytest tests/unit/test_product_service.py -v
Run with coverage: pytest tests/unit/test_product_service.py --cov=services/product_service
"""

import pytest

# Import what we're testing
from services.product_service import ProductService, get_product_service
from exceptions import (
    DatabaseError,
    InvalidSearchQueryError,
    InvalidSheetNameError,
    SheetNotFoundError,
)

# Import test utilities
from tests.factories import ProductRecordFactory


def new_records(count: int, sheet: str = "Chairs") -> list:
    return [
        ProductRecordFactory.build_new(sheet=sheet, row_index=i + 1, model=f"Chair-{i + 1}")
        for i in range(count)
    ]


def stored(mock_supabase, sheet=None) -> list:
    rows = mock_supabase.tables.get("products", [])
    return [row for row in rows if sheet is None or row["sheet"] == sheet]


class TestInsertRecords:
    """Tests for ProductService.insert_records()"""

    def test_insert_assigns_ids(self, product_service, mock_supabase):
        """Should write every record and return the count."""
        # Act
        inserted = product_service.insert_records("Chairs", new_records(3))

        # Assert
        assert inserted == 3
        rows = stored(mock_supabase)
        assert [row["model"] for row in rows] == ["Chair-1", "Chair-2", "Chair-3"]
        assert [row["id"] for row in rows] == [1, 2, 3]

    def test_insert_stamps_target_sheet(self, product_service, mock_supabase):
        product_service.insert_records("Outdoor", new_records(2, sheet="Chairs"))

        assert {row["sheet"] for row in stored(mock_supabase)} == {"Outdoor"}

    def test_insert_in_chunks(self, product_service, mock_supabase):
        product_service.chunk_size = 2

        product_service.insert_records("Chairs", new_records(5))

        assert mock_supabase.calls.count(("products", "insert")) == 3
        assert len(stored(mock_supabase)) == 5

    def test_failed_chunk_removes_written_chunks(self, product_service, mock_supabase):
        """A sheet batch lands completely or not at all."""
        product_service.chunk_size = 2
        mock_supabase.fail_on("insert", after=1)

        with pytest.raises(DatabaseError) as exc_info:
            product_service.insert_records("Chairs", new_records(5))

        assert exc_info.value.code == "DATABASE_ERROR"
        assert stored(mock_supabase) == []

    def test_empty_batch(self, product_service, mock_supabase):
        assert product_service.insert_records("Chairs", []) == 0
        assert mock_supabase.calls == []

    def test_blank_sheet_rejected(self, product_service):
        with pytest.raises(InvalidSheetNameError):
            product_service.insert_records("  ", new_records(1))


class TestDeleteSheet:
    """Tests for ProductService.delete_sheet()"""

    def test_delete_returns_count(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        deleted = product_service.delete_sheet("Chairs")

        assert deleted == 2
        assert [row["sheet"] for row in stored(mock_supabase)] == ["Desks"]

    def test_unknown_sheet_raises(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        with pytest.raises(SheetNotFoundError) as exc_info:
            product_service.delete_sheet("Lamps")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "SHEET_NOT_FOUND"

    def test_unknown_sheet_missing_ok(self, product_service):
        assert product_service.delete_sheet("Lamps", missing_ok=True) == 0

    def test_blank_sheet_rejected(self, product_service):
        with pytest.raises(InvalidSheetNameError):
            product_service.delete_sheet("")


class TestReplaceSheet:
    """Tests for ProductService.replace_sheet()"""

    def test_replace_only_touches_target_sheet(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        deleted, inserted = product_service.replace_sheet("Chairs", new_records(3))

        assert (deleted, inserted) == (2, 3)
        assert [row["model"] for row in stored(mock_supabase, "Chairs")] == ["Chair-1", "Chair-2", "Chair-3"]
        assert [row["model"] for row in stored(mock_supabase, "Desks")] == ["Desk-1"]

    def test_replace_new_sheet(self, product_service, mock_supabase):
        assert product_service.replace_sheet("Chairs", new_records(2)) == (0, 2)

    def test_failed_insert_restores_previous_records(self, product_service, mock_supabase, sample_products_list):
        """A replacement that cannot write its batch leaves the sheet as it was."""
        mock_supabase.set_table_data("products", sample_products_list)
        mock_supabase.fail_on("insert", times=1)

        with pytest.raises(DatabaseError):
            product_service.replace_sheet("Chairs", new_records(3))

        chairs = stored(mock_supabase, "Chairs")
        assert [(row["id"], row["model"]) for row in chairs] == [(1, "Chair-100"), (2, "Chair-200")]

    def test_new_records_get_newer_ids(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        product_service.replace_sheet("Chairs", new_records(1))

        assert stored(mock_supabase, "Chairs")[0]["id"] == 4


class TestListSheets:
    """Tests for ProductService.list_sheets()"""

    def test_largest_sheet_first_then_name(self, product_service, mock_supabase):
        rows = (
            ProductRecordFactory.create_batch(1, sheet="Desks")
            + ProductRecordFactory.create_batch(3, sheet="Chairs")
            + ProductRecordFactory.create_batch(1, sheet="Beds")
        )
        mock_supabase.set_table_data("products", rows)

        sheets = product_service.list_sheets()

        assert [(s.sheet, s.count) for s in sheets] == [("Chairs", 3), ("Beds", 1), ("Desks", 1)]

    def test_empty_store(self, product_service):
        assert product_service.list_sheets() == []

    def test_reads_past_server_row_cap(self, product_service, mock_supabase):
        """A server page smaller than the request size still reads every row."""
        mock_supabase.set_table_data("products", ProductRecordFactory.create_batch(5, sheet="Chairs"))
        mock_supabase.max_rows = 2

        sheets = product_service.list_sheets()

        assert [(s.sheet, s.count) for s in sheets] == [("Chairs", 5)]

    def test_store_failure(self, product_service, mock_supabase):
        mock_supabase.fail_on("select")

        with pytest.raises(DatabaseError):
            product_service.list_sheets()


class TestGetBySheet:
    """Tests for ProductService.get_by_sheet()"""

    def test_sheet_order_row_index_then_newest(self, product_service, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductRecordFactory.create(id=1, sheet="Chairs", row_index=2, model="B"),
            ProductRecordFactory.create(id=2, sheet="Chairs", row_index=1, model="A-old"),
            ProductRecordFactory.create(id=3, sheet="Chairs", row_index=1, model="A-new"),
            ProductRecordFactory.create(id=4, sheet="Desks", row_index=1, model="D"),
        ])

        records, pagination = product_service.get_by_sheet("Chairs")

        assert [r.model for r in records] == ["A-new", "A-old", "B"]
        assert pagination.total == 3

    def test_paged(self, product_service, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductRecordFactory.create(sheet="Chairs", row_index=i + 1) for i in range(5)
        ])

        records, pagination = product_service.get_by_sheet("Chairs", page=2, per_page=2)

        assert [r.row_index for r in records] == [3, 4]
        assert (pagination.from_, pagination.to, pagination.last_page) == (3, 4, 3)

    def test_page_past_end_is_empty(self, product_service, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductRecordFactory.create(sheet="Chairs", row_index=i + 1) for i in range(3)
        ])

        records, pagination = product_service.get_by_sheet("Chairs", page=5, per_page=2)

        assert records == []
        assert (pagination.total, pagination.from_, pagination.to) == (3, None, None)

    def test_unknown_sheet_is_empty_page(self, product_service):
        records, pagination = product_service.get_by_sheet("Lamps")

        assert records == []
        assert pagination.total == 0


class TestSearch:
    """Tests for ProductService.search()"""

    def test_search_stored_records(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        result = product_service.search("ergonomic")

        assert [r.model for r in result.records] == ["Chair-100", "Chair-200", "Desk-1"]
        assert result.scores == [1, 1, 1]

    def test_search_one_sheet(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        result = product_service.search("ergonomic", sheet="Desks")

        assert [r.model for r in result.records] == ["Desk-1"]

    def test_search_reads_past_server_row_cap(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)
        mock_supabase.max_rows = 1

        result = product_service.search("ergonomic")

        assert len(result.records) == 3

    def test_search_sort_by_price(self, product_service, mock_supabase, sample_products_list):
        mock_supabase.set_table_data("products", sample_products_list)

        result = product_service.search("ergonomic", sort="price_asc")

        assert [r.price for r in result.records] == [990000, 1250000, None]

    def test_empty_query_never_reaches_store(self, product_service, mock_supabase):
        with pytest.raises(InvalidSearchQueryError):
            product_service.search("   ")

        assert mock_supabase.calls == []


class TestGetProductService:
    """Tests for the service singleton."""

    def test_returns_same_instance(self, mock_db, monkeypatch):
        monkeypatch.setattr("services.product_service._product_service", None)

        first = get_product_service()

        assert isinstance(first, ProductService)
        assert get_product_service() is first
