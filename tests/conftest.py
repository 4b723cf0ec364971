"""
Shared test fixtures.

The Supabase mock keeps table rows in memory and applies eq / in_ filters,
ordering, ranges, inserts and deletes, so store behaviour can be asserted
on the resulting table contents.
"""

import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator, Optional

from tests.factories import ProductRecordFactory

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable", action: str, payload=None, count: Optional[str] = None):
        self._table = table
        self._action = action
        self._payload = payload
        self._count = count
        self._filters = []
        self._orders = []
        self._range = None
        self._limit = None

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False, **kwargs):
        self._orders.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matching(self) -> list:
        return [row for row in self._table.rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockSupabaseResponse:
        client = self._table.client
        client.calls.append((self._table.name, self._action))

        failure = client.failures.get(self._action)
        if failure is not None:
            if failure["after"] > 0:
                failure["after"] -= 1
            elif failure["times"] is None or failure["times"] > 0:
                if failure["times"] is not None:
                    failure["times"] -= 1
                raise RuntimeError(f"simulated {self._action} failure")

        if self._action == "insert":
            return MockSupabaseResponse(data=self._table.add(self._payload))

        if self._action == "delete":
            doomed = self._matching()
            self._table.rows = [row for row in self._table.rows if row not in doomed]
            return MockSupabaseResponse(data=[dict(row) for row in doomed])

        rows = self._matching()
        # Stable sorts applied last-key-first give multi-column ordering
        for column, desc in reversed(self._orders):
            rows.sort(key=lambda row: row.get(column), reverse=desc)
        total = len(rows)
        if self._range is not None:
            start, end = self._range
            # PostgREST answers 416 for a counted range past the last row
            if self._count and start > 0 and start >= total:
                raise RuntimeError("Requested range not satisfiable")
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        if client.max_rows is not None:
            rows = rows[:client.max_rows]
        return MockSupabaseResponse(
            data=[dict(row) for row in rows],
            count=total if self._count else None
        )


class MockSupabaseTable:
    """Mock Supabase table backed by a shared row list."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name

    @property
    def rows(self) -> list:
        return self.client.tables.setdefault(self.name, [])

    @rows.setter
    def rows(self, value: list):
        self.client.tables[self.name] = value

    def add(self, data) -> list:
        if isinstance(data, dict):
            data = [data]
        now = datetime.now(timezone.utc).isoformat()
        added = []
        for item in data:
            row = dict(item)
            if row.get("id") is None:
                row["id"] = self.client.next_id()
            row.setdefault("created_at", now)
            row.setdefault("updated_at", None)
            self.rows.append(row)
            added.append(dict(row))
        return added

    def select(self, *args, count: Optional[str] = None, **kwargs):
        return MockSupabaseQuery(self, "select", count=count)

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", payload=data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self.tables: dict[str, list] = {}
        self.calls: list[tuple[str, str]] = []
        # action -> {"after": successes before failing, "times": failures (None = always)}
        self.failures: dict[str, dict] = {}
        # Server-side cap on rows per select (PostgREST db-max-rows)
        self.max_rows: Optional[int] = None
        self._last_id = 0

    def next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def set_table_data(self, table_name: str, data: list):
        """Seed a table; rows keep their ids and later inserts continue after them."""
        self.tables[table_name] = [dict(row) for row in data]
        ids = [row["id"] for row in data if isinstance(row.get("id"), int)]
        self._last_id = max([self._last_id, *ids])

    def fail_on(self, action: str, after: int = 0, times: Optional[int] = None):
        """Make `action` raise after `after` successful executions, `times` times (None = always)."""
        self.failures[action] = {"after": after, "times": times}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                ProductRecordFactory.create(sheet="Chairs")
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def product_service(mock_db):
    """ProductService wired to the mock store."""
    from services.product_service import ProductService
    return ProductService()


@pytest.fixture
def sample_grid() -> list:
    """Office chair price list with a title preamble, carry-down and Rupiah prices."""
    return [
        ["PRICE LIST 2025", "", "", ""],
        ["", "", "", ""],
        ["Model", "Description", "Series", "Harga"],
        ["Chair-100", "Ergonomic chair", "Executive", "Rp 1.250.000"],
        ["Chair-200", "", "", "1,250,000"],
        ["", "Spare armrest", "Budget", 450000],
    ]


@pytest.fixture
def sample_products_list() -> list:
    """Stored product rows across two sheets."""
    ProductRecordFactory.reset_counter()
    return [
        ProductRecordFactory.create(
            sheet="Chairs", row_index=1, model="Chair-100",
            description="Ergonomic chair", price=1250000,
            details={"Series": "Executive"}
        ),
        ProductRecordFactory.create(
            sheet="Chairs", row_index=2, model="Chair-200",
            description="Ergonomic chair", price=990000,
            details={"Series": "Executive"}
        ),
        ProductRecordFactory.create(
            sheet="Desks", row_index=1, model="Desk-1",
            description="Standing desk", price=None,
            details={"TITLE": "Ergonomic desk"}
        ),
    ]
