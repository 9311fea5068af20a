"""
Shared test fixtures.

The mock Supabase client keeps rows in memory and applies filters, so
multi-step flows (publish, rollback, retention) can be asserted on the
resulting table state. Failures can be injected per table and operation.
"""

import os
import sys
from pathlib import Path

# Add project directory to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from contextlib import ExitStack
from datetime import datetime, timezone
from typing import Generator
from uuid import uuid4

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock query builder; filters are applied against the client's rows on execute()."""

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._orders = []
        self._limit = None

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._client._before_execute(self._table, self._operation)
        rows = self._client._rows(self._table)

        if self._operation == "select":
            data = [dict(row) for row in rows if self._matches(row)]
            for column, desc in reversed(self._orders):
                data.sort(
                    key=lambda r: (r.get(column) is None, r.get(column)),
                    reverse=desc
                )
            if self._limit is not None:
                data = data[:self._limit]
            return MockSupabaseResponse(data)

        if self._operation == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in payload:
                row = dict(item)
                row.setdefault("id", str(uuid4()))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(dict(row))
            return MockSupabaseResponse(inserted)

        if self._operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return MockSupabaseResponse(updated)

        if self._operation == "delete":
            deleted = [dict(row) for row in rows if self._matches(row)]
            rows[:] = [row for row in rows if not self._matches(row)]
            return MockSupabaseResponse(deleted)

        raise ValueError(f"Unknown operation {self._operation}")


class MockSupabaseTable:
    """Mock Supabase table bound to the client's row store."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """In-memory Supabase client."""

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._failures: dict[tuple[str, str], int] = {}
        self.calls: dict[tuple[str, str], int] = {}

    def set_table_data(self, table_name: str, data: list):
        """Replace the rows of a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def get_table_data(self, table_name: str) -> list[dict]:
        """Current rows of a table."""
        return [dict(row) for row in self._tables.get(table_name, [])]

    def fail_on(self, table_name: str, operation: str, after: int = 0):
        """Make `operation` on `table_name` raise once `after` calls have succeeded."""
        self._failures[(table_name, operation)] = after

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def _rows(self, name: str) -> list[dict]:
        return self._tables.setdefault(name, [])

    def _before_execute(self, table: str, operation: str):
        key = (table, operation)
        done = self.calls.get(key, 0)
        self.calls[key] = done + 1
        if key in self._failures and done >= self._failures[key]:
            raise Exception(f"simulated {operation} failure on {table}")


# ===================
# FIXTURES
# ===================

_SERVICE_MODULES = [
    ("services.version_service", "_version_services"),
    ("services.publish_service", "_publish_services"),
    ("services.naming_rule_service", "_naming_rule_services"),
    ("services.catalog_service", "_catalog_services"),
    ("services.layout_settings_service", "_layout_settings_services"),
    ("services.upload_service", "_upload_services"),
    ("services.display_service", "_display_services"),
]

_CLIENT_MODULES = [
    "services.version_service",
    "services.publish_service",
    "services.naming_rule_service",
    "services.catalog_service",
    "services.layout_settings_service",
]


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("versions", [
                {"id": "v1", "week_number": 10, "year": 2026, "status": "active"}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with the mock and reset service singletons.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("versions", [...])
            # Now any service created in the test gets the mock
    """
    import importlib

    with ExitStack() as stack:
        stack.enter_context(patch("config.database.get_supabase_client", return_value=mock_supabase))
        for module_name in _CLIENT_MODULES:
            stack.enter_context(patch(f"{module_name}.get_supabase_client", return_value=mock_supabase))
        stack.enter_context(patch("services.publish_service.get_admin_client", return_value=None))
        for module_name, registry in _SERVICE_MODULES:
            module = importlib.import_module(module_name)
            stack.enter_context(patch.dict(getattr(module, registry), clear=True))
        yield mock_supabase


@pytest.fixture
def active_version_row() -> dict:
    """An active produce version."""
    return {
        "id": "version-active",
        "week_number": 10,
        "year": 2026,
        "status": "active",
        "created_by": "user-admin",
        "published_at": "2026-03-02T08:00:00+00:00",
        "created_at": "2026-03-02T08:00:00+00:00",
    }


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("versions", [...])
            response = test_client_with_mock_db.get("/api/produce/versions")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
