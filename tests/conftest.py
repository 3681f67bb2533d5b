"""
Shared test fixtures.

The Supabase client is replaced by an in-memory fake that keeps rows per
table and understands the query-builder calls the services make.
"""

import os
import sys
from pathlib import Path

# Add project directory to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Required settings, before anything imports config
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")

import copy
import re
import pytest
from unittest.mock import patch
from datetime import datetime, timedelta
from typing import Any, Generator, Optional
from uuid import uuid4

from models.search import CorpusIndex
from services.cache_service import InMemoryTTLCache
from services.embedding_service import EmbeddingService, HashingEmbeddingStrategy
from services.product_service import ProductService
from services.freight_classification_service import FreightClassificationService
from services.product_link_service import ProductLinkService
from services.similarity_service import SimilarityService
from services.classification_resolver_service import ClassificationResolver
from tests.factories import CorpusDocumentFactory, TEST_DIMENSIONS


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockAPIError(Exception):
    """Stands in for postgrest.exceptions.APIError."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: Any = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else (len(self.data) if isinstance(self.data, list) else 1)


def _ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.match(regex, str(value), re.IGNORECASE | re.DOTALL) is not None


class MockSupabaseQuery:
    """Chainable query against one in-memory table."""

    def __init__(self, table: "MockSupabaseTable", operation: str, payload: Any = None):
        self._table = table
        self._operation = operation
        self._payload = payload
        self._columns = "*"
        self._count = None
        self._filters = []
        self._order = []
        self._range = None
        self._limit = None
        self._is_single = False

    def select(self, columns: str = "*", count: Optional[str] = None, **kwargs):
        self._columns = columns
        self._count = count
        return self

    # Filters

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        allowed = list(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def or_(self, expression: str):
        conditions = []
        for clause in expression.split(","):
            column, operator, pattern = clause.strip().split(".", 2)
            if operator != "ilike":
                raise ValueError(f"Unsupported operator in mock or_: {operator}")
            conditions.append((column, pattern))
        self._filters.append(
            lambda row: any(_ilike(row.get(col), pat) for col, pat in conditions)
        )
        return self

    # Modifiers

    def order(self, column, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._is_single = True
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def _project(self, row: dict) -> dict:
        if self._columns.strip() == "*":
            return copy.deepcopy(row)
        columns = [c.strip() for c in self._columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in columns}

    def execute(self) -> MockSupabaseResponse:
        handler = getattr(self, f"_execute_{self._operation}")
        return handler()

    def _execute_select(self) -> MockSupabaseResponse:
        rows = [r for r in self._table.rows if self._matches(r)]
        total = len(rows)

        for column, desc in reversed(self._order):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            rows = present + missing

        if self._range is not None:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        data = [self._project(r) for r in rows]
        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=1 if data else 0)
        return MockSupabaseResponse(data=data, count=total if self._count else None)

    def _execute_insert(self) -> MockSupabaseResponse:
        items = self._payload if isinstance(self._payload, list) else [self._payload]
        inserted = []
        for item in items:
            row = copy.deepcopy(item)
            self._table.check_unique(row)
            row.setdefault("id", str(uuid4()))
            created = self._table.next_timestamp()
            row.setdefault("created_at", created)
            row.setdefault("updated_at", created)
            self._table.rows.append(row)
            inserted.append(copy.deepcopy(row))
        return MockSupabaseResponse(data=inserted)

    def _execute_update(self) -> MockSupabaseResponse:
        updated = []
        for row in self._table.rows:
            if self._matches(row):
                row.update(copy.deepcopy(self._payload))
                updated.append(copy.deepcopy(row))
        return MockSupabaseResponse(data=updated)

    def _execute_delete(self) -> MockSupabaseResponse:
        removed = [r for r in self._table.rows if self._matches(r)]
        self._table.rows[:] = [r for r in self._table.rows if not self._matches(r)]
        return MockSupabaseResponse(data=removed)


class MockSupabaseTable:
    """In-memory table with optional unique constraints."""

    _BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)

    def __init__(self, name: str, rows: list, unique: list[tuple[str, ...]]):
        self.name = name
        self.rows = rows
        self.unique = unique
        self._clock = 0

    def next_timestamp(self) -> str:
        # Strictly increasing so created_at ordering is deterministic
        self._clock += 1
        return (self._BASE_TIME + timedelta(seconds=len(self.rows) + self._clock)).isoformat() + "Z"

    def check_unique(self, row: dict) -> None:
        for columns in self.unique:
            key = tuple(row.get(c) for c in columns)
            if any(tuple(r.get(c) for c in columns) == key for r in self.rows):
                raise MockAPIError(
                    f'duplicate key value violates unique constraint "{self.name}_{"_".join(columns)}_key"',
                    code="23505"
                )

    def select(self, *args, **kwargs) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "select").select(*args, **kwargs)

    def insert(self, data) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "update", data)

    def delete(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client backed by per-table row lists."""

    def __init__(self):
        self._rows: dict[str, list] = {}
        self._unique: dict[str, list[tuple[str, ...]]] = {
            "product_freight_links": [("product_id", "classification_id")],
        }

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Replace a table's rows."""
        self._rows[table_name] = copy.deepcopy(data)

    def rows(self, table_name: str) -> list:
        """Current rows of a table (copies)."""
        return copy.deepcopy(self._rows.get(table_name, []))

    def table(self, name: str) -> MockSupabaseTable:
        rows = self._rows.setdefault(name, [])
        return MockSupabaseTable(name, rows, self._unique.get(name, []))


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
                {"id": "1", "sku": "TEST", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service constructed without an explicit client gets the mock.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.freight_classification_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.product_link_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def cache() -> InMemoryTTLCache:
    return InMemoryTTLCache()


@pytest.fixture
def embedding_service() -> EmbeddingService:
    """Offline embeddings: local hashing only."""
    return EmbeddingService(strategies=[HashingEmbeddingStrategy()])


@pytest.fixture
def corpus_index() -> CorpusIndex:
    """Small reference corpus covering every source category."""
    return CorpusIndex(
        documents=CorpusDocumentFactory.create_reference_set(),
        model="local-hash",
        dimensions=TEST_DIMENSIONS,
        stats={"sources": {"hmt": 3, "cfr": 2, "erg": 1, "products": 1}},
    )


@pytest.fixture
def similarity_service(corpus_index, embedding_service) -> SimilarityService:
    return SimilarityService(index=corpus_index, embedding_service=embedding_service)


@pytest.fixture
def product_service(mock_supabase) -> ProductService:
    return ProductService(db=mock_supabase)


@pytest.fixture
def classification_service(mock_supabase, cache) -> FreightClassificationService:
    return FreightClassificationService(db=mock_supabase, cache=cache)


@pytest.fixture
def link_service(mock_supabase, cache, product_service, classification_service) -> ProductLinkService:
    return ProductLinkService(
        db=mock_supabase,
        cache=cache,
        product_service=product_service,
        classification_service=classification_service,
    )


@pytest.fixture
def resolver(product_service, link_service, classification_service, similarity_service) -> ClassificationResolver:
    return ClassificationResolver(
        product_service=product_service,
        link_service=link_service,
        classification_service=classification_service,
        similarity_service=similarity_service,
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(
    mock_supabase,
    link_service,
    classification_service,
    similarity_service,
    resolver
):
    """
    FastAPI test client wired to the in-memory database and corpus.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/product-links")
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.classification.get_classification_resolver", return_value=resolver), \
         patch("routes.product_links.get_product_link_service", return_value=link_service), \
         patch("routes.freight_classifications.get_freight_classification_service", return_value=classification_service), \
         patch("routes.search.get_similarity_service", return_value=similarity_service), \
         patch("routes.search.get_classification_resolver", return_value=resolver), \
         patch("main.check_connection", return_value={"status": "healthy", "products_count": 0, "classifications_count": 0}):
        yield TestClient(app)
