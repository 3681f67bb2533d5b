"""
Unit tests for ProductService.

Run: pytest tests/unit/test_product_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from services.product_service import ProductService
from exceptions import ProductNotFoundError, DatabaseError
from tests.factories import ProductFactory


class TestProductServiceGetById:
    """Tests for ProductService.get_by_id()"""

    def test_get_by_id_returns_product(self, mock_supabase, product_service):
        """Should return product when found."""
        # Arrange
        product = ProductFactory.create(id="p-1", sku="ACE-55", is_hazardous=True)
        mock_supabase.set_table_data("products", [product])

        # Act
        result = product_service.get_by_id("p-1")

        # Assert
        assert result.sku == "ACE-55"
        assert result.is_hazardous is True

    def test_get_by_id_not_found_raises_error(self, product_service):
        """Should raise ProductNotFoundError when product doesn't exist."""
        with pytest.raises(ProductNotFoundError) as exc_info:
            product_service.get_by_id("nonexistent-id")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"

    def test_database_failure_raises_database_error(self):
        """Should wrap client errors in DatabaseError."""
        db = MagicMock()
        db.table.side_effect = RuntimeError("connection reset")
        service = ProductService(db=db)

        with pytest.raises(DatabaseError) as exc_info:
            service.get_by_id("p-1")

        assert exc_info.value.status_code == 500


class TestProductServiceGetBySku:
    """Tests for ProductService.get_by_sku()"""

    def test_get_by_sku_returns_product(self, mock_supabase, product_service):
        mock_supabase.set_table_data("products", [ProductFactory.create(sku="ACE-55")])

        result = product_service.get_by_sku(" ACE-55 ")

        assert result is not None
        assert result.sku == "ACE-55"

    def test_get_by_sku_missing_returns_none(self, product_service):
        assert product_service.get_by_sku("NOPE") is None


class TestProductServiceLookups:

    def test_get_by_ids_skips_missing(self, mock_supabase, product_service):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p-1"),
            ProductFactory.create(id="p-2"),
        ])

        result = product_service.get_by_ids(["p-1", "p-3"])

        assert list(result) == ["p-1"]

    def test_get_by_ids_empty(self, product_service):
        assert product_service.get_by_ids([]) == {}

    def test_find_by_un_number(self, mock_supabase, product_service):
        mock_supabase.set_table_data("products", [
            ProductFactory.create_hazardous(id="p-1", un_number="UN1993"),
            ProductFactory.create_hazardous(id="p-2", un_number="UN1830"),
        ])

        result = product_service.find_by_un_number("UN1993")

        assert [p.id for p in result] == ["p-1"]

    def test_get_active_filters_inactive_and_hazardous(self, mock_supabase, product_service):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p-1", sku="B"),
            ProductFactory.create_hazardous(id="p-2", sku="A"),
            ProductFactory.create(id="p-3", sku="C", is_active=False),
        ])

        assert [p.sku for p in product_service.get_active()] == ["A", "B"]
        assert [p.sku for p in product_service.get_active(hazardous=True)] == ["A"]
