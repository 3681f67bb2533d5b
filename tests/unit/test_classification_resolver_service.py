"""
Unit tests for ClassificationResolver.

Resolution order: saved classification -> HAZMAT -> density -> error.

Run: pytest tests/unit/test_classification_resolver_service.py -v
"""

import pytest

from models.suggestion import ClassificationRequest, ResolutionSource
from exceptions import InsufficientDataError
from tests.factories import (
    FreightClassificationFactory,
    ProductFactory,
    ProductLinkFactory,
)


def _request(**fields) -> ClassificationRequest:
    return ClassificationRequest(**fields)


ONE_CUBIC_FOOT = {"length": 12, "width": 12, "height": 12}


class TestDensityPath:

    def test_ten_pounds_per_cubic_foot(self, resolver):
        """10 lbs, 12x12x12 in, qty 1 -> density 10 -> class 92.5."""
        result = resolver.resolve(_request(weight=10, **ONE_CUBIC_FOOT))

        assert result.source == ResolutionSource.DENSITY_CALCULATION
        assert result.is_hazmat is False
        suggestion = result.suggestion
        assert suggestion.freight_class == "92.5"
        assert suggestion.nmfc_code == "43940"
        assert suggestion.nmfc_sub == "03"
        assert suggestion.density == 10.0
        assert suggestion.confidence == 0.85
        assert suggestion.label == "Density 10.00 lbs/ft³ → NMFC 43940-03 (Class 92.5)"
        assert suggestion.description == "General Commodity - Moderate Density (10.00 lbs/ft³)"
        assert suggestion.calculation_details.cubic_feet == 1.0

    def test_product_name_in_description(self, resolver):
        result = resolver.resolve(_request(product_name="Steel Brackets", weight=40, **ONE_CUBIC_FOOT))

        assert result.suggestion.freight_class == "50"
        assert result.suggestion.description.startswith("Steel Brackets - Very High Density")

    def test_null_quantity_defaults_to_one(self, resolver):
        result = resolver.resolve(_request(weight=10, quantity=None, **ONE_CUBIC_FOOT))
        assert result.suggestion.density == 10.0


class TestHazmatPath:

    def test_hazard_class_three(self, resolver):
        result = resolver.resolve(_request(hazard_class="3", packing_group="II", product_name="Acetone"))

        assert result.source == ResolutionSource.HAZMAT_CLASSIFICATION
        assert result.is_hazmat is True
        assert result.requires_dot is True
        assert result.requires_placards is True
        suggestion = result.suggestion
        assert suggestion.nmfc_code == "48635"
        assert suggestion.freight_class == "92.5"
        assert suggestion.nmfc_sub == ""
        assert suggestion.confidence == 0.9
        assert suggestion.description == "HAZMAT Class 3 PG II - Acetone"
        assert suggestion.note == "HAZMAT uses class-specific NMFC codes, not density-based classification"

    def test_hazmat_beats_density(self, resolver):
        """Dimensions that would give class 50 do not change a hazmat result."""
        result = resolver.resolve(_request(hazard_class="8", weight=40, **ONE_CUBIC_FOOT))

        assert result.source == ResolutionSource.HAZMAT_CLASSIFICATION
        assert result.suggestion.nmfc_code == "48680"
        assert result.suggestion.freight_class == "92.5"
        assert result.suggestion.density is None

    def test_unknown_division_uses_main_class(self, resolver):
        result = resolver.resolve(_request(hazard_class="3.9"))
        assert result.suggestion.nmfc_code == "48635"

    def test_is_hazmat_without_class_uses_default(self, resolver):
        result = resolver.resolve(_request(is_hazmat=True))

        assert result.suggestion.nmfc_code == "48685"
        assert result.suggestion.freight_class == "85"
        assert result.suggestion.description == "HAZMAT Class unspecified - Chemical Product"

    def test_un_number_resolved_from_linked_product(self, mock_supabase, resolver):
        mock_supabase.set_table_data("products", [
            ProductFactory.create_hazardous(id="p-1", un_number="UN1090")
        ])
        mock_supabase.set_table_data("freight_classifications", [
            FreightClassificationFactory.create_hazmat(id="c-1", hazmat_class="3")
        ])
        mock_supabase.set_table_data("product_freight_links", [
            ProductLinkFactory.create_approved("p-1", "c-1")
        ])

        result = resolver.resolve(_request(un_number="UN1090"))

        assert result.suggestion.hazard_class == "3"
        assert result.suggestion.nmfc_code == "48635"
        assert result.suggestion.un_number == "UN1090"

    def test_un_number_resolved_from_corpus(self, resolver):
        result = resolver.resolve(_request(un_number="UN1830"))

        assert result.suggestion.hazard_class == "8"
        assert result.suggestion.nmfc_code == "48680"

    def test_unknown_un_number_uses_default(self, resolver):
        result = resolver.resolve(_request(un_number="UN9999"))

        assert result.suggestion.hazard_class is None
        assert result.suggestion.nmfc_code == "48685"

    def test_serializes_dot_flags(self, resolver):
        body = resolver.resolve(_request(hazard_class="3")).model_dump(by_alias=True)

        assert body["requiresDOT"] is True
        assert body["requiresPlacards"] is True
        assert body["source"] == "hazmat-classification"


class TestSavedClassificationPath:

    @pytest.fixture
    def saved(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(id="p-1", sku="BOX-1", weight=2, length=24, width=24, height=24)
        ])
        mock_supabase.set_table_data("freight_classifications", [
            FreightClassificationFactory.create(
                id="c-1",
                description="Plastic Containers",
                nmfc_code="43940-01",
                nmfc_sub=None,
                freight_class="50",
            )
        ])
        mock_supabase.set_table_data("product_freight_links", [
            ProductLinkFactory.create_approved("p-1", "c-1")
        ])
        return mock_supabase

    def test_returned_verbatim(self, saved, resolver):
        result = resolver.resolve(_request(sku="BOX-1"))

        assert result.source == ResolutionSource.SAVED_CLASSIFICATION
        assert result.message == "Using previously saved classification"
        suggestion = result.suggestion
        assert suggestion.nmfc_code == "43940"
        assert suggestion.nmfc_sub == "01"
        assert suggestion.freight_class == "50"
        assert suggestion.confidence == 0.95
        assert suggestion.label == "Plastic Containers - NMFC 43940-01 (Class 50)"

    def test_ignores_other_inputs(self, saved, resolver):
        """Hazmat and dimension fields do not override a saved classification."""
        result = resolver.resolve(_request(
            sku="BOX-1", hazard_class="3", weight=100, **ONE_CUBIC_FOOT
        ))

        assert result.source == ResolutionSource.SAVED_CLASSIFICATION
        assert result.suggestion.freight_class == "50"
        assert result.suggestion.confidence == 0.95

    def test_link_confidence_is_used(self, saved, resolver):
        link = saved.rows("product_freight_links")[0]
        link["confidence_score"] = 0.7
        saved.set_table_data("product_freight_links", [link])

        assert resolver.resolve(_request(sku="BOX-1")).suggestion.confidence == 0.7

    def test_zero_link_confidence_uses_default(self, saved, resolver):
        link = saved.rows("product_freight_links")[0]
        link["confidence_score"] = 0.0
        saved.set_table_data("product_freight_links", [link])

        assert resolver.resolve(_request(sku="BOX-1")).suggestion.confidence == 0.95

    def test_pending_link_is_not_used(self, saved, resolver):
        """Falls through to density using the product's own dimensions."""
        link = saved.rows("product_freight_links")[0]
        link["is_approved"] = False
        saved.set_table_data("product_freight_links", [link])

        result = resolver.resolve(_request(sku="BOX-1"))

        # 2 lbs in 8 ft³
        assert result.source == ResolutionSource.DENSITY_CALCULATION
        assert result.suggestion.density == 0.25
        assert result.suggestion.freight_class == "200"

    def test_request_dimensions_win_over_product(self, saved, resolver):
        saved.set_table_data("product_freight_links", [])

        result = resolver.resolve(_request(sku="BOX-1", weight=10, **ONE_CUBIC_FOOT))

        assert result.suggestion.density == 10.0

    def test_saved_for_sku(self, saved, resolver):
        assert resolver.saved_for_sku("BOX-1").suggestion.freight_class == "50"
        assert resolver.saved_for_sku("NOPE") is None


class TestInsufficientData:

    def test_height_missing(self, resolver):
        with pytest.raises(InsufficientDataError) as exc_info:
            resolver.resolve(_request(weight=10, length=12, width=12))

        error = exc_info.value
        assert error.for_density == ["height"]
        assert error.for_hazmat == ["hazardClass or unNumber"]
        body = error.to_dict()
        assert body["success"] is False
        assert body["error"] == "Insufficient data for classification"
        assert "height" in body["missingFields"]["forDensity"]

    def test_nothing_supplied(self, resolver):
        with pytest.raises(InsufficientDataError) as exc_info:
            resolver.resolve(_request())

        assert exc_info.value.for_density == ["weight", "length", "width", "height"]

    def test_unknown_sku_without_data(self, resolver):
        with pytest.raises(InsufficientDataError):
            resolver.resolve(_request(sku="NOPE"))

    def test_zero_dimension(self, resolver):
        with pytest.raises(InsufficientDataError) as exc_info:
            resolver.resolve(_request(weight=10, length=0, width=12, height=12))

        assert exc_info.value.for_density == ["length"]
