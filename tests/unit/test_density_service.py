"""
Unit tests for density calculation.

Run: pytest tests/unit/test_density_service.py -v
"""

import pytest

from services.density_service import (
    calculate_density,
    classify_density,
    missing_density_fields,
)
from exceptions import InsufficientDataError


class TestCalculateDensity:
    """Tests for calculate_density()"""

    def test_one_cubic_foot_ten_pounds(self):
        """10 lbs in a 12x12x12 carton is 10 lbs/ft³, class 92.5."""
        result = calculate_density(weight=10, length=12, width=12, height=12)

        assert result.cubic_feet == pytest.approx(1.0)
        assert result.density == pytest.approx(10.0)
        assert result.freight_class == "92.5"
        assert result.nmfc_code == "43940"
        assert result.nmfc_sub == "03"
        assert result.label == "Moderate Density"

    @pytest.mark.parametrize("weight,expected_class", [
        (35, "50"),
        (34.99, "55"),
        (10.5, "85"),
        (10.49, "92.5"),
        (1, "175"),
        (0.99, "200"),
    ])
    def test_boundaries(self, weight, expected_class):
        """With a 1 ft³ carton, weight equals density."""
        result = calculate_density(weight=weight, length=12, width=12, height=12)
        assert result.freight_class == expected_class

    def test_quantity_scales_weight_and_volume(self):
        """Density is unchanged by quantity; totals are not."""
        result = calculate_density(weight=10, length=12, width=12, height=12, quantity=4)

        assert result.total_weight == 40
        assert result.cubic_feet == pytest.approx(4.0)
        assert result.density == pytest.approx(10.0)

    def test_missing_height_raises(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            calculate_density(weight=10, length=12, width=12, height=None)

        assert exc_info.value.for_density == ["height"]
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("field", ["weight", "length", "width", "height"])
    def test_zero_or_negative_never_divides(self, field):
        """Zero and negative inputs are reported, not computed."""
        for bad in (0, -5):
            values = {"weight": 10, "length": 12, "width": 12, "height": 12, field: bad}
            with pytest.raises(InsufficientDataError) as exc_info:
                calculate_density(**values)
            assert field in exc_info.value.for_density

    def test_quantity_below_one_raises(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            calculate_density(weight=10, length=12, width=12, height=12, quantity=0)
        assert exc_info.value.for_density == ["quantity"]


class TestMissingDensityFields:
    """Tests for missing_density_fields()"""

    def test_all_present(self):
        assert missing_density_fields(10, 12, 12, 12) == []

    def test_reports_in_input_order(self):
        assert missing_density_fields(None, 12, None, 0) == ["weight", "width", "height"]


class TestClassifyDensity:

    def test_classify_precomputed_density(self):
        assert classify_density(16).freight_class == "70"
