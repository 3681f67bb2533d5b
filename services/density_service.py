"""
Density calculation for non-hazardous freight.

density = total weight (lbs) / total volume (ft³), classified against the
NMFC density breakpoints. Missing, zero or negative inputs are reported as
insufficient data; nothing here ever divides by zero.
"""

from dataclasses import dataclass
from typing import Optional

from config.freight_rules import (
    CUBIC_INCHES_PER_FOOT,
    DENSITY_BASE_NMFC,
    DensityTier,
    get_density_tier,
)
from exceptions import InsufficientDataError


DENSITY_FIELDS = ("weight", "length", "width", "height")


@dataclass(frozen=True)
class DensityResult:
    """Density with the tier it falls in."""

    density: float
    cubic_feet: float
    total_weight: float
    tier: DensityTier

    @property
    def freight_class(self) -> str:
        return self.tier.freight_class

    @property
    def nmfc_code(self) -> str:
        return DENSITY_BASE_NMFC

    @property
    def nmfc_sub(self) -> str:
        return self.tier.nmfc_sub

    @property
    def label(self) -> str:
        return self.tier.label


def _is_positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def missing_density_fields(
    weight: Optional[float],
    length: Optional[float],
    width: Optional[float],
    height: Optional[float],
    quantity: Optional[int] = 1,
) -> list[str]:
    """
    List the density inputs that are absent or not usable.

    Args:
        weight: Unit weight in lbs
        length, width, height: Unit dimensions in inches
        quantity: Number of units (must be >= 1)

    Returns:
        Field names in input order; empty when density can be computed
    """
    values = {"weight": weight, "length": length, "width": width, "height": height}
    missing = [name for name in DENSITY_FIELDS if not _is_positive(values[name])]
    if quantity is None or quantity < 1:
        missing.append("quantity")
    return missing


def calculate_density(
    weight: Optional[float],
    length: Optional[float],
    width: Optional[float],
    height: Optional[float],
    quantity: Optional[int] = 1,
) -> DensityResult:
    """
    Compute density and its freight class tier.

    Returns:
        DensityResult

    Raises:
        InsufficientDataError: If any input is missing, zero or negative
    """
    missing = missing_density_fields(weight, length, width, height, quantity)
    if missing:
        raise InsufficientDataError(for_density=missing, for_hazmat=[])

    cubic_feet = (length * width * height * quantity) / CUBIC_INCHES_PER_FOOT
    total_weight = weight * quantity
    density = total_weight / cubic_feet

    return DensityResult(
        density=density,
        cubic_feet=cubic_feet,
        total_weight=total_weight,
        tier=get_density_tier(density),
    )


def classify_density(density: float) -> DensityTier:
    """Freight class tier for an already-computed density (lbs/ft³)."""
    return get_density_tier(density)
