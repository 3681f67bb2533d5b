"""
Freight classification rule tables.

Static lookups used by the classification engine:
- HAZMAT hazard class -> NMFC code / freight class
- Density (lbs/ft³) -> freight class for non-hazardous goods
- Transport mode -> 49 CFR part, for search boosting

HAZMAT freight classes are always rule-based. They never vary by density.
"""

from types import MappingProxyType
from typing import NamedTuple, Optional


# =============================================================================
# FREIGHT CLASSES
# =============================================================================

# Standard NMFC freight classes, lowest (densest) to highest
FREIGHT_CLASSES = (
    "50", "55", "60", "65", "70", "77.5", "85", "92.5",
    "100", "110", "125", "150", "175", "200", "250", "300", "400", "500",
)


# =============================================================================
# HAZMAT RULES
# =============================================================================

class HazmatMapping(NamedTuple):
    nmfc: str
    freight_class: str


# Keyed by DOT hazard class or division
HAZMAT_NMFC_MAPPINGS = MappingProxyType({
    "1.1": HazmatMapping("48580", "85"),    # Explosives
    "1.2": HazmatMapping("48580", "85"),
    "1.3": HazmatMapping("48580", "85"),
    "1.4": HazmatMapping("48590", "70"),    # Explosives, minor hazard
    "1.5": HazmatMapping("48580", "85"),
    "1.6": HazmatMapping("48580", "85"),
    "2.1": HazmatMapping("48615", "92.5"),  # Flammable gas
    "2.2": HazmatMapping("48620", "85"),    # Non-flammable gas
    "2.3": HazmatMapping("48625", "92.5"),  # Poison gas
    "3": HazmatMapping("48635", "92.5"),    # Flammable liquids
    "4.1": HazmatMapping("48640", "92.5"),  # Flammable solids
    "4.2": HazmatMapping("48645", "100"),   # Spontaneously combustible
    "4.3": HazmatMapping("48650", "100"),   # Dangerous when wet
    "5.1": HazmatMapping("48655", "85"),    # Oxidizers
    "5.2": HazmatMapping("48660", "100"),   # Organic peroxides
    "6.1": HazmatMapping("48665", "92.5"),  # Poison
    "6.2": HazmatMapping("48670", "85"),    # Infectious substances
    "7": HazmatMapping("48675", "85"),      # Radioactive
    "8": HazmatMapping("48680", "92.5"),    # Corrosives
    "9": HazmatMapping("48685", "85"),      # Miscellaneous dangerous goods
})

# Miscellaneous dangerous goods, used when nothing else matches
DEFAULT_HAZMAT_MAPPING = HazmatMapping("48685", "85")


def get_hazmat_mapping(hazard_class: Optional[str]) -> HazmatMapping:
    """
    Resolve NMFC code and freight class for a hazard class.

    Lookup order: exact division ("4.2") -> main class ("4") -> default.

    Args:
        hazard_class: DOT hazard class or division, e.g. "3" or "2.1"

    Returns:
        HazmatMapping for the class
    """
    key = (hazard_class or "").strip()
    if key in HAZMAT_NMFC_MAPPINGS:
        return HAZMAT_NMFC_MAPPINGS[key]

    main_class = key.split(".")[0]
    if main_class in HAZMAT_NMFC_MAPPINGS:
        return HAZMAT_NMFC_MAPPINGS[main_class]

    return DEFAULT_HAZMAT_MAPPING


# =============================================================================
# DENSITY RULES (NON-HAZMAT)
# =============================================================================

# General commodity NMFC used for every density-based result
DENSITY_BASE_NMFC = "43940"

# Cubic inches per cubic foot
CUBIC_INCHES_PER_FOOT = 1728


class DensityTier(NamedTuple):
    min_density: float
    freight_class: str
    nmfc_sub: str
    label: str


# Scanned top-down; first tier with density >= min_density wins
DENSITY_BREAKPOINTS = (
    DensityTier(35, "50", "01", "Very High Density"),
    DensityTier(30, "55", "01", "High Density"),
    DensityTier(22.5, "60", "02", "High Density"),
    DensityTier(15, "70", "02", "Moderate-High Density"),
    DensityTier(10.5, "85", "03", "Moderate Density"),
    DensityTier(9, "92.5", "03", "Moderate Density"),
    DensityTier(7, "100", "04", "Low-Moderate Density"),
    DensityTier(5, "110", "04", "Low Density"),
    DensityTier(4, "125", "04", "Low Density"),
    DensityTier(2, "150", "05", "Very Low Density"),
    DensityTier(1, "175", "06", "Extra Low Density"),
)

# Anything below the last breakpoint
DENSITY_FLOOR_TIER = DensityTier(0, "200", "07", "Ultra Low Density")


def get_density_tier(density: float) -> DensityTier:
    """Return the breakpoint tier for a density in lbs/ft³."""
    for tier in DENSITY_BREAKPOINTS:
        if density >= tier.min_density:
            return tier
    return DENSITY_FLOOR_TIER


# =============================================================================
# PACKING GROUP RULES
# =============================================================================

# NMFC codes whose sub-code follows the packing group
PACKING_GROUP_SUBS = MappingProxyType({
    "44155": MappingProxyType({
        "I": ("1", "92.5"),
        "II": ("2", "85"),
        "III": ("3", "70"),
    }),
})


def suggest_sub_from_packing_group(
    nmfc_code: Optional[str],
    packing_group: Optional[str]
) -> Optional[dict]:
    """
    Suggest NMFC sub-code and class for codes that key off packing group.

    Returns:
        dict with nmfc_code, nmfc_sub, freight_class, rationale; or None
    """
    code = (nmfc_code or "").strip()
    pg = (packing_group or "").strip().upper()
    subs = PACKING_GROUP_SUBS.get(code)
    if not subs or pg not in subs:
        return None

    nmfc_sub, freight_class = subs[pg]
    return {
        "nmfc_code": code,
        "nmfc_sub": nmfc_sub,
        "freight_class": freight_class,
        "rationale": f"PG {pg} → {code}-{nmfc_sub} (Class {freight_class})",
    }


# =============================================================================
# CONFIDENCE BY RESOLUTION PATH
# =============================================================================

SAVED_CLASSIFICATION_CONFIDENCE = 0.95
HAZMAT_CONFIDENCE = 0.9
DENSITY_CONFIDENCE = 0.85


# =============================================================================
# SEARCH RULES
# =============================================================================

# 49 CFR parts by transport mode
TRANSPORT_MODE_PARTS = MappingProxyType({
    "highway": "177",
    "rail": "174",
    "air": "175",
    "vessel": "176",
})

UN_NUMBER_BOOST = 1.5
TRANSPORT_MODE_BOOST = 1.3

# Minimum cosine similarity by use case
MIN_SCORE_SEARCH = 0.3
MIN_SCORE_CHAT = 0.4
