"""
Classification suggestion schemas.

ClassificationRequest is the only shape accepted by the resolver; it is
validated once at the API boundary.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum

from models.base import BaseSchema, blank_to_none


class ResolutionSource(str, Enum):
    """Which decision path produced a suggestion."""
    SAVED_CLASSIFICATION = "saved-classification"
    HAZMAT_CLASSIFICATION = "hazmat-classification"
    DENSITY_CALCULATION = "density-calculation"
    RAG_SUGGESTION = "rag-suggestion"


class ClassificationRequest(BaseSchema):
    """
    Input for a classification suggestion.

    Dimensions are in inches, weight in lbs. Zero or negative values are
    accepted here and reported as missing by the density path.
    """

    sku: Optional[str] = None
    product_name: Optional[str] = None
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    quantity: Optional[int] = 1
    is_hazmat: Optional[bool] = None
    hazard_class: Optional[str] = Field(None, max_length=10, examples=["3", "2.1"])
    packing_group: Optional[str] = Field(None, max_length=5, examples=["II"])
    un_number: Optional[str] = Field(None, max_length=10, examples=["UN1993"])

    @field_validator("sku", "product_name", "hazard_class", "packing_group", "un_number", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        return blank_to_none(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        return 1 if v is None else v

    @property
    def has_hazmat_indicators(self) -> bool:
        return bool(self.is_hazmat or self.hazard_class or self.un_number)


class CalculationDetails(BaseSchema):
    weight: float
    cubic_feet: float
    density: float


class ClassificationSuggestion(BaseSchema):
    """Suggested NMFC code and freight class. Never persisted directly."""

    nmfc_code: Optional[str] = None
    nmfc_sub: str = ""
    freight_class: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    density: Optional[float] = None
    hazard_class: Optional[str] = None
    packing_group: Optional[str] = None
    un_number: Optional[str] = None
    proper_shipping_name: Optional[str] = None
    label: str
    note: Optional[str] = None
    calculation_details: Optional[CalculationDetails] = None


class SuggestionResponse(BaseSchema):
    """Successful classification suggestion."""

    success: bool = True
    source: ResolutionSource
    is_hazmat: bool
    suggestion: ClassificationSuggestion
    requires_dot: Optional[bool] = Field(None, alias="requiresDOT")
    requires_placards: Optional[bool] = None
    message: Optional[str] = None
