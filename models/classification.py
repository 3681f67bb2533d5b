"""
Freight classification schemas.

A classification is an administrator-maintained NMFC entry. Its identity
is immutable once product links reference it.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema, TimestampMixin, blank_to_none, normalize_freight_class


class FreightClassificationCreate(BaseSchema):
    """
    Create a freight classification.

    Required: description, freight_class
    Hazmat entries also require hazmat_class.
    """

    description: str = Field(..., min_length=1, max_length=500)
    nmfc_code: Optional[str] = Field(None, max_length=20, examples=["48635", "43940-03"])
    nmfc_sub: Optional[str] = Field(None, max_length=10)
    freight_class: str = Field(..., description="NMFC freight class", examples=["92.5"])
    is_hazmat: bool = False
    hazmat_class: Optional[str] = Field(None, max_length=10, examples=["3", "2.1"])
    packing_group: Optional[str] = Field(None, max_length=5, examples=["II"])
    packaging_instructions: Optional[str] = None
    special_handling: Optional[str] = None
    min_density: Optional[float] = Field(None, ge=0)
    max_density: Optional[float] = Field(None, ge=0)

    @field_validator("freight_class", mode="before")
    @classmethod
    def canonical_freight_class(cls, v):
        return normalize_freight_class(v)

    @field_validator("nmfc_code", "nmfc_sub", "hazmat_class", "packing_group", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        return blank_to_none(v)


class FreightClassificationResponse(BaseSchema, TimestampMixin):
    """Freight classification as stored."""

    id: str
    description: str
    nmfc_code: Optional[str] = None
    nmfc_sub: Optional[str] = None
    freight_class: str
    is_hazmat: bool = False
    hazmat_class: Optional[str] = None
    packing_group: Optional[str] = None
    packaging_instructions: Optional[str] = None
    special_handling: Optional[str] = None
    min_density: Optional[float] = None
    max_density: Optional[float] = None

    @field_validator("freight_class", mode="before")
    @classmethod
    def canonical_freight_class(cls, v):
        return normalize_freight_class(v)

    def split_nmfc(self) -> tuple[Optional[str], str]:
        """
        Split a combined NMFC code ("43940-01") into code and sub.

        Falls back to the stored nmfc_sub when the code is not combined.
        """
        code = self.nmfc_code
        if code and "-" in code:
            base, sub = code.split("-", 1)
            return base, sub
        return code, self.nmfc_sub or ""
