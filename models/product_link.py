"""
Product-classification link schemas.

A link ties a catalog product to a freight classification and moves
through pending (is_approved=False) to approved (is_approved=True).
"""

from pydantic import Field, field_validator
from typing import Optional, Any
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, TimestampMixin, blank_to_none, normalize_freight_class


class LinkSource(str, Enum):
    """How a link was produced."""
    MANUAL = "manual"
    DENSITY_CALCULATION = "density-calculation"
    HAZMAT_CLASSIFICATION = "hazmat-classification"
    SAVED_CLASSIFICATION = "saved-classification"
    RAG_SUGGESTION = "rag-suggestion"


class ProductLinkCreate(BaseSchema):
    """
    Create a product-classification link.

    Required: product_id, classification_id
    New links start unapproved unless is_approved is sent.
    """

    product_id: str = Field(..., min_length=1)
    classification_id: str = Field(..., min_length=1)
    override_freight_class: Optional[str] = Field(None, max_length=10)
    override_packaging: Optional[str] = None
    confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    link_source: LinkSource = LinkSource.MANUAL
    is_approved: bool = False
    created_by: Optional[str] = Field(None, max_length=255)

    @field_validator("override_freight_class", mode="before")
    @classmethod
    def canonical_override(cls, v):
        return normalize_freight_class(blank_to_none(v))


class ProductLinkUpdate(BaseSchema):
    """
    Update an existing link.

    All fields except id optional - only fields present in the request
    body are written.
    """

    id: str = Field(..., min_length=1)
    override_freight_class: Optional[str] = Field(None, max_length=10)
    override_packaging: Optional[str] = None
    confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    link_source: Optional[LinkSource] = None
    is_approved: Optional[bool] = None
    approved_by: Optional[str] = Field(None, max_length=255)

    @field_validator("override_freight_class", mode="before")
    @classmethod
    def canonical_override(cls, v):
        return normalize_freight_class(blank_to_none(v))


class ProductLinkResponse(BaseSchema, TimestampMixin):
    """Link row as stored in product_freight_links."""

    id: str
    product_id: str
    classification_id: str
    override_freight_class: Optional[str] = None
    override_packaging: Optional[str] = None
    confidence_score: Optional[float] = None
    link_source: Optional[str] = None
    is_approved: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_by: Optional[str] = None


class ProductLinkDetail(ProductLinkResponse):
    """Link joined with its product and classification."""

    # Product details
    product_sku: Optional[str] = None
    product_name: Optional[str] = None
    product_is_hazardous: Optional[bool] = None
    product_cas_number: Optional[str] = None
    product_un_number: Optional[str] = None

    # Classification details
    classification_description: Optional[str] = None
    freight_class: Optional[str] = None
    nmfc_code: Optional[str] = None
    is_hazmat: Optional[bool] = None
    hazmat_class: Optional[str] = None
    packing_group: Optional[str] = None


class ClassificationCheckRequest(BaseSchema):
    sku: str = Field(..., min_length=1)


class ClassificationCheckResponse(BaseSchema):
    """Whether a SKU already has an approved classification."""

    success: bool = True
    has_classification: bool
    classification: Optional[dict[str, Any]] = None
    message: Optional[str] = None
