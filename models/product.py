"""
Product schemas.

Products are owned by the external catalog and are read-only here.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin


class ProductResponse(BaseSchema, TimestampMixin):
    """Catalog product as stored in the products table."""

    id: str = Field(..., description="Product UUID")
    sku: str = Field(..., description="Product SKU (unique)")
    name: Optional[str] = Field(None, description="Product name")
    is_hazardous: bool = Field(False, description="Regulated as hazardous material")
    un_number: Optional[str] = Field(None, description="UN identification number")
    cas_number: Optional[str] = Field(None, description="CAS registry number")
    weight: Optional[float] = Field(None, description="Unit weight (lbs)")
    length: Optional[float] = Field(None, description="Unit length (in)")
    width: Optional[float] = Field(None, description="Unit width (in)")
    height: Optional[float] = Field(None, description="Unit height (in)")
    is_active: bool = Field(True, description="Whether product is active")


class UnlinkedProduct(BaseSchema):
    """Product with no approved freight classification."""

    product_id: str
    sku: str
    name: Optional[str] = None
    is_hazardous: bool = False
    cas_number: Optional[str] = None
    un_number: Optional[str] = None
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @classmethod
    def from_product(cls, product: ProductResponse) -> "UnlinkedProduct":
        return cls(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            is_hazardous=product.is_hazardous,
            cas_number=product.cas_number,
            un_number=product.un_number,
            weight=product.weight,
            length=product.length,
            width=product.width,
            height=product.height,
        )


class UnlinkedProductsResponse(BaseSchema):
    """Page of unclassified products with summary counts."""

    products: list[UnlinkedProduct]
    total_count: int
    has_more: bool
    hazardous_products: int
    non_hazardous_products: int
