"""
Product-classification link routes.

Approval workflow: links are created pending and approved via PUT with
isApproved=true. Deletes are hard deletes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.product import UnlinkedProductsResponse
from models.product_link import (
    ProductLinkCreate,
    ProductLinkUpdate,
    ProductLinkResponse,
    ProductLinkDetail,
    ClassificationCheckRequest,
    ClassificationCheckResponse,
)
from services.product_link_service import get_product_link_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=list[ProductLinkDetail])
async def list_product_links(
    product_id: Optional[str] = Query(None, alias="productId", description="Filter by product"),
    classification_id: Optional[str] = Query(None, alias="classificationId", description="Filter by classification"),
    approved: Optional[bool] = Query(None, description="Filter by approval state"),
    limit: int = Query(100, ge=1, description="Max rows (capped at 500)"),
    offset: int = Query(0, ge=0, description="Rows to skip")
):
    """
    List links joined with product and classification details.

    Newest first.
    """
    try:
        service = get_product_link_service()
        return service.get_all(
            product_id=product_id,
            classification_id=classification_id,
            approved=approved,
            limit=limit,
            offset=offset
        )

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductLinkResponse, status_code=201)
async def create_product_link(data: ProductLinkCreate):
    """
    Link a product to a classification.

    Raises:
        400: Hazardous product with non-hazmat classification
        404: Product or classification not found
        409: Link already exists
    """
    try:
        service = get_product_link_service()
        return service.create(data)

    except Exception as e:
        return handle_error(e)


@router.put("", response_model=ProductLinkResponse)
async def update_product_link(data: ProductLinkUpdate):
    """
    Update or approve a link.

    Only provided fields are updated.

    Raises:
        404: Link not found
    """
    try:
        service = get_product_link_service()
        return service.update(data)

    except Exception as e:
        return handle_error(e)


@router.delete("", response_model=ProductLinkResponse)
async def delete_product_link(
    link_id: str = Query(..., alias="id", min_length=1, description="Link ID")
):
    """
    Delete a link.

    Raises:
        404: Link not found
    """
    try:
        service = get_product_link_service()
        return service.delete(link_id)

    except Exception as e:
        return handle_error(e)


# ===================
# CLASSIFICATION VIEWS
# ===================

@router.get("/unlinked", response_model=UnlinkedProductsResponse)
async def list_unlinked_products(
    hazardous: Optional[bool] = Query(None, description="Filter by hazardous flag"),
    limit: int = Query(100, ge=1, description="Max rows (capped at 500)"),
    offset: int = Query(0, ge=0, description="Rows to skip")
):
    """Active products without an approved classification."""
    try:
        service = get_product_link_service()
        return service.get_unlinked_products(
            hazardous=hazardous,
            limit=limit,
            offset=offset
        )

    except Exception as e:
        return handle_error(e)


@router.post(
    "/check",
    response_model=ClassificationCheckResponse,
    response_model_exclude_none=True
)
async def check_classification(data: ClassificationCheckRequest):
    """Whether a SKU already has an approved classification."""
    try:
        service = get_product_link_service()
        return service.check_sku(data.sku)

    except Exception as e:
        return handle_error(e)
