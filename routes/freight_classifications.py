"""
Freight classification catalog routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.classification import (
    FreightClassificationCreate,
    FreightClassificationResponse,
)
from services.freight_classification_service import get_freight_classification_service
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

@router.get("", response_model=list[FreightClassificationResponse])
async def list_classifications(
    search: Optional[str] = Query(None, description="Search description, NMFC code, hazmat class"),
    hazmat: Optional[bool] = Query(None, description="Filter by hazmat flag"),
    freight_class: Optional[str] = Query(None, alias="freightClass", description="Filter by freight class"),
    limit: int = Query(100, ge=1, description="Max rows (capped at 500)"),
    offset: int = Query(0, ge=0, description="Rows to skip")
):
    """List freight classifications."""
    try:
        service = get_freight_classification_service()
        return service.get_all(
            search=search,
            hazmat=hazmat,
            freight_class=freight_class,
            limit=limit,
            offset=offset
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{classification_id}", response_model=FreightClassificationResponse)
async def get_classification(classification_id: str):
    """
    Get a single classification.

    Raises:
        404: Classification not found
    """
    try:
        service = get_freight_classification_service()
        return service.get_by_id(classification_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=FreightClassificationResponse, status_code=201)
async def create_classification(data: FreightClassificationCreate):
    """
    Create a classification.

    Raises:
        400: Invalid freight class, or hazmat without hazmat class
    """
    try:
        service = get_freight_classification_service()
        return service.create(data)

    except Exception as e:
        return handle_error(e)
