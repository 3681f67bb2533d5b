"""
Classification suggestion routes.

POST returns a suggestion; nothing is persisted until a product link is
created from it.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from config.freight_rules import HAZMAT_NMFC_MAPPINGS
from models.suggestion import ClassificationRequest, SuggestionResponse
from services.classification_resolver_service import get_classification_resolver
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
            "success": False,
            "error": "Failed to generate NMFC suggestion",
        }
    )


# ===================
# ROUTES
# ===================

@router.post(
    "/suggest-nmfc",
    response_model=SuggestionResponse,
    response_model_exclude_none=True
)
async def suggest_nmfc(data: ClassificationRequest):
    """
    Suggest NMFC code and freight class.

    Order: saved classification -> HAZMAT -> density.

    Raises:
        400: Insufficient data for any path
    """
    try:
        resolver = get_classification_resolver()
        return resolver.resolve(data)

    except Exception as e:
        return handle_error(e)


@router.get("/suggest-nmfc")
async def suggest_nmfc_info():
    """Describe the suggestion endpoint."""
    return {
        "success": True,
        "message": "NMFC Suggestion API",
        "endpoints": {
            "POST": {
                "description": "Get NMFC code suggestion based on product attributes",
                "requiredForNonHazmat": ["weight", "length", "width", "height"],
                "requiredForHazmat": ["hazardClass or unNumber"],
                "optional": ["sku", "productName", "quantity", "packingGroup"],
            }
        },
        "hazmatClasses": list(HAZMAT_NMFC_MAPPINGS),
    }
