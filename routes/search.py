"""
Reference corpus search and description classification routes.

Read-only. Results are suggestions; linking is a separate step.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.search import (
    SearchRequest,
    SearchResponse,
    DescriptionClassifyRequest,
    DescriptionClassifyResponse,
)
from services.similarity_service import get_similarity_service
from services.classification_resolver_service import get_classification_resolver
from exceptions import AppError, RagIndexNotFoundError

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

@router.post("/rag/search", response_model=SearchResponse)
async def search_corpus(data: SearchRequest):
    """
    Search the hazmat reference corpus.

    UN numbers in the query are matched exactly; anything else is ranked
    by vector similarity.

    Raises:
        503: Corpus index not available
    """
    try:
        service = get_similarity_service()
        return service.search(
            data.query,
            limit=data.limit,
            sources=data.sources,
            min_score=data.min_score,
            context=data.context
        )

    except Exception as e:
        return handle_error(e)


@router.get("/rag/search")
async def search_health():
    """Report whether the corpus index is loaded."""
    try:
        index = get_similarity_service().index
    except RagIndexNotFoundError as e:
        logger.warning("rag_index_health_failed", path=e.path)
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "RAG index not found",
                "error": e.code,
            }
        )

    return {
        "success": True,
        "message": "RAG search API is operational",
        "index": {
            "loaded": True,
            "documents": len(index.documents),
            "model": index.model,
            "dimensions": index.dimensions,
            "sources": index.stats.get("sources"),
        },
    }


@router.post("/hazmat/classify", response_model=None)
async def classify_description(data: DescriptionClassifyRequest):
    """
    Classify a product from its description.

    A SKU with an approved classification returns it; otherwise the best
    corpus match is turned into a suggestion.
    """
    try:
        if data.sku:
            saved = get_classification_resolver().saved_for_sku(data.sku)
            if saved is not None:
                return saved

        service = get_similarity_service()
        result: DescriptionClassifyResponse = service.classify_description(
            data.product_name,
            min_score=data.min_score
        )
        return result

    except Exception as e:
        return handle_error(e)
