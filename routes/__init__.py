"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.classification import router as classification_router
from routes.product_links import router as product_links_router
from routes.freight_classifications import router as freight_classifications_router
from routes.search import router as search_router

__all__ = [
    "classification_router",
    "product_links_router",
    "freight_classifications_router",
    "search_router",
]
