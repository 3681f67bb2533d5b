"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
)
from models.product import (
    ProductResponse,
    UnlinkedProduct,
    UnlinkedProductsResponse,
)
from models.classification import (
    FreightClassificationCreate,
    FreightClassificationResponse,
)
from models.product_link import (
    LinkSource,
    ProductLinkCreate,
    ProductLinkUpdate,
    ProductLinkResponse,
    ProductLinkDetail,
    ClassificationCheckRequest,
    ClassificationCheckResponse,
)
from models.suggestion import (
    ResolutionSource,
    ClassificationRequest,
    CalculationDetails,
    ClassificationSuggestion,
    SuggestionResponse,
)
from models.search import (
    SourceCategory,
    TransportMode,
    CorpusDocument,
    CorpusIndex,
    SearchContext,
    SearchRequest,
    SearchHit,
    SearchResponse,
    DescriptionClassifyRequest,
    DescriptionClassifyResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    # Product
    "ProductResponse",
    "UnlinkedProduct",
    "UnlinkedProductsResponse",
    # Classification
    "FreightClassificationCreate",
    "FreightClassificationResponse",
    # Product link
    "LinkSource",
    "ProductLinkCreate",
    "ProductLinkUpdate",
    "ProductLinkResponse",
    "ProductLinkDetail",
    "ClassificationCheckRequest",
    "ClassificationCheckResponse",
    # Suggestion
    "ResolutionSource",
    "ClassificationRequest",
    "CalculationDetails",
    "ClassificationSuggestion",
    "SuggestionResponse",
    # Search
    "SourceCategory",
    "TransportMode",
    "CorpusDocument",
    "CorpusIndex",
    "SearchContext",
    "SearchRequest",
    "SearchHit",
    "SearchResponse",
    "DescriptionClassifyRequest",
    "DescriptionClassifyResponse",
]
