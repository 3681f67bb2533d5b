"""
Business logic services.

Each service handles one domain area.
"""

from services.cache_service import (
    CacheBackend,
    InMemoryTTLCache,
    get_cache,
    set_cache,
)
from services.product_service import ProductService, get_product_service
from services.freight_classification_service import (
    FreightClassificationService,
    get_freight_classification_service,
)
from services.product_link_service import ProductLinkService, get_product_link_service
from services.embedding_service import EmbeddingService, get_embedding_service
from services.similarity_service import SimilarityService, get_similarity_service
from services.classification_resolver_service import (
    ClassificationResolver,
    get_classification_resolver,
)

__all__ = [
    "CacheBackend",
    "InMemoryTTLCache",
    "get_cache",
    "set_cache",
    "ProductService",
    "get_product_service",
    "FreightClassificationService",
    "get_freight_classification_service",
    "ProductLinkService",
    "get_product_link_service",
    "EmbeddingService",
    "get_embedding_service",
    "SimilarityService",
    "get_similarity_service",
    "ClassificationResolver",
    "get_classification_resolver",
]
