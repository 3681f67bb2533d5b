"""
Freight classification catalog.

Administrator-maintained NMFC entries that product links point at.
Listings are cached; creates invalidate the classifications prefix.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from config.freight_rules import FREIGHT_CLASSES, suggest_sub_from_packing_group
from models.classification import (
    FreightClassificationCreate,
    FreightClassificationResponse,
)
from exceptions import (
    ClassificationNotFoundError,
    DatabaseError,
    InvalidFreightClassError,
    ValidationError,
)
from services.cache_service import (
    CLASSIFICATIONS_PREFIX,
    CacheBackend,
    build_cache_key,
    cache_get,
    cache_set,
    get_cache,
    invalidate_prefixes,
)

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 500


class FreightClassificationService:
    """
    Freight classification reads and creates.
    """

    def __init__(self, db=None, cache: Optional[CacheBackend] = None):
        self.db = db if db is not None else get_supabase_client()
        self.cache = cache if cache is not None else get_cache()
        self.table = "freight_classifications"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        search: Optional[str] = None,
        hazmat: Optional[bool] = None,
        freight_class: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> list[FreightClassificationResponse]:
        """
        List classifications with optional filters.

        Args:
            search: Substring over description, NMFC code and hazmat class
            hazmat: Filter by is_hazmat
            freight_class: Filter by class (ignored unless a valid class)
            limit: Page size, capped at 500
            offset: Rows to skip

        Returns:
            List of classifications
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        if freight_class not in FREIGHT_CLASSES:
            freight_class = None

        cache_key = build_cache_key(
            CLASSIFICATIONS_PREFIX, search or "all", hazmat, freight_class, limit, offset
        )
        cached = cache_get(self.cache, cache_key)
        if cached is not None:
            logger.debug("classifications_cache_hit", key=cache_key)
            return cached

        logger.info(
            "getting_classifications",
            search=search,
            hazmat=hazmat,
            freight_class=freight_class,
            limit=limit,
            offset=offset
        )

        try:
            query = self.db.table(self.table).select("*")

            if hazmat is not None:
                query = query.eq("is_hazmat", hazmat)
            if freight_class:
                query = query.eq("freight_class", freight_class)
            if search:
                term = search.replace(",", " ").strip()
                query = query.or_(
                    f"description.ilike.%{term}%,"
                    f"nmfc_code.ilike.%{term}%,"
                    f"hazmat_class.ilike.%{term}%"
                )

            result = (
                query.order("description")
                .order("id")
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            logger.error("get_classifications_failed", error=str(e))
            raise DatabaseError("select", str(e))

        classifications = [FreightClassificationResponse(**row) for row in result.data]
        cache_set(self.cache, cache_key, classifications, settings.classification_cache_ttl_seconds)

        logger.info("classifications_retrieved", count=len(classifications))
        return classifications

    def get_by_id(self, classification_id: str) -> FreightClassificationResponse:
        """
        Get a classification by ID.

        Raises:
            ClassificationNotFoundError: If it doesn't exist
        """
        classification = self.find_by_id(classification_id)
        if classification is None:
            raise ClassificationNotFoundError(classification_id)
        return classification

    def find_by_id(self, classification_id: str) -> Optional[FreightClassificationResponse]:
        """Get a classification by ID, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", classification_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_classification_failed",
                classification_id=classification_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return FreightClassificationResponse(**result.data[0])

    def get_by_ids(self, classification_ids: list[str]) -> dict[str, FreightClassificationResponse]:
        """Dict of classification_id -> classification for the given IDs."""
        if not classification_ids:
            return {}

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("id", list(set(classification_ids)))
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_classifications_by_ids_failed",
                count=len(classification_ids),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return {row["id"]: FreightClassificationResponse(**row) for row in result.data}

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: FreightClassificationCreate) -> FreightClassificationResponse:
        """
        Create a classification.

        Raises:
            InvalidFreightClassError: Class outside the NMFC set
            ValidationError: Hazmat entry without a hazmat class
        """
        logger.info(
            "creating_classification",
            description=data.description,
            freight_class=data.freight_class,
            is_hazmat=data.is_hazmat
        )

        if data.freight_class not in FREIGHT_CLASSES:
            raise InvalidFreightClassError(data.freight_class, list(FREIGHT_CLASSES))

        if data.is_hazmat and not data.hazmat_class:
            raise ValidationError(
                "Hazmat class is required for hazardous materials",
                code="HAZMAT_CLASS_REQUIRED",
                details={"isHazmat": True}
            )

        # Codes that key off packing group get their sub filled in
        if not data.nmfc_sub:
            packing_sub = suggest_sub_from_packing_group(data.nmfc_code, data.packing_group)
            if packing_sub:
                data = data.model_copy(update={"nmfc_sub": packing_sub["nmfc_sub"]})
                logger.info(
                    "nmfc_sub_from_packing_group",
                    rationale=packing_sub["rationale"]
                )

        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )
        except Exception as e:
            logger.error(
                "create_classification_failed",
                description=data.description,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        classification = FreightClassificationResponse(**result.data[0])
        invalidate_prefixes(self.cache, CLASSIFICATIONS_PREFIX)

        logger.info("classification_created", classification_id=classification.id)
        return classification


# Singleton instance for convenience
_classification_service: Optional[FreightClassificationService] = None

def get_freight_classification_service() -> FreightClassificationService:
    """Get or create FreightClassificationService instance."""
    global _classification_service
    if _classification_service is None:
        _classification_service = FreightClassificationService()
    return _classification_service
