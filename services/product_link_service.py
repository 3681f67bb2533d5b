"""
Product-classification links and their approval workflow.

Lifecycle: unlinked -> pending (is_approved=False) -> approved, then
optionally hard-deleted. One link per (product_id, classification_id);
the table's unique constraint is the real guarantee, the pre-insert
check only gives a friendlier error.

A hazardous product may only be linked to a hazmat classification.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import ProductResponse, UnlinkedProduct, UnlinkedProductsResponse
from models.classification import FreightClassificationResponse
from models.product_link import (
    ProductLinkCreate,
    ProductLinkUpdate,
    ProductLinkResponse,
    ProductLinkDetail,
    ClassificationCheckResponse,
)
from exceptions import (
    DatabaseError,
    DuplicateProductLinkError,
    ProductLinkNotFoundError,
    SafetyViolationError,
)
from services.cache_service import (
    PRODUCT_LINKS_PREFIX,
    UNLINKED_PRODUCTS_PREFIX,
    CacheBackend,
    build_cache_key,
    cache_get,
    cache_set,
    get_cache,
    invalidate_prefixes,
)
from services.product_service import ProductService, get_product_service
from services.freight_classification_service import (
    FreightClassificationService,
    get_freight_classification_service,
)

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 500

# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_unique_violation(error: Exception) -> bool:
    code = getattr(error, "code", None)
    return str(code) == UNIQUE_VIOLATION_CODE or "duplicate key" in str(error).lower()


def build_link_detail(
    link: ProductLinkResponse,
    product: Optional[ProductResponse],
    classification: Optional[FreightClassificationResponse]
) -> ProductLinkDetail:
    """Join a link with its product and classification."""
    detail = link.model_dump()
    if product is not None:
        detail.update(
            product_sku=product.sku,
            product_name=product.name,
            product_is_hazardous=product.is_hazardous,
            product_cas_number=product.cas_number,
            product_un_number=product.un_number,
        )
    if classification is not None:
        detail.update(
            classification_description=classification.description,
            freight_class=classification.freight_class,
            nmfc_code=classification.nmfc_code,
            is_hazmat=classification.is_hazmat,
            hazmat_class=classification.hazmat_class,
            packing_group=classification.packing_group,
        )
    return ProductLinkDetail(**detail)


class ProductLinkService:
    """
    Link CRUD, approval, and the unclassified-products view.
    """

    def __init__(
        self,
        db=None,
        cache: Optional[CacheBackend] = None,
        product_service: Optional[ProductService] = None,
        classification_service: Optional[FreightClassificationService] = None
    ):
        self.db = db if db is not None else get_supabase_client()
        self.cache = cache if cache is not None else get_cache()
        self.products = product_service or get_product_service()
        self.classifications = classification_service or get_freight_classification_service()
        self.table = "product_freight_links"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        product_id: Optional[str] = None,
        classification_id: Optional[str] = None,
        approved: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> list[ProductLinkDetail]:
        """
        List links joined with product and classification details.

        Args:
            product_id: Filter by product
            classification_id: Filter by classification
            approved: Filter by approval state
            limit: Page size, capped at 500
            offset: Rows to skip

        Returns:
            Links, newest first
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        cache_key = build_cache_key(
            PRODUCT_LINKS_PREFIX, product_id, classification_id, approved, limit, offset
        )
        cached = cache_get(self.cache, cache_key)
        if cached is not None:
            logger.debug("product_links_cache_hit", key=cache_key)
            return cached

        logger.info(
            "getting_product_links",
            product_id=product_id,
            classification_id=classification_id,
            approved=approved,
            limit=limit,
            offset=offset
        )

        try:
            query = self.db.table(self.table).select("*")

            if product_id:
                query = query.eq("product_id", product_id)
            if classification_id:
                query = query.eq("classification_id", classification_id)
            if approved is not None:
                query = query.eq("is_approved", approved)

            result = (
                query
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_links_failed", error=str(e))
            raise DatabaseError("select", str(e))

        links = [ProductLinkResponse(**row) for row in result.data]
        products = self.products.get_by_ids([link.product_id for link in links])
        classifications = self.classifications.get_by_ids(
            [link.classification_id for link in links]
        )

        details = [
            build_link_detail(
                link,
                products.get(link.product_id),
                classifications.get(link.classification_id)
            )
            for link in links
        ]
        cache_set(self.cache, cache_key, details, settings.link_cache_ttl_seconds)

        logger.info("product_links_retrieved", count=len(details))
        return details

    def get_by_id(self, link_id: str) -> ProductLinkResponse:
        """
        Get a link by ID.

        Raises:
            ProductLinkNotFoundError: If link doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", link_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_link_failed", link_id=link_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductLinkNotFoundError(link_id)
        return ProductLinkResponse(**result.data[0])

    def find_pair(self, product_id: str, classification_id: str) -> Optional[ProductLinkResponse]:
        """Existing link for a product/classification pair, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .eq("classification_id", classification_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_product_link_failed",
                product_id=product_id,
                classification_id=classification_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ProductLinkResponse(**result.data[0])

    def get_approved_for_product(self, product_id: str) -> Optional[ProductLinkResponse]:
        """Most recent approved link for a product, or None."""
        links = self.get_approved_for_products([product_id])
        return links[0] if links else None

    def get_approved_for_products(self, product_ids: list[str]) -> list[ProductLinkResponse]:
        """Approved links for any of the given products, newest first."""
        if not product_ids:
            return []

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("product_id", list(set(product_ids)))
                .eq("is_approved", True)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_approved_links_failed",
                count=len(product_ids),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return [ProductLinkResponse(**row) for row in result.data]

    def get_approved_product_ids(self) -> set[str]:
        """IDs of every product with at least one approved link."""
        try:
            result = (
                self.db.table(self.table)
                .select("product_id")
                .eq("is_approved", True)
                .execute()
            )
        except Exception as e:
            logger.error("get_approved_product_ids_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return {row["product_id"] for row in result.data}

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductLinkCreate) -> ProductLinkResponse:
        """
        Create a link.

        Raises:
            ProductNotFoundError: Product doesn't exist
            ClassificationNotFoundError: Classification doesn't exist
            DuplicateProductLinkError: Pair already linked
            SafetyViolationError: Hazardous product, non-hazmat classification
        """
        logger.info(
            "creating_product_link",
            product_id=data.product_id,
            classification_id=data.classification_id,
            link_source=data.link_source.value
        )

        product = self.products.get_by_id(data.product_id)
        classification = self.classifications.get_by_id(data.classification_id)

        if self.find_pair(data.product_id, data.classification_id) is not None:
            raise DuplicateProductLinkError(data.product_id, data.classification_id)

        if product.is_hazardous and not classification.is_hazmat:
            logger.warning(
                "product_link_safety_violation",
                product_id=product.id,
                sku=product.sku,
                classification_id=classification.id
            )
            raise SafetyViolationError(product.sku)

        row = data.model_dump(mode="json")
        if data.is_approved:
            row["approved_at"] = _now_iso()

        try:
            result = self.db.table(self.table).insert(row).execute()
        except Exception as e:
            if _is_unique_violation(e):
                # Lost a race with a concurrent creator
                raise DuplicateProductLinkError(data.product_id, data.classification_id)
            logger.error(
                "create_product_link_failed",
                product_id=data.product_id,
                classification_id=data.classification_id,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        link = ProductLinkResponse(**result.data[0])
        invalidate_prefixes(self.cache, PRODUCT_LINKS_PREFIX, UNLINKED_PRODUCTS_PREFIX)

        logger.info(
            "product_link_created",
            link_id=link.id,
            product_id=link.product_id,
            is_approved=link.is_approved
        )
        return link

    def update(self, data: ProductLinkUpdate) -> ProductLinkResponse:
        """
        Partially update a link.

        Only fields present in the request are written. Setting is_approved
        to True always stamps approved_at.

        Raises:
            ProductLinkNotFoundError: If link doesn't exist
        """
        logger.info("updating_product_link", link_id=data.id)

        self.get_by_id(data.id)

        update_data = data.model_dump(mode="json", exclude_unset=True, exclude={"id"})
        # Columns that cannot be cleared
        for field in ("is_approved", "link_source"):
            if field in update_data and update_data[field] is None:
                del update_data[field]

        if update_data.get("is_approved") is True:
            update_data["approved_at"] = _now_iso()
        update_data["updated_at"] = _now_iso()

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", data.id)
                .execute()
            )
        except Exception as e:
            logger.error("update_product_link_failed", link_id=data.id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductLinkNotFoundError(data.id)

        link = ProductLinkResponse(**result.data[0])
        invalidate_prefixes(self.cache, PRODUCT_LINKS_PREFIX, UNLINKED_PRODUCTS_PREFIX)

        logger.info(
            "product_link_updated",
            link_id=link.id,
            fields=sorted(update_data),
            is_approved=link.is_approved
        )
        return link

    def delete(self, link_id: str) -> ProductLinkResponse:
        """
        Hard-delete a link.

        Returns:
            The deleted row

        Raises:
            ProductLinkNotFoundError: If link doesn't exist
        """
        logger.info("deleting_product_link", link_id=link_id)

        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq("id", link_id)
                .execute()
            )
        except Exception as e:
            logger.error("delete_product_link_failed", link_id=link_id, error=str(e))
            raise DatabaseError("delete", str(e))

        if not result.data:
            raise ProductLinkNotFoundError(link_id)

        invalidate_prefixes(self.cache, PRODUCT_LINKS_PREFIX, UNLINKED_PRODUCTS_PREFIX)

        logger.info("product_link_deleted", link_id=link_id)
        return ProductLinkResponse(**result.data[0])

    # ===================
    # CLASSIFICATION VIEWS
    # ===================

    def get_unlinked_products(
        self,
        hazardous: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0
    ) -> UnlinkedProductsResponse:
        """
        Active products without an approved classification.

        Args:
            hazardous: Filter by is_hazardous
            limit: Page size, capped at 500
            offset: Rows to skip
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        cache_key = build_cache_key(UNLINKED_PRODUCTS_PREFIX, hazardous, limit, offset)
        cached = cache_get(self.cache, cache_key)
        if cached is not None:
            logger.debug("unlinked_products_cache_hit", key=cache_key)
            return cached

        linked_ids = self.get_approved_product_ids()
        unlinked = [
            product for product in self.products.get_active(hazardous=hazardous)
            if product.id not in linked_ids
        ]
        page = unlinked[offset:offset + limit]
        hazardous_count = sum(1 for p in page if p.is_hazardous)

        response = UnlinkedProductsResponse(
            products=[UnlinkedProduct.from_product(p) for p in page],
            total_count=len(unlinked),
            has_more=offset + limit < len(unlinked),
            hazardous_products=hazardous_count,
            non_hazardous_products=len(page) - hazardous_count,
        )
        cache_set(self.cache, cache_key, response, settings.unlinked_cache_ttl_seconds)

        logger.info(
            "unlinked_products_retrieved",
            total=response.total_count,
            returned=len(page)
        )
        return response

    def check_sku(self, sku: str) -> ClassificationCheckResponse:
        """Whether a SKU has an approved classification, with its details."""
        product = self.products.get_by_sku(sku)
        if product is None:
            return ClassificationCheckResponse(
                has_classification=False,
                message=f"Product {sku} not yet in database"
            )

        link = self.get_approved_for_product(product.id)
        if link is None:
            return ClassificationCheckResponse(
                has_classification=False,
                message=f"No approved classification found for SKU: {sku}"
            )

        classification = self.classifications.find_by_id(link.classification_id)
        if classification is None:
            return ClassificationCheckResponse(
                has_classification=False,
                message=f"No approved classification found for SKU: {sku}"
            )

        return ClassificationCheckResponse(
            has_classification=True,
            classification={
                "sku": product.sku,
                "name": product.name,
                "isHazardous": product.is_hazardous,
                "description": classification.description,
                "nmfcCode": classification.nmfc_code,
                "freightClass": classification.freight_class,
                "isHazmat": classification.is_hazmat,
                "hazmatClass": classification.hazmat_class,
                "unNumber": product.un_number,
                "packingGroup": classification.packing_group,
                "overrideFreightClass": link.override_freight_class,
            }
        )


# Singleton instance for convenience
_link_service: Optional[ProductLinkService] = None

def get_product_link_service() -> ProductLinkService:
    """Get or create ProductLinkService instance."""
    global _link_service
    if _link_service is None:
        _link_service = ProductLinkService()
    return _link_service
