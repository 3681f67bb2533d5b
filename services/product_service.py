"""
Product lookups against the catalog.

The catalog is owned by an external system; this service only reads it.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.product import ProductResponse
from exceptions import ProductNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Read-only product access.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "products"

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Args:
            product_id: Product UUID

        Returns:
            ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        product = self.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def find_by_id(self, product_id: str) -> Optional[ProductResponse]:
        """Get a product by ID, or None."""
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ProductResponse(**result.data[0])

    def get_by_sku(self, sku: str) -> Optional[ProductResponse]:
        """
        Get a product by SKU.

        Args:
            sku: Product SKU

        Returns:
            ProductResponse or None if not found
        """
        logger.debug("getting_product_by_sku", sku=sku)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("sku", sku.strip())
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_product_by_sku_failed",
                sku=sku,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ProductResponse(**result.data[0])

    def get_by_ids(self, product_ids: list[str]) -> dict[str, ProductResponse]:
        """
        Get multiple products by ID.

        Returns:
            Dict of product_id -> ProductResponse (missing IDs are absent)
        """
        if not product_ids:
            return {}

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("id", list(set(product_ids)))
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_products_by_ids_failed",
                count=len(product_ids),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return {row["id"]: ProductResponse(**row) for row in result.data}

    def find_by_un_number(self, un_number: str) -> list[ProductResponse]:
        """Products carrying a UN number."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("un_number", un_number)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_products_by_un_failed",
                un_number=un_number,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        return [ProductResponse(**row) for row in result.data]

    def get_active(self, hazardous: Optional[bool] = None) -> list[ProductResponse]:
        """
        All active products, ordered by SKU.

        Args:
            hazardous: Filter by is_hazardous when given
        """
        try:
            query = self.db.table(self.table).select("*").eq("is_active", True)
            if hazardous is not None:
                query = query.eq("is_hazardous", hazardous)
            result = query.order("sku").execute()
        except Exception as e:
            logger.error("get_active_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [ProductResponse(**row) for row in result.data]


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
