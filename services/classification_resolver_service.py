"""
NMFC code and freight class suggestions.

Resolution order, first applicable path wins:
    1. Saved classification - the SKU's approved link, returned verbatim
    2. HAZMAT - any hazmat indicator; class-based rule table
    3. Density - weight and dimensions; density breakpoint table
    4. Otherwise InsufficientDataError listing what each path lacks

HAZMAT always beats density, even when dimensions are supplied. HAZMAT
freight uses class-specific NMFC codes, never density tiers.
"""

from typing import Optional
import structlog

from config.freight_rules import (
    DENSITY_CONFIDENCE,
    HAZMAT_CONFIDENCE,
    SAVED_CLASSIFICATION_CONFIDENCE,
    get_hazmat_mapping,
)
from exceptions import InsufficientDataError
from models.product import ProductResponse
from models.suggestion import (
    CalculationDetails,
    ClassificationRequest,
    ClassificationSuggestion,
    ResolutionSource,
    SuggestionResponse,
)
from services.density_service import DENSITY_FIELDS, calculate_density, missing_density_fields
from services.product_service import ProductService, get_product_service
from services.product_link_service import ProductLinkService, get_product_link_service
from services.freight_classification_service import (
    FreightClassificationService,
    get_freight_classification_service,
)
from services.similarity_service import SimilarityService, get_similarity_service

logger = structlog.get_logger(__name__)


HAZMAT_NOTE = "HAZMAT uses class-specific NMFC codes, not density-based classification"
HAZMAT_MISSING_FIELD = "hazardClass or unNumber"


class ClassificationResolver:
    """
    Suggest a classification for a product or shipment line.

    Never writes. Accepting a suggestion is a separate product link create.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        link_service: Optional[ProductLinkService] = None,
        classification_service: Optional[FreightClassificationService] = None,
        similarity_service: Optional[SimilarityService] = None
    ):
        self.products = product_service or get_product_service()
        self.links = link_service or get_product_link_service()
        self.classifications = classification_service or get_freight_classification_service()
        self._similarity = similarity_service

    @property
    def similarity(self) -> SimilarityService:
        if self._similarity is None:
            self._similarity = get_similarity_service()
        return self._similarity

    def resolve(self, request: ClassificationRequest) -> SuggestionResponse:
        """
        Resolve a suggestion for a validated request.

        Raises:
            InsufficientDataError: Neither hazmat nor density inputs usable
        """
        logger.info(
            "resolving_classification",
            sku=request.sku,
            has_hazmat_indicators=request.has_hazmat_indicators
        )

        if request.sku:
            product = self.products.get_by_sku(request.sku)
            if product is not None:
                saved = self._saved_classification(product)
                if saved is not None:
                    return saved
                request = self._backfill_dimensions(request, product)

        if request.has_hazmat_indicators:
            return self._hazmat_classification(request)

        missing = missing_density_fields(
            request.weight, request.length, request.width, request.height, request.quantity
        )
        if not missing:
            return self._density_classification(request)

        logger.info(
            "classification_insufficient_data",
            sku=request.sku,
            missing_for_density=missing
        )
        raise InsufficientDataError(
            for_density=missing,
            for_hazmat=[HAZMAT_MISSING_FIELD]
        )

    # ===================
    # RESOLUTION PATHS
    # ===================

    def _saved_classification(self, product: ProductResponse) -> Optional[SuggestionResponse]:
        link = self.links.get_approved_for_product(product.id)
        if link is None:
            return None

        classification = self.classifications.find_by_id(link.classification_id)
        if classification is None:
            logger.warning(
                "approved_link_missing_classification",
                link_id=link.id,
                classification_id=link.classification_id
            )
            return None

        nmfc_code, nmfc_sub = classification.split_nmfc()
        # An approved link scored 0 carries no score
        confidence = link.confidence_score or SAVED_CLASSIFICATION_CONFIDENCE

        logger.info(
            "classification_resolved",
            source=ResolutionSource.SAVED_CLASSIFICATION.value,
            sku=product.sku,
            classification_id=classification.id
        )
        return SuggestionResponse(
            source=ResolutionSource.SAVED_CLASSIFICATION,
            is_hazmat=product.is_hazardous,
            suggestion=ClassificationSuggestion(
                nmfc_code=nmfc_code,
                nmfc_sub=nmfc_sub,
                freight_class=classification.freight_class,
                description=classification.description,
                confidence=confidence,
                hazard_class=classification.hazmat_class,
                packing_group=classification.packing_group,
                label=(
                    f"{classification.description} - NMFC "
                    f"{classification.nmfc_code or 'N/A'} (Class {classification.freight_class})"
                ),
            ),
            message="Using previously saved classification",
        )

    def _backfill_dimensions(
        self,
        request: ClassificationRequest,
        product: ProductResponse
    ) -> ClassificationRequest:
        """Fill absent weight/dimensions from the product record."""
        updates = {
            field: getattr(product, field)
            for field in DENSITY_FIELDS
            if not getattr(request, field) and getattr(product, field)
        }
        if not updates:
            return request

        logger.debug("dimensions_backfilled", sku=product.sku, fields=sorted(updates))
        return request.model_copy(update=updates)

    def _hazmat_classification(self, request: ClassificationRequest) -> SuggestionResponse:
        hazard_class = request.hazard_class
        if not hazard_class and request.un_number:
            hazard_class = self.lookup_hazard_class(request.un_number)

        mapping = get_hazmat_mapping(hazard_class)
        pg = f" PG {request.packing_group}" if request.packing_group else ""
        description = (
            f"HAZMAT Class {hazard_class or 'unspecified'}{pg} - "
            f"{request.product_name or 'Chemical Product'}"
        )

        logger.info(
            "classification_resolved",
            source=ResolutionSource.HAZMAT_CLASSIFICATION.value,
            sku=request.sku,
            hazard_class=hazard_class,
            nmfc_code=mapping.nmfc
        )
        return SuggestionResponse(
            source=ResolutionSource.HAZMAT_CLASSIFICATION,
            is_hazmat=True,
            suggestion=ClassificationSuggestion(
                nmfc_code=mapping.nmfc,
                nmfc_sub="",
                freight_class=mapping.freight_class,
                description=description,
                confidence=HAZMAT_CONFIDENCE,
                hazard_class=hazard_class,
                packing_group=request.packing_group,
                un_number=request.un_number,
                label=f"{description} - NMFC {mapping.nmfc} (Class {mapping.freight_class})",
                note=HAZMAT_NOTE,
            ),
            requires_dot=True,
            requires_placards=True,
        )

    def _density_classification(self, request: ClassificationRequest) -> SuggestionResponse:
        result = calculate_density(
            request.weight, request.length, request.width, request.height, request.quantity
        )
        density = round(result.density, 2)

        logger.info(
            "classification_resolved",
            source=ResolutionSource.DENSITY_CALCULATION.value,
            sku=request.sku,
            density=density,
            freight_class=result.freight_class
        )
        return SuggestionResponse(
            source=ResolutionSource.DENSITY_CALCULATION,
            is_hazmat=False,
            suggestion=ClassificationSuggestion(
                nmfc_code=result.nmfc_code,
                nmfc_sub=result.nmfc_sub,
                freight_class=result.freight_class,
                description=(
                    f"{request.product_name or 'General Commodity'} - "
                    f"{result.label} ({result.density:.2f} lbs/ft³)"
                ),
                confidence=DENSITY_CONFIDENCE,
                density=density,
                label=(
                    f"Density {result.density:.2f} lbs/ft³ → NMFC "
                    f"{result.nmfc_code}-{result.nmfc_sub} (Class {result.freight_class})"
                ),
                calculation_details=CalculationDetails(
                    weight=result.total_weight,
                    cubic_feet=round(result.cubic_feet, 2),
                    density=density,
                ),
            ),
            message="Classification based on density calculation",
        )

    # ===================
    # LOOKUPS
    # ===================

    def saved_for_sku(self, sku: str) -> Optional[SuggestionResponse]:
        """Approved classification for a SKU, or None."""
        product = self.products.get_by_sku(sku)
        if product is None:
            return None
        return self._saved_classification(product)

    def lookup_hazard_class(self, un_number: str) -> Optional[str]:
        """
        Hazard class for a UN number.

        Checks hazmat classifications already linked to products carrying
        the UN number, then the reference corpus.
        """
        products = self.products.find_by_un_number(un_number)
        links = self.links.get_approved_for_products([p.id for p in products])
        if links:
            classifications = self.classifications.get_by_ids(
                [link.classification_id for link in links]
            )
            for link in links:
                classification = classifications.get(link.classification_id)
                if classification and classification.is_hazmat and classification.hazmat_class:
                    return classification.hazmat_class

        hazard_class = self.similarity.find_hazard_class_by_un(un_number)
        if hazard_class is None:
            logger.info("hazard_class_not_found", un_number=un_number)
        return hazard_class


# Singleton instance for convenience
_resolver: Optional[ClassificationResolver] = None

def get_classification_resolver() -> ClassificationResolver:
    """Get or create ClassificationResolver instance."""
    global _resolver
    if _resolver is None:
        _resolver = ClassificationResolver()
    return _resolver
