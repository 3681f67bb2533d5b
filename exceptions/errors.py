"""
Custom exception classes for the application.

Every error carries a machine-readable code and an HTTP status.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Malformed or missing input (400)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class UpstreamProviderError(AppError):
    """
    Embedding/search provider failure.

    Recovered locally by the hashing fallback. Logged, never returned.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{provider.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"provider": provider, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CLASSIFICATION ERRORS
# ===================

class InsufficientDataError(AppError):
    """Neither the hazmat nor the density path has enough input (400)."""

    def __init__(self, for_density: list[str], for_hazmat: list[str]):
        super().__init__(
            code="INSUFFICIENT_DATA",
            message=(
                "Please provide either: (1) dimensions and weight for density "
                "calculation, or (2) hazard class for hazmat classification"
            ),
            status_code=400,
            details={"forDensity": for_density, "forHazmat": for_hazmat}
        )
        self.for_density = for_density
        self.for_hazmat = for_hazmat

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": "Insufficient data for classification",
            "message": self.message,
            "missingFields": {
                "forDensity": self.for_density,
                "forHazmat": self.for_hazmat,
            }
        }


class SafetyViolationError(ValidationError):
    """Hazardous product paired with a non-hazmat classification."""

    def __init__(self, product_sku: str):
        super().__init__(
            code="SAFETY_VIOLATION",
            message="Hazardous products must be linked to hazmat classifications",
            details={
                "productSku": product_sku,
                "productIsHazardous": True,
                "classificationIsHazmat": False
            }
        )


class InvalidFreightClassError(ValidationError):
    """Freight class outside the NMFC class set."""

    def __init__(self, freight_class: str, valid: list[str]):
        super().__init__(
            code="INVALID_FREIGHT_CLASS",
            message=f"Invalid freight class. Must be one of: {', '.join(valid)}",
            details={"provided": freight_class, "valid": valid}
        )


class RagIndexNotFoundError(AppError):
    """Reference corpus index file is missing or unreadable."""

    def __init__(self, path: str):
        # Server-side only; never part of the response body
        self.path = path
        super().__init__(
            code="RAG_INDEX_NOT_FOUND",
            message="RAG index not found",
            status_code=503
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


# ===================
# FREIGHT CLASSIFICATION ERRORS
# ===================

class ClassificationNotFoundError(NotFoundError):
    """Freight classification not found."""

    def __init__(self, classification_id: str):
        super().__init__(
            resource="Classification",
            identifier=classification_id,
            code="CLASSIFICATION_NOT_FOUND"
        )


# ===================
# PRODUCT LINK ERRORS
# ===================

class ProductLinkNotFoundError(NotFoundError):
    """Product-classification link not found."""

    def __init__(self, link_id: str):
        super().__init__(
            resource="Product link",
            identifier=link_id,
            code="PRODUCT_LINK_NOT_FOUND"
        )


class DuplicateProductLinkError(ConflictError):
    """A link for this product/classification pair already exists."""

    def __init__(self, product_id: str, classification_id: str):
        super().__init__(
            code="PRODUCT_LINK_EXISTS",
            message="Product-classification link already exists",
            details={
                "productId": product_id,
                "classificationId": classification_id
            }
        )
