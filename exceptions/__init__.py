"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    UpstreamProviderError,
    DatabaseError,

    # Classification
    InsufficientDataError,
    SafetyViolationError,
    InvalidFreightClassError,
    RagIndexNotFoundError,

    # Products
    ProductNotFoundError,

    # Freight classifications
    ClassificationNotFoundError,

    # Product links
    ProductLinkNotFoundError,
    DuplicateProductLinkError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "UpstreamProviderError",
    "DatabaseError",

    # Classification
    "InsufficientDataError",
    "SafetyViolationError",
    "InvalidFreightClassError",
    "RagIndexNotFoundError",

    # Products
    "ProductNotFoundError",

    # Freight classifications
    "ClassificationNotFoundError",

    # Product links
    "ProductLinkNotFoundError",
    "DuplicateProductLinkError",
]
