"""
Base schemas and mixins for all models.

API payloads are camelCase; database rows are snake_case. Both are accepted
on input, responses serialize by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - camelCase aliases, snake_case names also accepted
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """Add timestamps to response models."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def blank_to_none(value: Any) -> Any:
    """Treat empty/whitespace strings as not provided."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def normalize_freight_class(value: Any) -> Any:
    """
    Normalize a freight class to its canonical string form.

    Databases may hand back 92.5 or 50.0; the class set is "92.5", "50".
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if float(value).is_integer():
            return str(int(value))
        return str(value)
    return str(value).strip()
