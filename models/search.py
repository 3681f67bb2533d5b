"""
Similarity search schemas.

The reference corpus is a JSON index of pre-embedded documents from four
source categories: hazardous materials table, CFR regulation text,
emergency response guide, and the product catalog.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional
from enum import Enum

from config.freight_rules import MIN_SCORE_CHAT, MIN_SCORE_SEARCH
from models.base import BaseSchema, blank_to_none
from models.suggestion import ClassificationSuggestion


class SourceCategory(str, Enum):
    """Corpus document sources."""
    HAZARD_TABLE = "hmt"
    REGULATION_TEXT = "cfr"
    EMERGENCY_GUIDE = "erg"
    PRODUCT_CATALOG = "products"


class TransportMode(str, Enum):
    HIGHWAY = "highway"
    RAIL = "rail"
    AIR = "air"
    VESSEL = "vessel"


class CorpusDocument(BaseModel):
    """One pre-embedded corpus entry."""
    id: str
    source: str
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float] = Field(default_factory=list)


class CorpusIndex(BaseModel):
    """Loaded corpus index file."""
    documents: list[CorpusDocument] = Field(default_factory=list)
    model: Optional[str] = None
    dimensions: Optional[int] = None
    stats: dict[str, Any] = Field(default_factory=dict)


class SearchContext(BaseSchema):
    un_number: Optional[str] = None
    mode: Optional[TransportMode] = None

    @field_validator("mode", mode="before")
    @classmethod
    def lowercase_mode(cls, v):
        v = blank_to_none(v)
        return v.lower() if isinstance(v, str) else v


class SearchRequest(BaseSchema):
    query: str = Field(..., min_length=1)
    limit: int = Field(10, ge=1, le=100)
    sources: Optional[list[SourceCategory]] = None
    min_score: float = Field(MIN_SCORE_SEARCH, ge=0.0, le=1.0)
    context: SearchContext = Field(default_factory=SearchContext)


class SearchHit(BaseSchema):
    id: str
    source: str
    score: float
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class GroupedResults(BaseSchema):
    hmt: list[SearchHit] = Field(default_factory=list)
    cfr: list[SearchHit] = Field(default_factory=list)
    erg: list[SearchHit] = Field(default_factory=list)
    products: list[SearchHit] = Field(default_factory=list)


class DerivedHazmatFields(BaseSchema):
    """Hazmat attributes taken from the top search hit."""
    un_number: Optional[str] = None
    hazard_class: Optional[str] = None
    packing_group: Optional[str] = None
    proper_shipping_name: Optional[str] = None


class SearchSummary(BaseSchema):
    regulations: list[dict[str, Any]] = Field(default_factory=list)
    emergency: list[dict[str, Any]] = Field(default_factory=list)
    products: list[dict[str, Any]] = Field(default_factory=list)
    hazmat: list[dict[str, Any]] = Field(default_factory=list)


class SearchStats(BaseSchema):
    total_matches: int
    top_score: float
    sources: dict[str, int]


class SearchResponse(BaseSchema):
    success: bool = True
    query: str
    results: list[SearchHit]
    grouped: GroupedResults
    derived: DerivedHazmatFields
    summary: SearchSummary
    stats: SearchStats
    embedding_provider: str


class DescriptionClassifyRequest(BaseSchema):
    """Free-text chemical description to classify."""
    product_name: str = Field(..., min_length=1)
    sku: Optional[str] = None
    min_score: float = Field(MIN_SCORE_CHAT, ge=0.0, le=1.0)


class DescriptionClassifyResponse(BaseSchema):
    success: bool = True
    source: str = "rag-suggestion"
    is_hazmat: bool
    suggestion: Optional[ClassificationSuggestion] = None
    matches: list[SearchHit] = Field(default_factory=list)
    message: Optional[str] = None
