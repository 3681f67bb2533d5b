"""
Similarity search over the hazmat reference corpus.

Used for free-text chemical descriptions that have no SKU or rule match.
Pipeline:
    1. UN number in the query -> exact lookup on corpus metadata/text
    2. Otherwise embed the query (remote provider, else local hashing)
    3. Rank by cosine similarity, drop hits under the caller's threshold
    4. Boost UN-number matches and transport-mode regulation parts
    5. Group by source and derive hazmat fields from the top hit

Nothing here writes classification state. A suggestion only becomes a
product link when a caller creates one explicitly.
"""

import json
import math
import re
from pathlib import Path
from typing import Any, Optional
import structlog

from config import settings
from config.freight_rules import (
    HAZMAT_CONFIDENCE,
    MIN_SCORE_CHAT,
    MIN_SCORE_SEARCH,
    TRANSPORT_MODE_BOOST,
    TRANSPORT_MODE_PARTS,
    UN_NUMBER_BOOST,
    get_hazmat_mapping,
)
from exceptions import RagIndexNotFoundError
from models.search import (
    CorpusDocument,
    CorpusIndex,
    DerivedHazmatFields,
    DescriptionClassifyResponse,
    GroupedResults,
    SearchContext,
    SearchHit,
    SearchResponse,
    SearchStats,
    SearchSummary,
    SourceCategory,
)
from models.suggestion import ClassificationSuggestion
from services.embedding_service import EmbeddingService, get_embedding_service

logger = structlog.get_logger(__name__)


EXACT_MATCH_PROVIDER = "exact-match"
SNIPPET_LENGTH = 200
SUMMARY_SIZE = 5

# "UN1993", "UN 1993", "NA1993". Bare digits are quantities, weights or years.
_UN_PATTERN = re.compile(r"\b(?:UN|NA)\s?(\d{4})\b", re.IGNORECASE)


def detect_un_number(text: Optional[str]) -> Optional[str]:
    """Return the digits of a UN- or NA-prefixed identifier in text, if any."""
    if not text:
        return None
    match = _UN_PATTERN.search(text)
    return match.group(1) if match else None


def normalize_un_number(value: Any) -> Optional[str]:
    """'UN1993', 'un 1993' and '1993' all become '1993'."""
    if value is None:
        return None
    digits = re.sub(r"\D", "", str(value))
    return digits if len(digits) == 4 else None


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


# ===================
# INDEX LOADING
# ===================

_index_cache: dict[str, CorpusIndex] = {}

def load_index(path: Optional[str] = None) -> CorpusIndex:
    """
    Load the corpus index JSON, once per path.

    Raises:
        RagIndexNotFoundError: If the file is missing or unreadable
    """
    index_path = path or settings.rag_index_path
    if index_path in _index_cache:
        return _index_cache[index_path]

    file_path = Path(index_path)
    if not file_path.exists():
        logger.error("rag_index_missing", path=index_path)
        raise RagIndexNotFoundError(index_path)

    try:
        with file_path.open(encoding="utf-8") as f:
            index = CorpusIndex(**json.load(f))
    except (OSError, ValueError) as e:
        logger.error("rag_index_unreadable", path=index_path, error=str(e))
        raise RagIndexNotFoundError(index_path) from e

    _index_cache[index_path] = index
    logger.info(
        "rag_index_loaded",
        path=index_path,
        documents=len(index.documents),
        dimensions=index.dimensions
    )
    return index


def clear_index_cache() -> None:
    _index_cache.clear()


class SimilarityService:
    """
    Free-text and UN-number lookup against the reference corpus.
    """

    def __init__(
        self,
        index: Optional[CorpusIndex] = None,
        embedding_service: Optional[EmbeddingService] = None,
        index_path: Optional[str] = None
    ):
        self._index = index
        self._index_path = index_path
        self.embedding_service = embedding_service or get_embedding_service()

    @property
    def index(self) -> CorpusIndex:
        if self._index is None:
            self._index = load_index(self._index_path)
        return self._index

    @property
    def dimensions(self) -> int:
        return self.index.dimensions or settings.rag_index_dimensions

    # ===================
    # SEARCH
    # ===================

    def search(
        self,
        query: str,
        limit: int = 10,
        sources: Optional[list[str]] = None,
        min_score: float = MIN_SCORE_SEARCH,
        context: Optional[SearchContext] = None
    ) -> SearchResponse:
        """
        Rank corpus documents against a query.

        Args:
            query: Free text, may contain a UN number
            limit: Top-K hits to return
            sources: Source categories to search (default: all)
            min_score: Cosine threshold (0.3 general search, 0.4 chat)
            context: Optional UN number and transport mode

        Returns:
            SearchResponse with hits, grouping, derived hazmat fields

        Raises:
            RagIndexNotFoundError: If the corpus index is unavailable
        """
        context = context or SearchContext()
        allowed = {
            s.value if isinstance(s, SourceCategory) else str(s)
            for s in (sources or list(SourceCategory))
        }
        documents = [d for d in self.index.documents if d.source in allowed]

        un_number = normalize_un_number(context.un_number) or detect_un_number(query)

        logger.info(
            "similarity_search",
            query=query[:80],
            un_number=un_number,
            mode=context.mode.value if context.mode else None,
            min_score=min_score,
            documents=len(documents)
        )

        provider = EXACT_MATCH_PROVIDER
        scored = self._exact_un_matches(documents, un_number) if un_number else []

        if not scored:
            embedding = self.embedding_service.embed(query, self.dimensions)
            provider = embedding.provider
            scored = self._vector_matches(documents, embedding.vector, min_score, un_number)

        if context.mode:
            scored = self._apply_mode_boost(scored, context.mode.value)

        scored.sort(key=lambda pair: pair[0], reverse=True)
        top = scored[:limit]
        hits = [self._to_hit(doc, score) for score, doc in top]

        logger.info(
            "similarity_search_complete",
            provider=provider,
            matches=len(scored),
            returned=len(hits),
            top_score=round(hits[0].score, 3) if hits else 0
        )

        return SearchResponse(
            query=query,
            results=hits,
            grouped=self._group(hits),
            derived=self._derive_fields(top[0][1] if top else None),
            summary=self._summarize(hits),
            stats=SearchStats(
                total_matches=len(scored),
                top_score=hits[0].score if hits else 0.0,
                sources={
                    category.value: sum(1 for h in hits if h.source == category.value)
                    for category in SourceCategory
                },
            ),
            embedding_provider=provider,
        )

    def _exact_un_matches(
        self,
        documents: list[CorpusDocument],
        un_number: str
    ) -> list[tuple[float, CorpusDocument]]:
        """Metadata matches score 1.0 x boost, plain text mentions 1.0."""
        text_pattern = re.compile(rf"\b(?:UN|NA)?\s?{un_number}\b", re.IGNORECASE)
        matches = []
        for doc in documents:
            if normalize_un_number(doc.metadata.get("unNumber")) == un_number:
                matches.append((1.0 * UN_NUMBER_BOOST, doc))
            elif text_pattern.search(doc.text):
                matches.append((1.0, doc))
        return matches

    def _vector_matches(
        self,
        documents: list[CorpusDocument],
        vector: Optional[list[float]],
        min_score: float,
        un_number: Optional[str]
    ) -> list[tuple[float, CorpusDocument]]:
        matches = []
        for doc in documents:
            score = cosine_similarity(vector or [], doc.embedding)
            if score < min_score:
                continue
            if un_number and normalize_un_number(doc.metadata.get("unNumber")) == un_number:
                score *= UN_NUMBER_BOOST
            matches.append((score, doc))
        return matches

    def _apply_mode_boost(
        self,
        scored: list[tuple[float, CorpusDocument]],
        mode: str
    ) -> list[tuple[float, CorpusDocument]]:
        part = TRANSPORT_MODE_PARTS.get(mode)
        if not part:
            return scored
        boosted = []
        for score, doc in scored:
            if doc.source == SourceCategory.REGULATION_TEXT.value and str(doc.metadata.get("part")) == part:
                score *= TRANSPORT_MODE_BOOST
            boosted.append((score, doc))
        return boosted

    def _to_hit(self, doc: CorpusDocument, score: float) -> SearchHit:
        text = doc.text
        if len(text) > SNIPPET_LENGTH:
            text = text[:SNIPPET_LENGTH] + "..."
        return SearchHit(
            id=doc.id,
            source=doc.source,
            score=round(score, 4),
            text=text,
            metadata=doc.metadata,
        )

    def _group(self, hits: list[SearchHit]) -> GroupedResults:
        grouped = GroupedResults()
        for hit in hits:
            bucket = getattr(grouped, hit.source, None)
            if bucket is not None:
                bucket.append(hit)
        return grouped

    def _derive_fields(self, doc: Optional[CorpusDocument]) -> DerivedHazmatFields:
        if doc is None:
            return DerivedHazmatFields()
        meta = doc.metadata
        return DerivedHazmatFields(
            un_number=_as_str(meta.get("unNumber")),
            hazard_class=_as_str(meta.get("hazardClass") or meta.get("class")),
            packing_group=_as_str(meta.get("packingGroup")),
            proper_shipping_name=_as_str(meta.get("properShippingName") or meta.get("name")),
        )

    def _summarize(self, hits: list[SearchHit]) -> SearchSummary:
        summary = SearchSummary()
        for hit in hits[:SUMMARY_SIZE]:
            meta = hit.metadata
            if hit.source == SourceCategory.REGULATION_TEXT.value:
                summary.regulations.append({
                    "section": meta.get("section"),
                    "subject": meta.get("subject"),
                    "relevance": hit.score,
                })
            elif hit.source == SourceCategory.EMERGENCY_GUIDE.value:
                summary.emergency.append({
                    "type": meta.get("type"),
                    "guideNumber": meta.get("guideNumber"),
                    "unNumber": meta.get("unNumber"),
                    "relevance": hit.score,
                })
            elif hit.source == SourceCategory.PRODUCT_CATALOG.value:
                summary.products.append({
                    "sku": meta.get("sku"),
                    "name": meta.get("name"),
                    "isHazardous": meta.get("isHazardous"),
                    "relevance": hit.score,
                })
            elif hit.source == SourceCategory.HAZARD_TABLE.value:
                summary.hazmat.append({
                    "unNumber": meta.get("unNumber"),
                    "name": meta.get("name"),
                    "hazardClass": meta.get("hazardClass"),
                    "packingGroup": meta.get("packingGroup"),
                    "relevance": hit.score,
                })
        return summary

    # ===================
    # LOOKUPS
    # ===================

    def find_hazard_class_by_un(self, un_number: str) -> Optional[str]:
        """
        Hazard class for a UN number from the hazardous materials table.

        Returns None when the number is unknown or the index is unavailable.
        """
        target = normalize_un_number(un_number)
        if not target:
            return None

        try:
            documents = self.index.documents
        except RagIndexNotFoundError:
            logger.warning("un_lookup_index_unavailable", un_number=un_number)
            return None

        for doc in documents:
            if doc.source != SourceCategory.HAZARD_TABLE.value:
                continue
            if normalize_un_number(doc.metadata.get("unNumber")) == target:
                hazard_class = doc.metadata.get("hazardClass") or doc.metadata.get("class")
                if hazard_class:
                    return _as_str(hazard_class)
        return None

    def classify_description(
        self,
        product_name: str,
        min_score: float = MIN_SCORE_CHAT
    ) -> DescriptionClassifyResponse:
        """
        Turn the best corpus match for a description into a suggestion.

        Only hazmat matches yield a suggestion; non-hazardous goods need
        dimensions for the density path.
        """
        result = self.search(product_name, limit=5, min_score=min_score)
        derived = result.derived

        if not result.results:
            return DescriptionClassifyResponse(
                is_hazmat=False,
                message="No sufficiently similar reference entries found"
            )

        if not derived.hazard_class:
            return DescriptionClassifyResponse(
                is_hazmat=False,
                matches=result.results,
                message="No hazmat match; provide weight and dimensions for density classification"
            )

        mapping = get_hazmat_mapping(derived.hazard_class)
        name = derived.proper_shipping_name or product_name
        pg = f" PG {derived.packing_group}" if derived.packing_group else ""
        description = f"HAZMAT Class {derived.hazard_class}{pg} - {name}"
        confidence = min(round(result.results[0].score, 2), HAZMAT_CONFIDENCE)

        return DescriptionClassifyResponse(
            is_hazmat=True,
            suggestion=ClassificationSuggestion(
                nmfc_code=mapping.nmfc,
                nmfc_sub="",
                freight_class=mapping.freight_class,
                description=description,
                confidence=confidence,
                hazard_class=derived.hazard_class,
                packing_group=derived.packing_group,
                un_number=derived.un_number,
                proper_shipping_name=derived.proper_shipping_name,
                label=f"{description} - NMFC {mapping.nmfc} (Class {mapping.freight_class})",
                note="Similarity match; review before linking",
            ),
            matches=result.results,
        )


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# Singleton instance for convenience
_similarity_service: Optional[SimilarityService] = None

def get_similarity_service() -> SimilarityService:
    """Get or create SimilarityService instance."""
    global _similarity_service
    if _similarity_service is None:
        _similarity_service = SimilarityService()
    return _similarity_service
