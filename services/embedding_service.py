"""
Query embeddings for similarity search.

Strategies are tried in order and each returns an EmbeddingResult instead
of raising. The remote provider is bounded by a timeout; on any failure
(missing key, timeout, auth, quota, malformed reply) the local hashing
vector is used, so search degrades to lexical ranking instead of failing.
"""

import math
from dataclasses import dataclass
from typing import Optional, Protocol
import openai
from openai import OpenAI
import structlog

from config import settings
from exceptions import UpstreamProviderError

logger = structlog.get_logger(__name__)


LOCAL_HASH_PROVIDER = "local-hash"

# FNV-1a, 32 bit
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619


@dataclass(frozen=True)
class EmbeddingResult:
    """Outcome of one embedding attempt."""

    provider: str
    vector: Optional[list[float]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.vector is not None

    @classmethod
    def success(cls, provider: str, vector: list[float]) -> "EmbeddingResult":
        return cls(provider=provider, vector=vector)

    @classmethod
    def failure(cls, provider: str, error: str) -> "EmbeddingResult":
        return cls(provider=provider, error=error)


def l2_normalize(vector: list[float]) -> list[float]:
    norm = math.sqrt(sum(x * x for x in vector)) or 1.0
    return [x / norm for x in vector]


def _fnv1a(text: str) -> int:
    h = FNV_OFFSET_BASIS
    for ch in text:
        h ^= ord(ch)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def hashing_vector(text: str, dimensions: int = 512, ngram: int = 3) -> list[float]:
    """
    Deterministic local embedding.

    Hashes character n-grams of the lowercased, space-padded text into
    `dimensions` buckets and L2-normalizes the counts. Same text, same
    vector, on every machine.
    """
    vec = [0.0] * dimensions
    padded = f" {(text or '').lower()} "
    for i in range(len(padded) - ngram + 1):
        vec[_fnv1a(padded[i:i + ngram]) % dimensions] += 1.0
    return l2_normalize(vec)


class EmbeddingStrategy(Protocol):
    name: str

    def embed(self, text: str, dimensions: int) -> EmbeddingResult:
        ...


class OpenAIEmbeddingStrategy:
    """
    OpenAI embeddings API, called synchronously with a bounded timeout.

    Retries are off so one call never outlives the timeout.
    """

    name = "openai"

    def __init__(self, api_key: Optional[str], model: str, timeout: float):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def embed(self, text: str, dimensions: int) -> EmbeddingResult:
        if not self.api_key:
            return EmbeddingResult.failure(self.name, "api key not configured")

        try:
            response = self._get_client().embeddings.create(
                input=text,
                model=self.model,
                dimensions=dimensions,
            )
            vector = response.data[0].embedding
        except (openai.OpenAIError, AttributeError, IndexError, TypeError) as e:
            error = UpstreamProviderError(
                self.name,
                f"Embedding request failed: {e}",
                details={"error_type": type(e).__name__}
            )
            logger.warning(
                "embedding_provider_failed",
                provider=self.name,
                code=error.code,
                error=str(e),
                error_type=type(e).__name__
            )
            return EmbeddingResult.failure(self.name, error.message)

        if not isinstance(vector, list) or len(vector) != dimensions:
            logger.warning(
                "embedding_dimension_mismatch",
                provider=self.name,
                expected=dimensions,
                received=len(vector) if isinstance(vector, list) else None
            )
            return EmbeddingResult.failure(self.name, "dimension mismatch")

        return EmbeddingResult.success(self.name, l2_normalize(vector))


class HashingEmbeddingStrategy:
    """Local n-gram hashing vector. Never fails."""

    name = LOCAL_HASH_PROVIDER

    def embed(self, text: str, dimensions: int) -> EmbeddingResult:
        return EmbeddingResult.success(self.name, hashing_vector(text, dimensions))


def default_strategies() -> list[EmbeddingStrategy]:
    """Remote provider first, local hashing last."""
    return [
        OpenAIEmbeddingStrategy(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            timeout=settings.embedding_timeout_seconds,
        ),
        HashingEmbeddingStrategy(),
    ]


class EmbeddingService:
    """
    Resolve a query vector from an ordered list of strategies.

    The first successful result wins. If every strategy fails the local
    hashing vector is returned anyway.
    """

    def __init__(self, strategies: Optional[list[EmbeddingStrategy]] = None):
        self.strategies = strategies if strategies is not None else default_strategies()

    def embed(self, text: str, dimensions: int) -> EmbeddingResult:
        for strategy in self.strategies:
            result = strategy.embed(text, dimensions)
            if result.ok:
                return result
            logger.info(
                "embedding_strategy_skipped",
                provider=result.provider,
                reason=result.error
            )

        return EmbeddingResult.success(LOCAL_HASH_PROVIDER, hashing_vector(text, dimensions))


# Singleton instance for convenience
_embedding_service: Optional[EmbeddingService] = None

def get_embedding_service() -> EmbeddingService:
    """Get or create EmbeddingService instance."""
    global _embedding_service
    if _embedding_service is None:
        _embedding_service = EmbeddingService()
    return _embedding_service
