"""Redis-backed cache for recommendation listings."""
from .recommendation_cache import (
    CacheConfig,
    RecommendationCache,
    catalog_key,
    history_key,
    personalized_key,
)

__all__ = ["CacheConfig", "RecommendationCache", "catalog_key", "history_key", "personalized_key"]
