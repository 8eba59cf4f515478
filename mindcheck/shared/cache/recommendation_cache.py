"""Read-through cache for catalog listings and personalized interventions.

Payloads are JSON documents in redis with a TTL. The engine never reads
this cache; callers invalidate it whenever an intervention's effectiveness
score changes or a subject records a new check-in or feedback event.

Key layout:
    interventions:<type|all>          catalog listings
    user:<subject_id>:interventions   personalized lists
    employee:<subject_id>:history     history summary
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import redis

from mindcheck.shared.utils import hash_pii

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheConfig:
    """Cache connection and TTL settings."""
    url: str = "redis://localhost:6379/0"
    personalized_ttl_seconds: int = 3600
    catalog_ttl_seconds: int = 3600
    history_ttl_seconds: int = 300

    @classmethod
    def from_env(cls) -> "CacheConfig":
        return cls(
            url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            personalized_ttl_seconds=int(os.getenv("CACHE_PERSONALIZED_TTL", "3600")),
            catalog_ttl_seconds=int(os.getenv("CACHE_CATALOG_TTL", "3600")),
            history_ttl_seconds=int(os.getenv("CACHE_HISTORY_TTL", "300")),
        )


def personalized_key(subject_id: str) -> str:
    return f"user:{subject_id}:interventions"


def catalog_key(intervention_type: Optional[str] = None) -> str:
    return f"interventions:{intervention_type or 'all'}"


def history_key(subject_id: str) -> str:
    return f"employee:{subject_id}:history"


def _loggable(key: str) -> str:
    """Key with the subject segment hashed, safe to log."""
    parts = key.split(":")
    if parts[0] in ("user", "employee") and len(parts) > 1 and parts[1] != "*":
        parts[1] = hash_pii(parts[1])[:16]
    return ":".join(parts)


class RecommendationCache:
    """JSON cache over a redis client.

    Cache errors are logged and treated as misses; a cache outage must
    never fail a check-in.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        config: Optional[CacheConfig] = None,
    ):
        self.config = config or CacheConfig()
        self._client = client or redis.Redis.from_url(self.config.url, decode_responses=True)

    def _get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("CACHE_GET_FAILED", extra={"key": _loggable(key), "error": str(e)})
            return None
        return json.loads(raw) if raw else None

    def _set(self, key: str, payload: Any, ttl: int) -> None:
        try:
            self._client.set(key, json.dumps(payload), ex=ttl)
        except redis.RedisError as e:
            logger.warning("CACHE_SET_FAILED", extra={"key": _loggable(key), "error": str(e)})

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Returns:
            Number of keys deleted
        """
        deleted = 0
        try:
            for key in self._client.scan_iter(match=pattern):
                deleted += self._client.delete(key)
        except redis.RedisError as e:
            logger.error(
                "CACHE_INVALIDATION_FAILED",
                extra={"pattern": _loggable(pattern), "error": str(e)}
            )
            return deleted

        logger.info("CACHE_INVALIDATED", extra={"pattern": _loggable(pattern), "deleted": deleted})
        return deleted

    def get_personalized(self, subject_id: str) -> Optional[list]:
        return self._get(personalized_key(subject_id))

    def set_personalized(self, subject_id: str, interventions: list) -> None:
        self._set(
            personalized_key(subject_id),
            interventions,
            self.config.personalized_ttl_seconds,
        )

    def get_catalog(self, intervention_type: Optional[str] = None) -> Optional[list]:
        return self._get(catalog_key(intervention_type))

    def set_catalog(self, interventions: list, intervention_type: Optional[str] = None) -> None:
        self._set(
            catalog_key(intervention_type),
            interventions,
            self.config.catalog_ttl_seconds,
        )

    def get_history(self, subject_id: str) -> Optional[dict]:
        return self._get(history_key(subject_id))

    def set_history(self, subject_id: str, summary: dict) -> None:
        self._set(history_key(subject_id), summary, self.config.history_ttl_seconds)

    def invalidate_subject(self, subject_id: str) -> int:
        """Drop everything cached for one subject."""
        return (
            self.invalidate_pattern(personalized_key(subject_id))
            + self.invalidate_pattern(f"employee:{subject_id}:*")
        )

    def invalidate_interventions(self) -> int:
        """Drop catalog listings and every personalized list.

        Called after an effectiveness recompute, since any subject's
        personalized ordering may have changed.
        """
        return (
            self.invalidate_pattern("interventions:*")
            + self.invalidate_pattern("user:*:interventions")
        )
