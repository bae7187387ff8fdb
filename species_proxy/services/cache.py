"""
Species Response Cache

Cache-aside helpers over the shared Redis store.

- lookup(): read a prior response for a species (hit short-circuits the
  request, miss lets the request continue to the upstream fetch)
- populate(): store a fresh upstream response with SET NX EX, so when two
  concurrent misses race only the first writer's value is kept

Entries are never updated in place; they disappear when their TTL runs out.
"""

import json
import logging
from typing import Any, Optional

from species_proxy.exceptions import CacheLookupFailure, StoreUnavailable
from species_proxy.services.store import SpeciesStore

logger = logging.getLogger(__name__)


def make_cache_key(species: str) -> str:
    """
    Cache key for a species.

    The species path parameter is used verbatim so the same species always
    maps to the same key.
    """
    return species


class CacheGate:
    """Cache-aside read check and population for species responses."""

    def __init__(self, store: SpeciesStore, ttl: int = 5):
        self.store = store
        self.ttl = ttl

    async def lookup(self, species: str) -> Optional[Any]:
        """
        Get a cached response for a species.

        Args:
            species: Species key from the path

        Returns:
            The decoded response, or None on a cache miss

        Raises:
            CacheLookupFailure: If the store errors or the entry is not valid JSON
        """
        key = make_cache_key(species)
        try:
            value = await self.store.get(key)
        except StoreUnavailable as e:
            raise CacheLookupFailure(
                f"Cache get error for {key}: {e}", context={"species": species}
            ) from e

        if not value:
            logger.debug(f"Cache MISS: {key}")
            return None

        try:
            results = json.loads(value)
        except json.JSONDecodeError as e:
            raise CacheLookupFailure(
                f"Cache JSON decode error for {key}: {e}", context={"species": species}
            ) from e

        logger.debug(f"Cache HIT: {key}")
        return results

    async def populate(self, species: str, results: Any) -> bool:
        """
        Cache an upstream response unless one is already stored.

        Args:
            species: Species key from the path
            results: JSON-serializable upstream body

        Returns:
            True if this call wrote the entry, False if another request won

        Raises:
            StoreUnavailable: If the store errors
        """
        key = make_cache_key(species)
        written = await self.store.set_if_absent(key, json.dumps(results), self.ttl)
        if written:
            logger.debug(f"Cache SET: {key} (TTL: {self.ttl}s)")
        else:
            logger.debug(f"Cache SET skipped, already populated: {key}")
        return written
