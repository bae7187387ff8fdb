"""
Species Request Handler

Non-cached path of GET /fish/{species}:

1. Fetch the species from the upstream API
2. Treat an empty result as an upstream failure
3. Populate the cache (set-if-absent, so a concurrent writer is not overwritten)
4. Return {"fromCache": false, "data": results}

Any failure is reported as UpstreamFetchFailure; the router turns it into a
404 "Data unavailable" and the detail is only logged.
"""

import logging
from typing import Any

from species_proxy.exceptions import StoreUnavailable, UpstreamFetchFailure
from species_proxy.services.cache import CacheGate
from species_proxy.services.upstream import UpstreamFetcher

logger = logging.getLogger(__name__)


def is_empty_result(results: Any) -> bool:
    """True for null bodies and empty arrays. Empty objects are valid results."""
    return results is None or (isinstance(results, list) and len(results) == 0)


class SpeciesRequestHandler:
    """Fetch-then-populate orchestration for cache misses."""

    def __init__(self, fetcher: UpstreamFetcher, cache: CacheGate):
        self.fetcher = fetcher
        self.cache = cache

    async def handle(self, species: str) -> dict:
        """
        Fetch a species from upstream and cache the result.

        Args:
            species: Species key from the path

        Returns:
            Response payload {"fromCache": False, "data": results}

        Raises:
            UpstreamFetchFailure: If fetching, validating or caching fails
        """
        results = await self.fetcher.fetch(species)

        if is_empty_result(results):
            raise UpstreamFetchFailure(
                "API returned an empty array", context={"species": species}
            )

        try:
            await self.cache.populate(species, results)
        except StoreUnavailable as e:
            raise UpstreamFetchFailure(
                f"Failed to cache species {species}: {e}",
                context={"species": species},
            ) from e

        return {"fromCache": False, "data": results}
