"""
Upstream Species API Client

Fetches species data from the remote API with httpx:

    GET {upstream_base_url}/api/species/{species}

The call duration is measured and logged; it is never part of the response.
Network errors, timeouts, non-2xx statuses and malformed bodies all surface
as UpstreamFetchFailure.
"""

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from species_proxy.exceptions import UpstreamFetchFailure

logger = logging.getLogger(__name__)


class UpstreamFetcher:
    """
    Client for the species API.

    The httpx.AsyncClient is owned by the application lifespan and shared
    by all requests.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str, timeout: float = 10.0):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def species_url(self, species: str) -> str:
        """Upstream URL for a species; the key is percent-encoded as one path segment."""
        return f"{self.base_url}/api/species/{quote(species, safe='')}"

    async def fetch(self, species: str) -> Any:
        """
        Fetch the JSON body for a species.

        Args:
            species: Species key from the path

        Returns:
            Parsed JSON body (usually a list of species records)

        Raises:
            UpstreamFetchFailure: On any network, status or decode error
        """
        url = self.species_url(species)
        start = time.perf_counter()

        try:
            response = await self.client.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchFailure(
                f"Species API returned {e.response.status_code} for {url}",
                context={"species": species, "status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchFailure(
                f"Species API request failed for {url}: {e!r}",
                context={"species": species},
            ) from e
        except ValueError as e:
            raise UpstreamFetchFailure(
                f"Species API returned a malformed body for {url}: {e}",
                context={"species": species},
            ) from e
        finally:
            elapsed = time.perf_counter() - start
            logger.info(f"Request sent to API and took {elapsed:.3f} seconds")

        return data
