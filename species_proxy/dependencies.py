"""
FastAPI Dependencies Module

Dependencies wire the process-wide resources created in the lifespan
(Redis store, upstream HTTP client) into route handlers, and implement the
first two stages of the species pipeline:

    enforce_rate_limit  →  cached_species  →  route handler

FastAPI resolves route-level dependencies before parameter dependencies,
and resolves each of them in declaration order, which fixes the pipeline
order. Tests swap any of these with app.dependency_overrides.
"""

from typing import Annotated, Any, Optional

import httpx
from fastapi import Depends, Request

from species_proxy.config import Settings, get_settings
from species_proxy.exceptions import ServiceNotReady, StoreUnavailable
from species_proxy.services.cache import CacheGate
from species_proxy.services.rate_limiter import RateLimiter, RateLimitRule, get_client_ip
from species_proxy.services.species import SpeciesRequestHandler
from species_proxy.services.store import SpeciesStore
from species_proxy.services.upstream import UpstreamFetcher

SPECIES_ENDPOINT = "/fish/{species}"

AppSettings = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# Process-wide Resources
# =============================================================================
async def get_store(request: Request) -> SpeciesStore:
    """
    Return the connected store from app state.

    Acts as the readiness gate: until the store has been connected every
    request is rejected with ServiceNotReady (503). If Redis was down at
    startup, each request retries the connection once.
    """
    store: Optional[SpeciesStore] = getattr(request.app.state, "store", None)
    if store is None:
        raise ServiceNotReady("Key-value store is not initialized yet")

    if not store.is_ready:
        try:
            await store.start()
        except StoreUnavailable as e:
            raise ServiceNotReady("Key-value store is not connected yet") from e

    return store


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the shared httpx client created in the lifespan."""
    client: Optional[httpx.AsyncClient] = getattr(request.app.state, "http_client", None)
    if client is None:
        raise ServiceNotReady("Upstream HTTP client is not initialized yet")
    return client


def get_fetcher(
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    settings: AppSettings,
) -> UpstreamFetcher:
    """Build an UpstreamFetcher around the shared httpx client."""
    return UpstreamFetcher(
        client,
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout,
    )


Store = Annotated[SpeciesStore, Depends(get_store)]
Fetcher = Annotated[UpstreamFetcher, Depends(get_fetcher)]


# =============================================================================
# Services
# =============================================================================
def species_rate_limit_rule(settings: Settings) -> RateLimitRule:
    """The single rate limit rule attached to GET /fish/{species}."""
    return RateLimitRule(
        endpoint=SPECIES_ENDPOINT,
        window_seconds=settings.rate_limit_window,
        max_requests=settings.rate_limit_max_requests,
    )


def get_rate_limiter(store: Store, settings: AppSettings) -> RateLimiter:
    return RateLimiter(
        store,
        species_rate_limit_rule(settings),
        fail_open=settings.fail_open,
    )


def get_cache_gate(store: Store, settings: AppSettings) -> CacheGate:
    return CacheGate(store, ttl=settings.cache_ttl)


def get_species_handler(
    fetcher: Fetcher,
    cache: Annotated[CacheGate, Depends(get_cache_gate)],
) -> SpeciesRequestHandler:
    return SpeciesRequestHandler(fetcher, cache)


SpeciesHandler = Annotated[SpeciesRequestHandler, Depends(get_species_handler)]


# =============================================================================
# Pipeline Stages
# =============================================================================
async def enforce_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    settings: AppSettings,
) -> None:
    """
    Stage 1: count the request against the client's fixed window.

    Raises RateLimitExceeded (429) when the client is over budget, and
    StoreUnavailable (503) when Redis is down under the fail-closed policy.
    """
    if not settings.rate_limit_enabled:
        return

    client_address = get_client_ip(request, settings.trust_proxy_headers)
    await limiter.hit(client_address)


async def cached_species(
    species: str,
    cache: Annotated[CacheGate, Depends(get_cache_gate)],
) -> Optional[Any]:
    """
    Stage 2: cache-aside read check.

    Returns the cached payload on a hit and None on a miss. Raises
    CacheLookupFailure (404) when the store or the stored JSON is broken.
    """
    return await cache.lookup(species)


CachedSpecies = Annotated[Optional[Any], Depends(cached_species)]
