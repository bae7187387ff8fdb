"""
Species Router

GET /fish/{species}: rate-limited, cached proxy to the species API.

Pipeline (fixed order):
1. enforce_rate_limit: fixed-window limit per endpoint + client (429)
2. cached_species: cache-aside lookup; a hit is returned immediately
3. SpeciesRequestHandler: upstream fetch, cache population, response

Error responses are produced by the exception handlers in main.py:
- 429 {"message": "too much requests"}
- 404 "Data unavailable" (upstream or cache population failure)
- 404 with an empty body (cache lookup failure)
- 503 when the store is not ready or unreachable under the fail-closed policy
"""

from fastapi import APIRouter, Depends

from species_proxy.dependencies import (
    CachedSpecies,
    SpeciesHandler,
    enforce_rate_limit,
)
from species_proxy.schemas import MessageResponse, SpeciesResponse

router = APIRouter(
    prefix="/fish",
    tags=["Species"],
    responses={
        404: {"description": "Data unavailable"},
        429: {"model": MessageResponse, "description": "Rate limit exceeded"},
        503: {"model": MessageResponse, "description": "Key-value store unavailable"},
    },
)


@router.get(
    "/{species}",
    response_model=SpeciesResponse,
    dependencies=[Depends(enforce_rate_limit)],
    summary="Get species data",
    description=(
        "Return species data from the upstream API. Responses are cached "
        "for a few seconds; `fromCache` tells whether this one was."
    ),
)
async def get_species(
    species: str,
    cached: CachedSpecies,
    handler: SpeciesHandler,
) -> dict:
    """
    Serve a species from the cache, or fetch and cache it on a miss.

    Args:
        species: Species identifier, used verbatim as the cache key
        cached: Cached payload, or None on a miss
        handler: Upstream fetch-and-populate handler

    Returns:
        {"fromCache": bool, "data": <upstream JSON>}
    """
    if cached is not None:
        return {"fromCache": True, "data": cached}

    return await handler.handle(species)
