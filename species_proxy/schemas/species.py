"""
Species Pydantic Schemas

Response bodies of the species endpoint. The upstream payload is passed
through untouched, so `data` is typed as Any.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpeciesResponse(BaseModel):
    """Successful species lookup, either from the cache or from upstream."""

    model_config = ConfigDict(populate_by_name=True)

    from_cache: bool = Field(
        ...,
        alias="fromCache",
        description="True when the data was served from the cache",
    )
    data: Any = Field(
        ...,
        description="Species data exactly as returned by the upstream API",
        examples=[[{"Species Name": "Red Snapper", "Scientific Name": "Lutjanus campechanus"}]],
    )


class MessageResponse(BaseModel):
    """Error body for 429 and 503 responses."""

    message: str = Field(..., examples=["too much requests"])
