"""
Pydantic Schemas Package

Request/response models used for validation and OpenAPI documentation.
"""

from species_proxy.schemas.species import MessageResponse, SpeciesResponse

__all__ = [
    "MessageResponse",
    "SpeciesResponse",
]
