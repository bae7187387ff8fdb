"""
API Routers Package

- species.py: GET /fish/{species}

Each router is imported and registered in main.py.
"""

from species_proxy.routers.species import router as species_router

__all__ = [
    "species_router",
]
