"""
Species Proxy API Package

Rate-limited, Redis-cached proxy in front of a remote species API.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- main.py: FastAPI application factory, lifespan and exception handlers
- dependencies.py: Dependency injection and pipeline stages
- exceptions.py: Domain exception hierarchy
- schemas/: Pydantic response schemas
- routers/: API route handlers
- services/: Store, rate limiting, caching and upstream access
"""

__version__ = "0.1.0"
