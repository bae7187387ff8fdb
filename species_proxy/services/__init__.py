"""
Services Package

Business logic kept separate from HTTP handling:

- store.py: async Redis wrapper (get, set-if-absent, atomic increment)
- rate_limiter.py: fixed-window rate limiting per endpoint + client
- cache.py: cache-aside lookup and set-if-absent population
- upstream.py: httpx client for the species API
- species.py: fetch-then-populate handler for cache misses
"""
