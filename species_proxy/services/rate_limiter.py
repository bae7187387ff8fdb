"""
Rate Limiting Service

Fixed-window rate limiting on top of the shared Redis store.

Algorithm:
==========
1. key = "<endpoint>/<client address>"
2. Atomically increment the counter at key; when the counter is new its
   TTL is set to the window length in the same operation
3. If the counter is above max_requests the request is rejected with
   RateLimitExceeded; otherwise it is allowed

Every request increments the counter, including rejected ones, so a client
that keeps hammering the endpoint stays blocked until the window expires.

Store failures follow the configured policy: fail closed (reject with
StoreUnavailable) or fail open (log and allow).
"""

import logging
from dataclasses import dataclass

from fastapi import Request
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from species_proxy.exceptions import RateLimitExceeded, StoreUnavailable
from species_proxy.services.store import SpeciesStore

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "too much requests"


@dataclass(frozen=True)
class RateLimitRule:
    """Static pairing of an endpoint with its window and request budget."""

    endpoint: str
    window_seconds: int
    max_requests: int


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """
    Get client IP address for rate limiting.

    Proxy headers are only honoured when trust_proxy_headers is set,
    otherwise any client could pick its own rate limit key.

    Args:
        request: FastAPI request object
        trust_proxy_headers: Whether X-Forwarded-For / X-Real-IP are trusted

    Returns:
        Client IP address string
    """
    if trust_proxy_headers:
        # X-Forwarded-For can contain multiple IPs; first is the client
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return get_remote_address(request)


def make_rate_limit_key(rule: RateLimitRule, client_address: str) -> str:
    """Build the counter key for a rule and client, e.g. "/fish/{species}/1.2.3.4"."""
    return f"{rule.endpoint}/{client_address}"


class RateLimiter:
    """
    Fixed-window counter for a single RateLimitRule.

    Args:
        store: Connected SpeciesStore
        rule: The rule to enforce
        fail_open: Allow requests when the store is unreachable
    """

    def __init__(self, store: SpeciesStore, rule: RateLimitRule, fail_open: bool = False):
        self.store = store
        self.rule = rule
        self.fail_open = fail_open

    async def hit(self, client_address: str) -> int:
        """
        Count one request for a client and enforce the rule.

        Args:
            client_address: Identifier of the calling client

        Returns:
            The post-increment counter value (0 if the store was bypassed)

        Raises:
            RateLimitExceeded: If the client is over its budget
            StoreUnavailable: If the store is down and the policy is fail-closed
        """
        key = make_rate_limit_key(self.rule, client_address)

        try:
            requests = await self.store.increment_with_expiry(
                key, self.rule.window_seconds
            )
        except StoreUnavailable as e:
            if self.fail_open:
                logger.warning(f"Rate limiter bypassed, store unavailable: {e}")
                return 0
            raise

        if requests > self.rule.max_requests:
            logger.warning(
                f"Rate limit exceeded for {client_address}: "
                f"{requests}/{self.rule.max_requests} in {self.rule.window_seconds}s"
            )
            raise RateLimitExceeded(
                retry_after=await self._retry_after(key),
                context={"key": key, "requests": requests},
            )

        return requests

    async def _retry_after(self, key: str) -> int:
        try:
            remaining = await self.store.ttl(key)
        except StoreUnavailable:
            return self.rule.window_seconds
        return remaining if remaining > 0 else self.rule.window_seconds


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Convert RateLimitExceeded into a 429 response.

    Returns:
        JSONResponse {"message": "too much requests"} with a Retry-After header
    """
    response = JSONResponse(
        status_code=429,
        content={"message": RATE_LIMIT_MESSAGE},
    )
    response.headers["Retry-After"] = str(exc.retry_after)
    return response
