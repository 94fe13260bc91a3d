"""
Rate limiting for the Storefront API

Sliding-window log kept in process memory: every key holds the
timestamps of its accepted requests inside the current window.
"""
import math
import time
from collections import deque
from typing import Deque, Dict, Tuple

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from storefront.core.config import settings

WINDOW_SECONDS = 60


class RateLimiter:
    """
    Per-key request log. State is per process, so each worker
    enforces its own limits.
    """

    def __init__(self, clock=time.monotonic, sweep_every: int = WINDOW_SECONDS):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._sweep_every = sweep_every
        self._next_sweep = clock() + sweep_every

    def _sweep(self, now: float, window_seconds: int) -> None:
        """Forget keys with no hits in the last window"""
        if now < self._next_sweep:
            return
        cutoff = now - window_seconds
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        self._next_sweep = now + self._sweep_every

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = WINDOW_SECONDS,
    ) -> Tuple[bool, int, int]:
        """
        Record a hit for identifier if it fits in the window

        Returns:
            Tuple of (allowed, remaining, retry_after_seconds)
        """
        now = self._clock()
        self._sweep(now, window_seconds)

        hits = self._hits.setdefault(identifier, deque())
        while hits and hits[0] <= now - window_seconds:
            hits.popleft()

        if len(hits) >= max_requests:
            retry_after = max(1, math.ceil(hits[0] + window_seconds - now)) if hits else 1
            return False, 0, retry_after

        hits.append(now)
        return True, max_requests - len(hits), 0

    def reset(self) -> None:
        self._hits.clear()


rate_limiter = RateLimiter()

EXEMPT_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}


def limit_headers(limit: int, remaining: int, retry_after: int = 0) -> Dict[str, str]:
    headers = {"X-RateLimit-Limit": str(limit), "X-RateLimit-Remaining": str(remaining)}
    if retry_after:
        headers["Retry-After"] = str(retry_after)
    return headers


def get_client_ip(request: Request) -> str:
    """First address of X-Forwarded-For, else the socket peer"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def _token_subject(request: Request):
    """Subject of the bearer token, without verifying it"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    try:
        return jwt.get_unverified_claims(auth_header[7:]).get("sub")
    except JWTError:
        return None


def client_key(request: Request) -> Tuple[str, int]:
    """Bucket key and per-window budget: signed-in users by subject, others by IP"""
    subject = _token_subject(request)
    if subject:
        return f"user:{subject}", settings.RATE_LIMIT_AUTHENTICATED
    return f"ip:{get_client_ip(request)}", settings.RATE_LIMIT_ANONYMOUS


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Global budget per client. Adds X-RateLimit-Limit and
    X-RateLimit-Remaining to every limited response, Retry-After on 429.
    """

    async def dispatch(self, request: Request, call_next):
        if (
            not settings.RATE_LIMIT_ENABLED
            or request.method == "OPTIONS"
            or request.url.path in EXEMPT_PATHS
        ):
            return await call_next(request)

        key, limit = client_key(request)
        allowed, remaining, retry_after = rate_limiter.is_allowed(key, limit)

        if not allowed:
            # Returned rather than raised so the CORS middleware still wraps it
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"status": "error", "message": "Rate limit exceeded. Please slow down."},
                headers=limit_headers(limit, 0, retry_after),
            )

        response = await call_next(request)
        response.headers.update(limit_headers(limit, remaining))
        return response


def rate_limit(max_requests: int, window_seconds: int = WINDOW_SECONDS):
    """
    Stricter per-endpoint budget keyed by path and client IP

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit(10))])
    """
    async def checker(request: Request):
        if not settings.RATE_LIMIT_ENABLED:
            return

        key = f"endpoint:{request.url.path}:ip:{get_client_ip(request)}"
        allowed, _, retry_after = rate_limiter.is_allowed(key, max_requests, window_seconds)
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many attempts. Try again in {retry_after} seconds.",
                headers=limit_headers(max_requests, 0, retry_after),
            )

    return checker
