from __future__ import annotations

import functools
from dataclasses import dataclass
from time import time

from django.core.cache import caches

from .errors import RateLimited


@dataclass
class LimitResult:
    allowed: bool
    remaining: int
    retry_after: int


def _bucket_key(namespace: str, ident: str, bucket: int) -> str:
    return f"rl:{namespace}:{ident}:{bucket}"


def rate_limit(namespace: str, ident: str, limit: int, window_seconds: int) -> LimitResult:
    """Fixed-window counter kept in the default cache."""
    cache = caches["default"]
    now = int(time())
    bucket = now // window_seconds
    key = _bucket_key(namespace, ident, bucket)

    current = cache.get(key, 0)
    if current >= limit:
        return LimitResult(False, 0, (bucket + 1) * window_seconds - now)
    cache.add(key, 0, timeout=window_seconds)
    new_val = cache.incr(key)
    return LimitResult(True, max(0, limit - new_val), 0)


def throttle(namespace: str, *, limit: int, window_seconds: int = 60):
    """Per-client-IP throttle for JSON views; raises RateLimited when exhausted."""

    def _decorator(view):
        @functools.wraps(view)
        def _wrapped(request, *args, **kwargs):
            ident = request.META.get("REMOTE_ADDR") or "unknown"
            res = rate_limit(namespace, ident, limit=limit, window_seconds=window_seconds)
            if not res.allowed:
                raise RateLimited(f"Too many requests. Retry in {res.retry_after}s.")
            return view(request, *args, **kwargs)

        return _wrapped

    return _decorator
