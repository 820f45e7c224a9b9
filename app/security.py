"""
In-memory request limiting for the trigger endpoints.
"""
from __future__ import annotations

import os
import time
from typing import Dict, Tuple

# -------- CONFIG --------
REFRESH_LIMIT = int(os.getenv("REFRESH_RATE_LIMIT", "3"))
REFRESH_WINDOW_SECONDS = int(os.getenv("REFRESH_RATE_WINDOW_SECONDS", "300"))
# ------------------------

_rate_state: Dict[str, list[float]] = {}


def client_key(request, scope: str) -> str:
    """Rate-limit key for one client on one endpoint."""
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    host = forwarded or (request.client.host if request.client else "unknown")
    return f"{scope}:{host}"


def allow_request(key: str, limit: int = REFRESH_LIMIT, window_seconds: int = REFRESH_WINDOW_SECONDS) -> bool:
    """
    Simple sliding-window rate limit stored in memory.
    Returns True if under limit, False otherwise.
    """
    allowed, _ = allow_request_with_remaining(key, limit=limit, window_seconds=window_seconds)
    return allowed


def allow_request_with_remaining(
    key: str, limit: int = REFRESH_LIMIT, window_seconds: int = REFRESH_WINDOW_SECONDS
) -> Tuple[bool, int]:
    """
    Sliding-window rate limit with remaining-count feedback.
    Returns (allowed, remaining_after).
    """
    now = time.time()
    window_start = now - window_seconds
    history = [t for t in _rate_state.get(key, []) if t > window_start]
    if len(history) >= limit:
        _rate_state[key] = history
        return False, 0
    history.append(now)
    _rate_state[key] = history
    return True, max(0, limit - len(history))


def reset_rate_limits() -> None:
    _rate_state.clear()


__all__ = [
    "allow_request",
    "allow_request_with_remaining",
    "client_key",
    "reset_rate_limits",
]
