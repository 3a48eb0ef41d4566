from starlette.requests import Request

from slowapi import Limiter
from slowapi.util import get_remote_address

RATE_LIMIT_KEY_HEADER = "X-Rate-Limit-Key"


def _rate_limit_key(request: Request) -> str:
    """Bucket by client address unless the caller names its own key."""

    override = request.headers.get(RATE_LIMIT_KEY_HEADER)
    if override:
        return override
    return get_remote_address(request)


limiter = Limiter(
    key_func=_rate_limit_key,
    default_limits=[],
    headers_enabled=True,
)

__all__ = ["RATE_LIMIT_KEY_HEADER", "limiter"]
