import os

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request


def get_client_ip(request: Request) -> str:
    """Client IP for rate limiting, honouring TRUSTED_PROXY_COUNT.

    With TRUSTED_PROXY_COUNT=0 (default) X-Forwarded-For is ignored. With N > 0
    the address N hops from the right of X-Forwarded-For is used, so a client
    cannot spoof its way past the limiter.
    """
    trusted_proxy_count = int(os.getenv("TRUSTED_PROXY_COUNT", "0"))
    if trusted_proxy_count > 0:
        forwarded = request.headers.get("X-Forwarded-For", "")
        if forwarded:
            ips = [ip.strip() for ip in forwarded.split(",")]
            return ips[max(0, len(ips) - trusted_proxy_count)]
    return get_remote_address(request)


def _get_storage_uri() -> str | None:
    """Share limiter state through Redis when a non-local REDIS_URL is configured."""
    from showroom.config import settings

    if settings.REDIS_URL and "localhost" not in settings.REDIS_URL:
        return settings.REDIS_URL
    return None


_is_dev = os.getenv("APP_ENV", "development") == "development"

limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=_get_storage_uri(),
    default_limits=["200/minute" if _is_dev else "60/minute"],
)

# Moderate limit for list endpoints to prevent scraping
LIST_RATE_LIMIT = "100/minute" if _is_dev else "30/minute"
