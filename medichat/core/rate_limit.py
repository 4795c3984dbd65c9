"""Per-IP rate limiting (SlowAPI), proxy aware (X-Forwarded-For)."""
from fastapi import Request

from slowapi import Limiter

from medichat.core.config import settings


def _get_client_ip(request: Request) -> str:
    """Real client IP behind a reverse proxy."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def analyze_limit() -> str:
    """Limit for the AI endpoints, read per request so RATE_LIMIT_PER_MINUTE changes apply without a restart."""
    return f"{settings.rate_limit_per_minute}/minute"


limiter = Limiter(key_func=_get_client_ip)
