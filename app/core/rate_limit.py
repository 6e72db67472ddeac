import hashlib
from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.core.security import get_request_token, get_client_ip, log_security_event


def get_rate_limit_key(request: Request) -> str:
    """Authenticated callers are limited per session token, anonymous callers per IP."""
    token = get_request_token(request)
    if token:
        return "user:" + hashlib.sha256(token.encode()).hexdigest()[:32]
    ip = get_client_ip(request)
    if ip == "unknown":
        ip = get_remote_address(request)
    return "ip:" + ip


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    log_security_event(
        "rate_limit",
        "medium",
        request,
        limit=str(exc.detail),
        key_type=get_rate_limit_key(request).split(":", 1)[0],
    )
    return _rate_limit_exceeded_handler(request, exc)
