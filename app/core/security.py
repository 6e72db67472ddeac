"""
Request identity helpers and security event logging.

Security events are written to the "app.security" logger as one line per
event so they can be filtered and shipped separately from the app log.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request

from app.config import settings

security_logger = logging.getLogger("app.security")

_SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
}


def get_client_ip(request: Request) -> str:
    """Best-effort client IP: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_request_token(request: Request) -> Optional[str]:
    """Access token from the Authorization header, falling back to the Supabase session cookie."""
    auth_header = request.headers.get("authorization")
    if auth_header:
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    cookie_token = request.cookies.get(settings.access_token_cookie)
    if cookie_token:
        return cookie_token
    return None


def log_security_event(event_type: str, severity: str, request: Request, **details: Any) -> None:
    """Log a security event (rate_limit, unauthorized_access, suspicious_activity)."""
    event = {
        "type": event_type,
        "severity": severity,
        "ip": get_client_ip(request),
        "user_agent": request.headers.get("user-agent", "unknown"),
        "method": request.method,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": details,
    }
    security_logger.log(
        _SEVERITY_LEVELS.get(severity, logging.WARNING),
        "security_event %s",
        json.dumps(event, default=str, ensure_ascii=False),
    )
