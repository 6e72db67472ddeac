import uuid

from app.config import settings


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                    (b"Permissions-Policy", b"camera=(self), geolocation=(self), microphone=()"),
                ])
                if settings.is_production:
                    message["headers"].append(
                        (b"Strict-Transport-Security", b"max-age=31536000; includeSubDomains")
                    )
            await send(message)

        await self.app(scope, receive, send_with_headers)


class RequestContextMiddleware:
    """Tags API responses with a request id; echoes the caller IP outside production."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not scope.get("path", "").startswith("/api/"):
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        client = scope.get("client")
        client_ip = client[0] if client else "unknown"

        async def send_with_context(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].append((b"X-Request-ID", request_id.encode()))
                if not settings.is_production:
                    message["headers"].append((b"X-Request-IP", client_ip.encode()))
            await send(message)

        await self.app(scope, receive, send_with_context)
