"""Request pipeline middleware.

``build_middleware`` returns the stack outermost first. Order matters: the
error boundary must wrap every stage that can raise, and sanitization must
run before any route sees the body or query string.
"""

import json
import logging
import time
from urllib.parse import parse_qsl, urlencode

from fastapi import Request
from limits import parse
from slowapi.util import get_remote_address
from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from infographic_api.config import Settings
from infographic_api.error_handlers import render_error
from infographic_api.errors import PayloadTooLargeError, TooManyRequestsError

logger = logging.getLogger("infographic_api")

PARAMETER_WHITELIST = frozenset({"tags", "category"})
DOCS_PATHS = ("/api-docs", "/openapi.json")


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "0"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        response.headers["X-Download-Options"] = "noopen"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        if request.url.path.startswith(DOCS_PATHS):
            # Swagger UI loads its assets from a CDN.
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
                "img-src 'self' data: https://fastapi.tiangolo.com"
            )
        else:
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


# --- Request logging middleware (development only) ---
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        logger.info(
            "%s %s %d %.0fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response


# --- Error boundary: everything raised below renders through the translator ---
class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, production: bool) -> None:
        super().__init__(app)
        self.production = production

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return render_error(exc, request, self.production)


# --- Rate limiting, API paths only ---
class ApiRateLimitMiddleware(BaseHTTPMiddleware):
    """One moving-window budget per client address, shared by every ``/api/`` route.

    Counts against the app limiter's storage directly, so routes mounted
    through ``include_router`` are limited the same as app-level routes.
    """

    def __init__(self, app: ASGIApp, limit: str) -> None:
        super().__init__(app)
        self.limit_item = parse(limit)

    async def dispatch(self, request: Request, call_next) -> Response:
        limiter = request.app.state.limiter
        if not limiter.enabled or not request.url.path.startswith("/api/"):
            return await call_next(request)
        if not limiter.limiter.hit(self.limit_item, "global", get_remote_address(request)):
            raise TooManyRequestsError()
        return await call_next(request)


async def _read_body(receive: Receive, max_bytes: int | None = None) -> bytes:
    chunks: list[bytes] = []
    size = 0
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunk = message.get("body", b"")
        size += len(chunk)
        if max_bytes is not None and size > max_bytes:
            raise PayloadTooLargeError()
        chunks.append(chunk)
        more_body = message.get("more_body", False)
    return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


def _with_content_length(scope: Scope, length: int) -> Scope:
    headers = [(key, value) for key, value in scope["headers"] if key != b"content-length"]
    headers.append((b"content-length", str(length).encode("latin-1")))
    return {**scope, "headers": headers}


# --- Body parsing with a hard size ceiling ---
class BodySizeLimitMiddleware:
    """Buffer the request body, rejecting anything over ``max_bytes`` before routing."""

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            raise PayloadTooLargeError()

        body = await _read_body(receive, self.max_bytes)
        await self.app(scope, _replay(body, receive), send)


def sanitize_value(value):
    """Escape markup in strings and drop `$`-prefixed operator keys, recursively."""
    if isinstance(value, str):
        return value.replace("<", "&lt;").replace(">", "&gt;")
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {
            key: sanitize_value(item)
            for key, item in value.items()
            if not key.startswith("$")
        }
    return value


# --- Input sanitization ---
class SanitizeMiddleware:
    """Sanitize JSON request bodies and query strings against injection and XSS."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_string = scope.get("query_string", b"")
        if query_string:
            pairs = [
                (key, sanitize_value(value))
                for key, value in parse_qsl(query_string.decode("utf-8", "replace"), keep_blank_values=True)
                if not key.startswith("$")
            ]
            scope = {**scope, "query_string": urlencode(pairs).encode("ascii")}

        content_type = Headers(scope=scope).get("content-type", "")
        if not content_type.startswith("application/json"):
            await self.app(scope, receive, send)
            return

        body = await _read_body(receive)
        try:
            payload = json.loads(body) if body else None
        except (ValueError, UnicodeDecodeError):
            # Let the route's own parsing report the malformed body.
            await self.app(scope, _replay(body, receive), send)
            return

        if payload is not None:
            body = json.dumps(sanitize_value(payload)).encode("utf-8")
            scope = _with_content_length(scope, len(body))
        await self.app(scope, _replay(body, receive), send)


# --- Parameter pollution guard ---
class ParameterPollutionMiddleware:
    """Keep only the last value of a repeated query parameter unless it is whitelisted."""

    def __init__(self, app: ASGIApp, whitelist: frozenset[str] = PARAMETER_WHITELIST) -> None:
        self.app = app
        self.whitelist = whitelist

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        query_string = scope.get("query_string", b"") if scope["type"] == "http" else b""
        if query_string:
            last: dict[str, str] = {}
            kept: list[tuple[str, str]] = []
            for key, value in parse_qsl(query_string.decode("utf-8", "replace"), keep_blank_values=True):
                if key in self.whitelist:
                    kept.append((key, value))
                else:
                    last[key] = value
            kept.extend(last.items())
            scope = {**scope, "query_string": urlencode(kept).encode("ascii")}
        await self.app(scope, receive, send)


def build_middleware(settings: Settings) -> list[Middleware]:
    """The request pipeline, outermost first."""
    stack = [Middleware(SecurityHeadersMiddleware)]
    if settings.is_development:
        stack.append(Middleware(RequestLoggingMiddleware))
    stack += [
        Middleware(ErrorBoundaryMiddleware, production=settings.is_production),
        Middleware(ApiRateLimitMiddleware, limit=settings.rate_limit),
        Middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES),
        Middleware(SanitizeMiddleware),
        Middleware(ParameterPollutionMiddleware, whitelist=PARAMETER_WHITELIST),
        Middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
        ),
        Middleware(GZipMiddleware, minimum_size=1000),
    ]
    return stack
