"""HTTP middleware for the linker server."""

from __future__ import annotations

import secrets
from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

HEALTH_PATH = "/linker/health"
SECRET_HEADER = "x-mcp-secret"


class SharedSecretMiddleware(BaseHTTPMiddleware):
    """Reject requests whose secret header does not match."""

    def __init__(self, app: ASGIApp, secret: str, exempt: frozenset[str] = frozenset()) -> None:
        super().__init__(app)
        if not secret:
            raise ValueError("Shared secret must be configured")
        self._secret = secret.encode("utf-8")
        self._exempt = exempt | {HEALTH_PATH}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self._exempt or request.method == "OPTIONS":
            return await call_next(request)

        provided = request.headers.get(SECRET_HEADER, "").encode("utf-8")
        if not provided or not secrets.compare_digest(provided, self._secret):
            return JSONResponse({"detail": "Unauthorized"}, status_code=401)

        return await call_next(request)


def build_security_middleware(secret: str | None) -> list[Middleware]:
    """CORS for every deployment, plus the shared secret check when one is set."""

    middleware: list[Middleware] = [
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    ]

    if secret:
        middleware.insert(0, Middleware(SharedSecretMiddleware, secret=secret))

    return middleware
