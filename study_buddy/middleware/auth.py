"""Optional API token middleware.

When STUDY_BUDDY_API_TOKEN is set, every /api/* path except /api/health
requires `Authorization: Bearer <token>`.
"""

from __future__ import annotations

import os
import secrets

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from study_buddy.services.auth import extract_bearer_token

# Paths that don't require authentication
_PUBLIC_PATHS = {"/api/health"}


def configured_token() -> str | None:
    return os.environ.get("STUDY_BUDDY_API_TOKEN") or None


class ApiTokenMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        expected = configured_token()

        if expected is None or not path.startswith("/api/") or path in _PUBLIC_PATHS:
            return await call_next(request)

        token = extract_bearer_token(request) or ""
        if not secrets.compare_digest(token.encode(), expected.encode()):
            return JSONResponse(
                status_code=401,
                content={"error": "Invalid or missing API token"},
            )

        return await call_next(request)
