"""
CORS preflight middleware.

Answers every OPTIONS request with 204 and the CORS headers before
routing, so preflights never reach an endpoint. Actual requests get their
`Access-Control-Allow-Origin` header from Starlette's CORSMiddleware.

Dependencies: starlette
System role: Browser plugin access to the API
"""

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

ALLOWED_METHODS = ("POST", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type",)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
    "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
}


class PreflightMiddleware(BaseHTTPMiddleware):
    """Short-circuits OPTIONS requests."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_204_NO_CONTENT, headers=PREFLIGHT_HEADERS)
        return await call_next(request)
