"""Permissive CORS handling so browser clients can reach the order API."""
from __future__ import annotations

from typing import Callable

from fastapi import Request, Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


async def cors_middleware(request: Request, call_next: Callable) -> Response:
    # Preflight never reaches the routes
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response
