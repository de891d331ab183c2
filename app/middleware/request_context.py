"""Request context and timing middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.utils.logger import logger


def client_identifier(request: Request, trusted_hops: int | None = None) -> str:
    """Caller address as seen by the outermost trusted proxy.

    Each trusted proxy appends the address it received the request from to
    X-Forwarded-For, so the caller is ``trusted_hops`` entries from the
    right. Anything further left was supplied by the caller. With no
    trusted proxies, or no header, the peer address is used.
    """
    if trusted_hops is None:
        trusted_hops = settings.trusted_proxy_hops
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and trusted_hops > 0:
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[max(len(hops) - trusted_hops, 0)]
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Stores the caller identifier on ``request.state`` and logs timing.

    Requests slower than SLOW_REQUEST_THRESHOLD are logged as warnings and
    every response gets an X-Process-Time header.
    """

    SLOW_REQUEST_THRESHOLD = 0.5  # 500ms

    EXCLUDED_PATHS = {
        "/health",
        "/",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.client_id = client_identifier(request)
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        path = request.url.path
        if path not in self.EXCLUDED_PATHS:
            line = f"{request.method} {path} -> {response.status_code} ({process_time:.3f}s)"
            if process_time >= self.SLOW_REQUEST_THRESHOLD:
                logger.warning(f"[SLOW REQUEST] {line}")
            else:
                logger.debug(f"[REQUEST] {line}")

        return response
