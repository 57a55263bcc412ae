from __future__ import annotations

import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("app.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON line per request on the ``app.request`` logger.

    The line carries the authenticated ``user_id`` when a route resolved one.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(self._line(request, request_id, start, 500))
            raise

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, self._line(request, request_id, start, response.status_code))
        response.headers["X-Request-Id"] = request_id
        return response

    @staticmethod
    def _line(request: Request, request_id: str, start: float, status: int) -> str:
        return json.dumps(
            {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
                "user_id": getattr(request.state, "user_id", None),
            }
        )
