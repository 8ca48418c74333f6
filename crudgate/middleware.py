import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import request_id_var

logger = logging.getLogger("crudgate")


class TracingMiddleware(BaseHTTPMiddleware):
    """Request ID propagation and one structured log line per request"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_var.set(request_id)

        client_ip = request.client.host if request.client else "unknown"
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            latency_ms = round((time.time() - start_time) * 1000, 2)
            logger.exception("request failed", extra={
                "method": request.method,
                "path": request.url.path,
                "status": 500,
                "latency_ms": latency_ms,
                "client_ip": client_ip,
            })
            raise
        else:
            latency_ms = round((time.time() - start_time) * 1000, 2)
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(level, "%s %s %s", request.method, request.url.path, response.status_code, extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": latency_ms,
                "client_ip": client_ip,
            })
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_var.reset(token)
