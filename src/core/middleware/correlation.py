"""
Middleware de correlação
========================
Cada requisição recebe um id (ou reaproveita o do cliente), que volta no
header da resposta e aparece nos logs de acesso.
"""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        cid = request.headers.get(CORRELATION_HEADER) or f"srv-{uuid.uuid4()}"
        request.state.correlation_id = cid

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[CORRELATION_HEADER] = cid
        logger.info(f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.1f}ms) [{cid}]")
        return response
