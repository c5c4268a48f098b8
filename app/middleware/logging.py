import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.request_context import HDR_REQUEST_ID, get_request_context

logger = logging.getLogger("access")

def _status_marker(status_code: int) -> str:
    if status_code >= 500:
        return "❌"
    if status_code >= 400:
        return "⚠️"
    return "✅"

class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log per request, tagged with tenant and request id"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        context = get_request_context(request)
        request_id = context["request_id"] or uuid.uuid4().hex[:12]
        request.state.request_id = request_id

        logger.info(
            f"🌐 [{request_id}] {context['endpoint']} - "
            f"Business: {context['business_id'] or '-'} - "
            f"Client: {context['ip_address'] or 'unknown'}"
        )

        response = await call_next(request)
        elapsed = time.perf_counter() - started

        logger.info(
            f"{_status_marker(response.status_code)} [{request_id}] {context['endpoint']} - "
            f"Status: {response.status_code} - "
            f"Time: {elapsed:.4f}s"
        )

        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        response.headers[HDR_REQUEST_ID] = request_id
        return response
