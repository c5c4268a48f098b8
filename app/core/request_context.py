from typing import Optional, Dict
from fastapi import Request

# Names you’ll read from headers (set by the POS front end / gateway)
HDR_BUSINESS_ID = "X-Business-Id"
HDR_USER_ID = "X-User-Id"
HDR_REQUEST_ID = "X-Request-Id"

def _int_header(request: Request, name: str) -> Optional[int]:
    raw = request.headers.get(name)
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw)

def get_request_context(request: Request) -> Dict[str, Optional[object]]:
    """
    Extracts tenant, actor, endpoint, client IP and request_id from the FastAPI Request.
    - business_id/user_id are read from headers and fall back to None when absent or malformed.
    """
    ip_address = request.client.host if request.client else None
    endpoint = f"{request.method} {request.url.path}"
    return {
        "business_id": _int_header(request, HDR_BUSINESS_ID),
        "user_id": _int_header(request, HDR_USER_ID),
        "ip_address": ip_address,
        "endpoint": endpoint,
        "request_id": request.headers.get(HDR_REQUEST_ID),
    }
