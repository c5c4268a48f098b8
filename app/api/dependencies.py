from fastapi import Request
from app.core.exceptions import ValidationError
from app.core.request_context import HDR_BUSINESS_ID, HDR_USER_ID, get_request_context
import logging

logger = logging.getLogger(__name__)

async def get_business_id(request: Request) -> int:
    """Tenant of the current request; authentication happens upstream of this service"""
    context = get_request_context(request)
    business_id = context["business_id"]
    if business_id is None:
        logger.warning(f"⚠️ {context['endpoint']} called without a valid {HDR_BUSINESS_ID} header")
        raise ValidationError(f"{HDR_BUSINESS_ID} header is required")

    request.state.business_id = business_id
    return business_id

async def get_actor_id(request: Request) -> int:
    """User performing a write, recorded on audit rows"""
    user_id = get_request_context(request)["user_id"]
    if user_id is None:
        raise ValidationError(f"{HDR_USER_ID} header is required")

    request.state.user_id = user_id
    return user_id
