# api/newsletter.py - Newsletter sign-up
from fastapi import APIRouter

from core.dispatch import ApiRequest, ApiResponse, create_api_handler, mount
from core.errors import ClientValidationError, ConflictError
from core.logger import get_logger
from core.store import ContentStore
from models.db_models import NewsletterSubscription

logger = get_logger(__name__)

router = APIRouter()

async def handle_subscribe(request: ApiRequest, store: ContentStore) -> ApiResponse:
    email = request.json_body().get("email")
    if not isinstance(email, str) or "@" not in email:
        raise ClientValidationError("Valid email is required")
    email = email.strip().lower()

    existing = await store.find_unique(NewsletterSubscription, {"email": email})
    if existing is not None:
        if existing["active"]:
            raise ConflictError("Email already subscribed")
        subscription = await store.update(NewsletterSubscription, {"email": email}, {"active": True})
        logger.info(f"Newsletter subscription reactivated: {email}")
        return ApiResponse.json({"message": "Subscription reactivated", "subscription": subscription})

    subscription = await store.create(NewsletterSubscription, {"email": email, "active": True})
    logger.info(f"Newsletter subscription created: {email}")
    return ApiResponse.json({"message": "Successfully subscribed", "subscription": subscription}, status=201)

mount(router, "/api/newsletter/subscribe", create_api_handler(
    {"POST": handle_subscribe},
    conflict_message="Email already subscribed",
))
