# api/site_content.py - Public single-record content: welcome, contact, site settings
from fastapi import APIRouter

from core.dispatch import (
    ApiRequest,
    ApiResponse,
    create_api_handler,
    create_get_latest_handler,
    create_singleton_replace_handler,
    mount,
)
from core.store import ContentStore
from models.db_models import Contact, SiteSettings, Welcome
from services.site_service import default_site_settings, public_site_settings, validate_contact, validate_welcome

router = APIRouter()

welcome_handler = create_api_handler({
    "GET": create_get_latest_handler(Welcome, "Welcome content not found"),
    "POST": create_singleton_replace_handler(Welcome, validate_welcome),
})

contact_handler = create_api_handler({
    "GET": create_get_latest_handler(Contact, "Contact information not found"),
    "POST": create_singleton_replace_handler(Contact, validate_contact),
})

async def handle_get_site_settings(request: ApiRequest, store: ContentStore) -> ApiResponse:
    record = await store.find_first(SiteSettings)
    if record is None:
        return ApiResponse.json(default_site_settings())
    return ApiResponse.json(public_site_settings(record))

site_settings_handler = create_api_handler({"GET": handle_get_site_settings})

mount(router, "/api/welcome", welcome_handler)
mount(router, "/api/contact", contact_handler)
mount(router, "/api/site-settings", site_settings_handler)
