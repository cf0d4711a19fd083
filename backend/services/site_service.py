# services/site_service.py - Single-record page content: welcome, contact, site settings
from typing import Any, Mapping

from core.settings import settings
from core.store import ContentStore
from core.validators import ValidationResult, validate_required_fields, validate_array_field, VALID
from models.db_models import SiteSettings

DEFAULT_ENABLED_SECTIONS = ["hero", "welcome", "projects", "stats", "articles"]
PUBLIC_SETTINGS_FIELDS = ("owner_name", "site_name", "footer_text", "footer_title", "nav_links", "socials", "seo_defaults")

# ===== VALIDATION =====

def validate_welcome(body: Mapping[str, Any]) -> ValidationResult:
    return validate_required_fields(body, ["name", "briefBio", "callToAction"])

def validate_admin_welcome(body: Mapping[str, Any]) -> ValidationResult:
    if not body.get("name") or not body.get("briefBio"):
        return ValidationResult(False, "Name and briefBio are required")
    return VALID

def validate_contact(body: Mapping[str, Any]) -> ValidationResult:
    return validate_required_fields(body, ["name", "emailAddress", "location", "availability"])

# ===== SITE SETTINGS =====

def default_site_settings() -> dict:
    return {
        "owner_name": "",
        "site_name": settings.SITE_NAME,
        "footer_text": "",
        "footer_title": "",
        "nav_links": [],
        "socials": {},
        "seo_defaults": {},
    }

def public_site_settings(record: Mapping[str, Any]) -> dict:
    return {field: record.get(field) for field in PUBLIC_SETTINGS_FIELDS}

def with_enabled_sections(record: Mapping[str, Any]) -> dict:
    return {**record, "enabled_sections": record.get("enabled_sections") or list(DEFAULT_ENABLED_SECTIONS)}

async def get_or_create_site_settings(store: ContentStore) -> dict:
    """Admin view: first call persists the defaults."""
    record = await store.find_first(SiteSettings)
    if record is None:
        record = await store.create(SiteSettings, {
            **default_site_settings(),
            "enabled_sections": list(DEFAULT_ENABLED_SECTIONS),
        })
    return with_enabled_sections(record)

def build_site_settings_data(body: Mapping[str, Any], existing: Mapping[str, Any] = None) -> dict:
    enabled_sections = body.get("enabledSections")
    if enabled_sections is not None:
        validate_array_field(enabled_sections, "enabledSections").raise_for_error()

    if existing is None:
        defaults = default_site_settings()
        return {
            "owner_name": body.get("ownerName") or defaults["owner_name"],
            "site_name": body.get("siteName") or defaults["site_name"],
            "nav_links": body.get("navLinks") or defaults["nav_links"],
            "footer_text": body.get("footerText") or defaults["footer_text"],
            "footer_title": body.get("footerTitle") or defaults["footer_title"],
            "socials": body.get("socials") or defaults["socials"],
            "seo_defaults": body.get("seoDefaults") or defaults["seo_defaults"],
            "enabled_sections": enabled_sections if enabled_sections is not None else list(DEFAULT_ENABLED_SECTIONS),
        }

    # Absent keys keep their stored value
    data = {
        column: body[wire]
        for wire, column in (
            ("ownerName", "owner_name"),
            ("siteName", "site_name"),
            ("navLinks", "nav_links"),
            ("footerText", "footer_text"),
            ("footerTitle", "footer_title"),
            ("socials", "socials"),
            ("seoDefaults", "seo_defaults"),
        )
        if body.get(wire) is not None
    }
    data["enabled_sections"] = enabled_sections if enabled_sections is not None else list(DEFAULT_ENABLED_SECTIONS)
    return data

async def save_site_settings(store: ContentStore, body: Mapping[str, Any]) -> dict:
    existing = await store.find_first(SiteSettings)
    data = build_site_settings_data(body, existing)
    if existing is None:
        record = await store.create(SiteSettings, data)
    else:
        record = await store.update(SiteSettings, {"id": existing["id"]}, data)
    return with_enabled_sections(record)
