# core/casing.py - camelCase wire keys <-> snake_case storage keys
import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")

# JSON payload columns whose inner keys belong to the client
OPAQUE_FIELDS = {
    "links",
    "socials",
    "seo_defaults",
    "nav_links",
    "social_media_links",
    "additional_contact_methods",
    "old_value",
    "new_value",
    "details",
}

def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)

def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()

def camelize(value: Any) -> Any:
    if isinstance(value, list):
        return [camelize(item) for item in value]
    if isinstance(value, dict):
        return {
            to_camel(key) if isinstance(key, str) else key: item if key in OPAQUE_FIELDS else camelize(item)
            for key, item in value.items()
        }
    return value

def snake_keys(data: dict) -> dict:
    """Convert top-level request keys to storage names."""
    return {to_snake(key): value for key, value in data.items()}
