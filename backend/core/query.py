# core/query.py - List-query pipeline: pagination, sorting, where clauses, response envelope
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Sequence

from core.errors import ClientValidationError

class _Unset:
    """Marks a filter as absent, as opposed to filtering on None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

UNSET: Any = _Unset()

SORT_ORDERS = ("asc", "desc")
DEFAULT_SEARCH_FIELDS = ("title", "description")
PLAYLIST_MARKERS = ("playlist_posts", "playlistPosts")

class PaginationParams(NamedTuple):
    limit: Optional[int]
    offset: int

class SortParams(NamedTuple):
    sort_by: str
    sort_order: str

# ===== PAGINATION & SORTING =====

def _parse_int(value: Any, name: str) -> int:
    try:
        return int(str(value).strip(), 10)
    except (TypeError, ValueError):
        raise ClientValidationError(f"{name} must be an integer")

def parse_pagination(query: Mapping[str, Any]) -> PaginationParams:
    """
    Extract limit/offset from raw query parameters.
    A missing limit means "no cap"; a missing offset means 0.
    """
    raw_limit = query.get("limit")
    raw_offset = query.get("offset")

    limit = _parse_int(raw_limit, "limit") if raw_limit not in (None, "") else None
    offset = _parse_int(raw_offset, "offset") if raw_offset not in (None, "") else 0

    if limit is not None and limit < 1:
        raise ClientValidationError("limit must be a positive integer")
    if offset < 0:
        raise ClientValidationError("offset must not be negative")
    return PaginationParams(limit=limit, offset=offset)

def parse_sort(
    query: Mapping[str, Any],
    default_sort_by: str = "createdAt",
    default_sort_order: str = "desc",
) -> SortParams:
    sort_by = query.get("sortBy") or default_sort_by
    sort_order = query.get("sortOrder") or default_sort_order
    if sort_order not in SORT_ORDERS:
        raise ClientValidationError("sortOrder must be 'asc' or 'desc'")
    return SortParams(sort_by=sort_by, sort_order=sort_order)

def build_order_by(sort_by: str, sort_order: str, field_map: Optional[Mapping[str, str]] = None) -> dict:
    """Map a logical sort field to its stored name: {"created_at": "desc"}."""
    field = (field_map or {}).get(sort_by) or sort_by
    return {field: sort_order}

# ===== WHERE CLAUSES =====

def remove_undefined(obj: Mapping[str, Any]) -> dict:
    return {key: value for key, value in obj.items() if value is not UNSET}

def build_search_filter(search: Optional[str], fields: Sequence[str] = DEFAULT_SEARCH_FIELDS) -> dict:
    if not search:
        return {}
    return {
        "OR": [{field: {"contains": search, "mode": "insensitive"}} for field in fields]
    }

def build_tags_filter(tags) -> dict:
    if not tags:
        return {}
    return {"tags": {"has_some": list(tags) if isinstance(tags, (list, tuple)) else [tags]}}

def build_post_where(status=UNSET, topic=None, search=None, tags=None) -> dict:
    return remove_undefined({
        "status": UNSET if status == "all" else status,
        **({"topic": topic.lower()} if topic else {}),
        **build_search_filter(search, ["title", "description", "content"]),
        **build_tags_filter(tags),
    })

def build_project_where(status=None, search=None, tags=None, featured=UNSET) -> dict:
    return remove_undefined({
        **({"status": status} if status and status != "all" else {}),
        **build_search_filter(search, ["title", "description", "short_description"]),
        **build_tags_filter(tags),
        "featured": featured,
    })

def build_activity_log_where(entity_type=None, entity_id=None, project_id=None) -> dict:
    return remove_undefined({
        "entity_type": entity_type or UNSET,
        "entity_id": entity_id or UNSET,
        "project_id": project_id or UNSET,
    })

# ===== QUERY DESCRIPTORS =====

def build_post_include(include_counts: bool = True) -> dict:
    if not include_counts:
        return {}
    return {"counts": ["likes"]}

def build_project_include(include_team: bool = True) -> dict:
    if not include_team:
        return {}
    return {"team_members": True}

def _build_query(where: dict, order_by, limit: Optional[int], offset: Optional[int], include: dict) -> dict:
    query = {"where": where, "order_by": order_by}
    if limit:
        query["take"] = limit
    if offset:
        query["skip"] = offset
    query["include"] = include
    return query

def build_post_query(where, order_by, limit=None, offset=None, include_counts: bool = True) -> dict:
    return _build_query(where, order_by, limit, offset, build_post_include(include_counts))

def build_project_query(where, order_by, limit=None, offset=None, include_team: bool = True) -> dict:
    return _build_query(where, order_by, limit, offset, build_project_include(include_team))

# ===== RESPONSE ENVELOPE =====

def detect_data_key(data: Any) -> str:
    if not isinstance(data, list) or not data:
        return "items"
    first = data[0]
    if isinstance(first, Mapping) and any(first.get(marker) is not None for marker in PLAYLIST_MARKERS):
        return "playlists"
    return "posts"

def format_paginated_response(
    data: Iterable,
    total: int,
    limit: Optional[int],
    offset: int,
    data_key: Optional[str] = None,
) -> dict:
    """
    Wrap a page of records as {<key>: [...], "total", "limit", "offset"}.
    Without an explicit data_key the key is inferred from the first record.
    """
    key = data_key or detect_data_key(data)
    items = data if isinstance(data, list) else list(data or [])
    return {
        key: items,
        "total": total,
        "limit": limit if limit is not None else len(items),
        "offset": offset,
    }
