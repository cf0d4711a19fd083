# core/plugin.py - In-memory helpers for filtering, sorting, pagination of post lists
import math
from datetime import datetime
from typing import List, Optional, Any, Dict, Tuple

from core.casing import to_snake
from core.errors import ClientValidationError

DATE_FIELDS = ("date_published", "created_at", "updated_at")
DEFAULT_SORT_FIELD = "date_published"

def filter_by_search(posts: List[Dict], search: Optional[str]) -> List[Dict]:
    """Case-insensitive match on title, description or any tag"""
    if not search:
        return posts

    query = search.lower()
    return [
        post for post in posts
        if query in (post.get("title") or "").lower()
        or query in (post.get("description") or "").lower()
        or any(query in tag.lower() for tag in post.get("tags") or [])
    ]

def filter_by_topic(posts: List[Dict], topic: Optional[str]) -> List[Dict]:
    if not topic or topic == "all":
        return posts
    return [post for post in posts if post.get("topic") == topic]

def filter_by_tag(posts: List[Dict], tag: Optional[str]) -> List[Dict]:
    if not tag or tag == "all":
        return posts
    return [post for post in posts if tag in (post.get("tags") or [])]

def apply_filters(
    posts: List[Dict],
    search: Optional[str] = None,
    topic: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[Dict]:
    """Apply search, topic and tag filters to a list of posts"""
    filtered = list(posts)
    filtered = filter_by_search(filtered, search)
    filtered = filter_by_topic(filtered, topic)
    filtered = filter_by_tag(filtered, tag)
    return filtered

def _sort_value(post: Dict, field: str) -> Any:
    value = post.get(field)
    if field in DATE_FIELDS:
        if not value:
            return 0
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value.timestamp()
    if isinstance(value, str):
        return value.lower()
    return value or 0

def sort_posts(posts: List[Dict], sort_by: Optional[str] = None, sort_order: str = "desc") -> List[Dict]:
    """Sort posts by a (camel or snake case) field; dates compare chronologically"""
    field = to_snake(sort_by) if sort_by else DEFAULT_SORT_FIELD
    # Group by value type so mixed columns never compare str with int
    return sorted(
        posts,
        key=lambda post: (isinstance(_sort_value(post, field), str), _sort_value(post, field)),
        reverse=(sort_order == "desc"),
    )

def filter_and_sort_posts(
    posts: List[Dict],
    search: Optional[str] = None,
    topic: Optional[str] = None,
    tag: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: str = "desc",
) -> List[Dict]:
    filtered = apply_filters(posts, search=search, topic=topic, tag=tag)
    return sort_posts(filtered, sort_by, sort_order)

def paginate(items: List[Any], page: int = 1, per_page: int = 12) -> List[Any]:
    start_index = (page - 1) * per_page
    return items[start_index:start_index + per_page]

def calculate_total_pages(total_items: int, per_page: int) -> int:
    return math.ceil(total_items / per_page)

def parse_page_params(query: Dict[str, Any], default_per_page: int = 12) -> Tuple[int, int]:
    """Read 1-based ?page= and ?perPage= values"""
    page = _positive_int(query.get("page"), "page", 1)
    per_page = _positive_int(query.get("perPage"), "perPage", default_per_page)
    return page, per_page

def _positive_int(raw: Any, name: str, default: int) -> int:
    if raw in (None, ""):
        return default
    try:
        value = int(str(raw).strip(), 10)
    except ValueError:
        raise ClientValidationError(f"{name} must be an integer")
    if value < 1:
        raise ClientValidationError(f"{name} must be a positive integer")
    return value
