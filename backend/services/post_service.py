# services/post_service.py - Post and article writes, views and likes
import time
from datetime import datetime, UTC
from typing import Any, Mapping, Optional

from core.casing import snake_keys
from core.errors import ClientValidationError, ConflictError, NotFoundError, UniqueConstraintError
from core.logger import get_logger
from core.reading_time import calculate_reading_time, slugify
from core.store import ContentStore
from core.validators import combine_validations, validate_array_field, validate_required_fields, parse_datetime, VALID
from models.db_models import Post, PostLike

logger = get_logger(__name__)

POST_NOT_FOUND = "Post not found"
POST_REQUIRED_FIELDS = ["title", "description", "postType", "topic", "slug", "author"]
ARTICLE_REQUIRED_FIELDS = ["title", "description", "topic"]
READ_ONLY_FIELDS = ("id", "created_at", "updated_at", "view_count", "reading_time", "counts", "likes", "playlist_entries")
PUBLISHED = "Published"

def validate_tags(body: Mapping[str, Any]):
    if body.get("tags") is None:
        return VALID
    return validate_array_field(body["tags"], "tags")

def resolve_date_published(body: Mapping[str, Any], status: str) -> Optional[datetime]:
    """An explicit datePublished wins; publishing without one stamps the current time."""
    date_published = parse_datetime(body.get("datePublished"), "datePublished")
    if date_published:
        return date_published
    return datetime.now(UTC) if status == PUBLISHED else None

def build_post_create_data(body: Mapping[str, Any], slug: str, author: str, post_type: str) -> dict:
    content = body.get("content") or None
    status = body.get("status") or "Draft"
    return {
        "title": body["title"],
        "description": body["description"],
        "post_type": post_type,
        "url": body.get("url") or None,
        "content": content,
        "tags": body.get("tags") or [],
        "topic": body["topic"].lower(),
        "slug": slug,
        "author": author,
        "status": status,
        "cover_image": body.get("coverImage") or None,
        "meta_title": body.get("metaTitle") or None,
        "meta_description": body.get("metaDescription") or None,
        "og_image": body.get("ogImage") or None,
        "reading_time": calculate_reading_time(content) if content else None,
        "date_published": resolve_date_published(body, status),
    }

def build_post_update_data(body: Mapping[str, Any]) -> dict:
    """Translate a partial wire body into column changes."""
    validate_tags(body).raise_for_error()
    data = {key: value for key, value in snake_keys(body).items() if key not in READ_ONLY_FIELDS}

    if "content" in data:
        data["reading_time"] = calculate_reading_time(data["content"])
    if "date_published" in data:
        data["date_published"] = parse_datetime(data["date_published"], "datePublished")
    if data.get("topic"):
        data["topic"] = str(data["topic"]).lower()
    return data

async def create_post(store: ContentStore, body: Mapping[str, Any]) -> dict:
    combine_validations(
        validate_required_fields(body, POST_REQUIRED_FIELDS),
        validate_tags(body),
    ).raise_for_error()

    data = build_post_create_data(body, body["slug"], body["author"], body["postType"])
    post = await store.create(Post, data)
    logger.info(f"Post created: {post['topic']}/{post['slug']}")
    return post

async def unique_slug(store: ContentStore, slug: str) -> str:
    if await store.find_unique(Post, {"slug": slug}) is None:
        return slug
    return f"{slug}-{int(time.time() * 1000)}"

async def create_article(store: ContentStore, body: Mapping[str, Any], identity: Optional[Mapping] = None) -> dict:
    combine_validations(
        validate_required_fields(body, ARTICLE_REQUIRED_FIELDS),
        validate_tags(body),
    ).raise_for_error()

    slug = body.get("slug") or slugify(body["title"])
    if not slug:
        raise ClientValidationError("Unable to derive a slug from the title")
    slug = await unique_slug(store, slug)
    author = body.get("author") or (identity or {}).get("email") or "Anonymous"

    data = build_post_create_data(body, slug, author, body.get("postType") or "Article")
    post = await store.create(Post, data)
    logger.info(f"Article created: {post['topic']}/{post['slug']}")
    return post

def topic_slug_where(topic: str, slug: str) -> dict:
    return {"slug": slug, "topic": topic.lower()}

async def view_post(store: ContentStore, topic: str, slug: str) -> dict:
    """Fetch a post by topic/slug and count the view."""
    post = await store.find_unique(Post, topic_slug_where(topic, slug), {"counts": ["likes"]})
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)

    await store.update(Post, {"id": post["id"]}, {"view_count": {"increment": 1}})
    return {**post, "view_count": post["view_count"] + 1}

async def find_post_or_404(store: ContentStore, topic: str, slug: str) -> dict:
    post = await store.find_unique(Post, topic_slug_where(topic, slug))
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)
    return post

async def get_like_status(store: ContentStore, topic: str, slug: str, user_ip: str) -> dict:
    post = await find_post_or_404(store, topic, slug)
    existing = await store.find_first(PostLike, {"where": {"post_id": post["id"], "user_ip": user_ip}})
    like_count = await store.count(PostLike, {"post_id": post["id"]})
    return {"liked": existing is not None, "like_count": like_count}

async def like_post(store: ContentStore, topic: str, slug: str, user_ip: str, user_agent: Optional[str]) -> dict:
    """One like per client address per post."""
    post = await find_post_or_404(store, topic, slug)
    existing = await store.find_first(PostLike, {"where": {"post_id": post["id"], "user_ip": user_ip}})
    if existing is not None:
        raise ConflictError("Already liked")

    try:
        await store.create(PostLike, {"post_id": post["id"], "user_ip": user_ip, "user_agent": user_agent or "unknown"})
    except UniqueConstraintError:
        raise ConflictError("Already liked")

    like_count = await store.count(PostLike, {"post_id": post["id"]})
    return {"liked": True, "like_count": like_count}
