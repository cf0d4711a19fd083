# api/posts.py - Public post listing, post pages, views and likes
from fastapi import APIRouter

from core.dispatch import ApiRequest, ApiResponse, create_api_handler, mount
from core.plugin import calculate_total_pages, filter_and_sort_posts, paginate, parse_page_params
from core.query import (
    build_order_by,
    build_post_query,
    format_paginated_response,
    parse_pagination,
    parse_sort,
)
from core.store import ContentStore
from models.db_models import Post
from models.query_models import PostFilters, first_value
from services.post_service import (
    POST_NOT_FOUND,
    build_post_update_data,
    create_post,
    get_like_status,
    like_post,
    topic_slug_where,
    view_post,
)

router = APIRouter()

POST_SORT_FIELDS = {
    "datePublished": "date_published",
    "createdAt": "created_at",
    "title": "title",
    "viewCount": "view_count",
}
POSTS_PER_PAGE = 12

async def list_post_page(request: ApiRequest, store: ContentStore, default_status: str = "Published") -> dict:
    """Shared list pipeline: query params -> where/order/page -> envelope."""
    pagination = parse_pagination(request.query)
    sort = parse_sort(request.query, "datePublished", "desc")
    where = PostFilters.from_query(request.query, default_status=default_status).to_where()
    order_by = build_order_by(sort.sort_by, sort.sort_order, POST_SORT_FIELDS)

    query = build_post_query(where, order_by, pagination.limit, pagination.offset)
    posts = await store.find_many(Post, query)
    total = await store.count(Post, where)
    return format_paginated_response(posts, total, pagination.limit, pagination.offset, "posts")

# ===== /api/posts =====

async def handle_list_posts(request: ApiRequest, store: ContentStore) -> ApiResponse:
    return ApiResponse.json(await list_post_page(request, store))

async def handle_create_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await create_post(store, request.json_body())
    return ApiResponse.json(post, status=201)

posts_handler = create_api_handler(
    {"GET": handle_list_posts, "POST": handle_create_post},
    protected=["POST"],
    conflict_message="A post with this slug already exists",
)

# ===== /api/posts/{topic} =====

async def handle_topic_posts(request: ApiRequest, store: ContentStore) -> ApiResponse:
    """Published posts of one topic, searched, sorted and paged in memory."""
    page, per_page = parse_page_params(request.query, POSTS_PER_PAGE)
    sort = parse_sort(request.query, "datePublished", "desc")
    topic = request.path_params["topic"].lower()

    posts = await store.find_many(Post, {
        "where": {"status": "Published", "topic": topic},
        "include": {"counts": ["likes"]},
    })
    matching = filter_and_sort_posts(
        posts,
        search=first_value(request.query.get("search")),
        tag=first_value(request.query.get("tag")),
        sort_by=sort.sort_by,
        sort_order=sort.sort_order,
    )
    return ApiResponse.json({
        "posts": paginate(matching, page, per_page),
        "total": len(matching),
        "page": page,
        "per_page": per_page,
        "total_pages": calculate_total_pages(len(matching), per_page),
    })

topic_handler = create_api_handler({"GET": handle_topic_posts})

# ===== /api/posts/{topic}/{slug} =====

async def handle_get_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await view_post(store, request.path_params["topic"], request.path_params["slug"])
    return ApiResponse.json(post)

async def handle_update_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    where = topic_slug_where(request.path_params["topic"], request.path_params["slug"])
    post = await store.update(Post, where, build_post_update_data(request.json_body()))
    return ApiResponse.json(post)

async def handle_delete_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    where = topic_slug_where(request.path_params["topic"], request.path_params["slug"])
    await store.delete(Post, where)
    return ApiResponse.no_content()

post_handler = create_api_handler(
    {"GET": handle_get_post, "PUT": handle_update_post, "DELETE": handle_delete_post},
    protected=["PUT", "DELETE"],
    conflict_message="A post with this slug already exists",
    not_found_message=POST_NOT_FOUND,
)

# ===== /api/posts/{topic}/{slug}/like =====

async def handle_like_status(request: ApiRequest, store: ContentStore) -> ApiResponse:
    status = await get_like_status(
        store,
        request.path_params["topic"],
        request.path_params["slug"],
        request.client_ip or "0.0.0.0",
    )
    return ApiResponse.json(status)

async def handle_like(request: ApiRequest, store: ContentStore) -> ApiResponse:
    result = await like_post(
        store,
        request.path_params["topic"],
        request.path_params["slug"],
        request.client_ip or "unknown",
        request.headers.get("user-agent"),
    )
    return ApiResponse.json(result)

like_handler = create_api_handler(
    {"GET": handle_like_status, "POST": handle_like},
    not_found_message=POST_NOT_FOUND,
)

mount(router, "/api/posts", posts_handler)
mount(router, "/api/posts/{topic}", topic_handler)
mount(router, "/api/posts/{topic}/{slug}", post_handler)
mount(router, "/api/posts/{topic}/{slug}/like", like_handler)
