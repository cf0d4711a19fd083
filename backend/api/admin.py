# api/admin.py - Admin dashboard: posts, activity log, page content
from fastapi import APIRouter

from api.posts import list_post_page
from core.dispatch import (
    ALL_METHODS,
    ApiRequest,
    ApiResponse,
    create_api_handler,
    create_singleton_replace_handler,
    mount,
)
from core.errors import NotFoundError
from core.query import parse_pagination
from core.store import ContentStore
from models.db_models import ActivityLog, Post, Welcome
from models.query_models import ActivityLogFilters
from services.post_service import POST_NOT_FOUND, build_post_update_data, create_post
from services.site_service import get_or_create_site_settings, save_site_settings, validate_admin_welcome

router = APIRouter()

DEFAULT_ACTIVITY_LOG_LIMIT = 50
DEFAULT_ADMIN_POST_LIMIT = 100

# ===== POSTS =====

async def handle_list_admin_posts(request: ApiRequest, store: ContentStore) -> ApiResponse:
    query = dict(request.query)
    if not query.get("limit"):
        query["limit"] = str(DEFAULT_ADMIN_POST_LIMIT)
    page = await list_post_page(ApiRequest(method=request.method, query=query), store, default_status="all")
    return ApiResponse.json(page)

async def handle_create_admin_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await create_post(store, request.json_body())
    return ApiResponse.json(post, status=201)

async def handle_get_admin_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await store.find_unique(Post, {"id": request.path_params["id"]}, {"counts": ["likes"]})
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)
    return ApiResponse.json(post)

async def handle_update_admin_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await store.update(Post, {"id": request.path_params["id"]}, build_post_update_data(request.json_body()))
    return ApiResponse.json(post)

async def handle_delete_admin_post(request: ApiRequest, store: ContentStore) -> ApiResponse:
    await store.delete(Post, {"id": request.path_params["id"]})
    return ApiResponse.no_content()

# ===== ACTIVITY LOG =====

async def handle_activity_log(request: ApiRequest, store: ContentStore) -> ApiResponse:
    pagination = parse_pagination(request.query)
    limit = pagination.limit if pagination.limit is not None else DEFAULT_ACTIVITY_LOG_LIMIT
    where = ActivityLogFilters.from_query(request.query).to_where()

    logs = await store.find_many(ActivityLog, {
        "where": where,
        "order_by": {"created_at": "desc"},
        "take": limit,
        "skip": pagination.offset,
    })
    total = await store.count(ActivityLog, where)
    return ApiResponse.json({"logs": logs, "total": total, "limit": limit, "offset": pagination.offset})

# ===== SITE SETTINGS =====

async def handle_get_admin_site_settings(request: ApiRequest, store: ContentStore) -> ApiResponse:
    return ApiResponse.json(await get_or_create_site_settings(store))

async def handle_put_admin_site_settings(request: ApiRequest, store: ContentStore) -> ApiResponse:
    return ApiResponse.json(await save_site_settings(store, request.json_body()))

admin_posts_handler = create_api_handler(
    {"GET": handle_list_admin_posts, "POST": handle_create_admin_post},
    protected=ALL_METHODS,
    conflict_message="A post with this slug already exists",
)
admin_post_handler = create_api_handler(
    {"GET": handle_get_admin_post, "PUT": handle_update_admin_post, "DELETE": handle_delete_admin_post},
    protected=ALL_METHODS,
    conflict_message="A post with this slug already exists",
    not_found_message=POST_NOT_FOUND,
)
activity_log_handler = create_api_handler(
    {"GET": handle_activity_log},
    protected=ALL_METHODS,
)
admin_welcome_handler = create_api_handler(
    {"PUT": create_singleton_replace_handler(Welcome, validate_admin_welcome, status=200)},
    protected=ALL_METHODS,
)
admin_site_settings_handler = create_api_handler(
    {"GET": handle_get_admin_site_settings, "PUT": handle_put_admin_site_settings},
    protected=ALL_METHODS,
)

mount(router, "/api/admin/posts", admin_posts_handler)
mount(router, "/api/admin/posts/{id}", admin_post_handler)
mount(router, "/api/admin/activity-log", activity_log_handler)
mount(router, "/api/admin/welcome", admin_welcome_handler)
mount(router, "/api/admin/site-settings", admin_site_settings_handler)
