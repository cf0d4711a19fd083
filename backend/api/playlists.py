# api/playlists.py - Curated, ordered collections of posts
from fastapi import APIRouter

from core.dispatch import ApiRequest, ApiResponse, create_api_handler, mount
from core.query import build_order_by, format_paginated_response, parse_pagination, parse_sort, remove_undefined, UNSET
from core.store import ContentStore
from core.validators import combine_validations, validate_array_field, validate_required_fields, VALID
from models.db_models import Playlist, PlaylistPost
from models.query_models import parse_bool

router = APIRouter()

PLAYLIST_SORT_FIELDS = {"order": "order", "title": "title", "createdAt": "created_at"}
PLAYLIST_INCLUDE = {
    "playlist_posts": {"include": {"post": True}},
    "counts": ["playlist_posts"],
}

async def handle_list_playlists(request: ApiRequest, store: ContentStore) -> ApiResponse:
    pagination = parse_pagination(request.query)
    sort = parse_sort(request.query, "order", "asc")
    featured = parse_bool(request.query.get("featured"))

    where = remove_undefined({"featured": featured if featured is not None else UNSET})
    query = {
        "where": where,
        "order_by": build_order_by(sort.sort_by, sort.sort_order, PLAYLIST_SORT_FIELDS),
        "skip": pagination.offset,
        "include": PLAYLIST_INCLUDE,
    }
    if pagination.limit is not None:
        query["take"] = pagination.limit

    playlists = await store.find_many(Playlist, query)
    total = await store.count(Playlist, where)
    return ApiResponse.json(
        format_paginated_response(playlists, total, pagination.limit, pagination.offset, "playlists")
    )

async def handle_create_playlist(request: ApiRequest, store: ContentStore) -> ApiResponse:
    body = request.json_body()
    post_ids = body.get("postIds")
    combine_validations(
        validate_required_fields(body, ["title", "slug"]),
        validate_array_field(post_ids, "postIds") if post_ids is not None else VALID,
    ).raise_for_error()

    playlist = await store.create(Playlist, {
        "title": body["title"],
        "description": body.get("description") or None,
        "slug": body["slug"],
        "cover_image": body.get("coverImage") or None,
        "featured": bool(body.get("featured")),
        "order": body.get("order") or 0,
    })
    if post_ids:
        await store.create_many(PlaylistPost, [
            {"playlist_id": playlist["id"], "post_id": post_id, "order": index}
            for index, post_id in enumerate(post_ids)
        ])

    created = await store.find_unique(Playlist, {"id": playlist["id"]}, {"playlist_posts": {"include": {"post": True}}})
    return ApiResponse.json(created, status=201)

playlists_handler = create_api_handler(
    {"GET": handle_list_playlists, "POST": handle_create_playlist},
    protected=["POST"],
    conflict_message="A playlist with this slug already exists",
)

mount(router, "/api/playlists", playlists_handler)
