# api/articles.py - Published articles and authenticated article creation
from fastapi import APIRouter

from api.posts import list_post_page
from core.dispatch import ApiRequest, ApiResponse, create_api_handler, mount
from core.store import ContentStore
from services.post_service import create_article

router = APIRouter()

async def handle_list_articles(request: ApiRequest, store: ContentStore) -> ApiResponse:
    # The public listing never exposes drafts, whatever ?status= says
    query = {**request.query, "status": "Published"}
    return ApiResponse.json(await list_post_page(ApiRequest(method=request.method, query=query), store))

async def handle_create_article(request: ApiRequest, store: ContentStore) -> ApiResponse:
    post = await create_article(store, request.json_body(), request.identity)
    return ApiResponse.json(post, status=201)

articles_handler = create_api_handler(
    {"GET": handle_list_articles, "POST": handle_create_article},
    protected=["POST"],
    conflict_message="An article with this slug already exists",
)

mount(router, "/api/articles", articles_handler)
