# api/projects.py - Public project listing and detail
from fastapi import APIRouter

from core.dispatch import ApiRequest, ApiResponse, create_api_handler, mount
from core.errors import NotFoundError
from core.query import build_order_by, build_project_query, format_paginated_response, parse_pagination, parse_sort
from core.store import ContentStore
from models.db_models import Project
from models.query_models import ProjectFilters
from services.project_service import PROJECT_NOT_FOUND, project_to_api_format

router = APIRouter()

PROJECT_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "startDate": "start_date",
    "releaseDate": "release_date",
    "title": "title",
}

async def handle_list_projects(request: ApiRequest, store: ContentStore) -> ApiResponse:
    pagination = parse_pagination(request.query)
    sort = parse_sort(request.query, "createdAt", "desc")
    where = ProjectFilters.from_query(request.query).to_where()
    order_by = build_order_by(sort.sort_by, sort.sort_order, PROJECT_SORT_FIELDS)

    query = build_project_query(where, order_by, pagination.limit, pagination.offset)
    projects = await store.find_many(Project, query)
    total = await store.count(Project, where)
    return ApiResponse.json(format_paginated_response(
        [project_to_api_format(project) for project in projects],
        total,
        pagination.limit,
        pagination.offset,
        "projects",
    ))

async def handle_get_project(request: ApiRequest, store: ContentStore) -> ApiResponse:
    project = await store.find_unique(Project, {"id": request.path_params["id"]}, {"team_members": True})
    if project is None:
        raise NotFoundError(PROJECT_NOT_FOUND)
    return ApiResponse.json(project_to_api_format(project))

mount(router, "/api/projects", create_api_handler({"GET": handle_list_projects}))
mount(router, "/api/projects/{id}", create_api_handler(
    {"GET": handle_get_project},
    not_found_message=PROJECT_NOT_FOUND,
))
