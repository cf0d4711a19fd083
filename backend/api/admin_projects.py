# api/admin_projects.py - Audited project management for the admin dashboard
from fastapi import APIRouter

from core.dispatch import ALL_METHODS, ApiRequest, ApiResponse, create_api_handler, mount
from core.errors import ClientValidationError
from core.security import get_user_id_from_token
from core.store import ContentStore
from models.db_models import Project
from models.query_models import first_value
from services.project_service import (
    PROJECT_NOT_FOUND,
    PROJECT_SLUG_CONFLICT,
    bulk_update,
    create_project,
    delete_project,
    export_filename,
    export_projects_csv,
    get_project,
    import_projects,
    list_projects,
    update_project,
)

router = APIRouter()

EXPORT_FORMATS = ("json", "csv")

async def handle_list_projects(request: ApiRequest, store: ContentStore) -> ApiResponse:
    return ApiResponse.json(await list_projects(store))

async def handle_create_project(request: ApiRequest, store: ContentStore) -> ApiResponse:
    user_id = get_user_id_from_token(request.identity)
    project = await create_project(store, request.json_body(), user_id)
    return ApiResponse.json(project, status=201)

async def handle_get_project(request: ApiRequest, store: ContentStore) -> ApiResponse:
    return ApiResponse.json(await get_project(store, request.path_params["id"]))

async def handle_update_project(request: ApiRequest, store: ContentStore) -> ApiResponse:
    user_id = get_user_id_from_token(request.identity)
    project = await update_project(store, request.path_params["id"], request.json_body(), user_id)
    return ApiResponse.json(project)

async def handle_delete_project(request: ApiRequest, store: ContentStore) -> ApiResponse:
    await delete_project(store, request.path_params["id"], get_user_id_from_token(request.identity))
    return ApiResponse.no_content()

async def handle_bulk(request: ApiRequest, store: ContentStore) -> ApiResponse:
    body = request.json_body()
    message = await bulk_update(
        store,
        body.get("action"),
        body.get("projectIds"),
        body.get("data"),
        get_user_id_from_token(request.identity),
    )
    return ApiResponse.json({"message": message})

async def handle_import(request: ApiRequest, store: ContentStore) -> ApiResponse:
    results = await import_projects(store, request.json_body().get("projects"))
    return ApiResponse.json({
        "message": f"Imported {len(results['successful'])} project(s), {len(results['failed'])} failed",
        "results": results,
    })

async def handle_export(request: ApiRequest, store: ContentStore) -> ApiResponse:
    export_format = first_value(request.query.get("format")) or "json"
    if export_format not in EXPORT_FORMATS:
        raise ClientValidationError("format must be 'json' or 'csv'")

    projects = await store.find_many(Project, {
        "order_by": {"created_at": "desc"},
        "include": {"team_members": True},
    })
    headers = {"Content-Disposition": f'attachment; filename="{export_filename(export_format)}"'}
    if export_format == "csv":
        return ApiResponse.text(export_projects_csv(projects), media_type="text/csv", headers=headers)
    return ApiResponse.json(projects, headers=headers)

admin_projects_handler = create_api_handler(
    {"GET": handle_list_projects, "POST": handle_create_project},
    protected=ALL_METHODS,
    conflict_message=PROJECT_SLUG_CONFLICT,
)
bulk_handler = create_api_handler(
    {"POST": handle_bulk},
    protected=ALL_METHODS,
)
import_handler = create_api_handler(
    {"POST": handle_import},
    protected=ALL_METHODS,
)
export_handler = create_api_handler(
    {"GET": handle_export},
    protected=ALL_METHODS,
)
admin_project_handler = create_api_handler(
    {"GET": handle_get_project, "PUT": handle_update_project, "DELETE": handle_delete_project},
    protected=ALL_METHODS,
    conflict_message=PROJECT_SLUG_CONFLICT,
    not_found_message=PROJECT_NOT_FOUND,
)

# Fixed sub-paths first so /{id} does not capture them
mount(router, "/api/admin/projects", admin_projects_handler)
mount(router, "/api/admin/projects/bulk", bulk_handler)
mount(router, "/api/admin/projects/import", import_handler)
mount(router, "/api/admin/projects/export", export_handler)
mount(router, "/api/admin/projects/{id}", admin_project_handler)
