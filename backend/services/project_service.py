# services/project_service.py - Admin project management: CRUD, bulk actions, import/export
import csv
import io
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping, Optional

from core.errors import ApiError, ClientValidationError, NotFoundError, StoreError, map_exception
from core.logger import get_logger
from core.query import UNSET
from core.status_mapper import DEFAULT_PROJECT_STATUS, map_project_status
from core.store import ContentStore
from core.validators import (
    combine_validations,
    validate_admin_project_data,
    validate_array_field,
    validate_team_members,
    parse_datetime,
)
from models.db_models import Project, ProjectTeamMember
from services.activity_service import diff_fields, log_activity

logger = get_logger(__name__)

PROJECT_NOT_FOUND = "Project not found"
PROJECT_SLUG_CONFLICT = "A project with this slug already exists"
IMPORT_REQUIRED_MESSAGE = "Title and slug are required"
TEAM_INCLUDE = {"team_members": True}
ARRAY_FIELDS = ("tags", "techStack", "images")
BULK_ACTIONS = ("delete", "updateStatus", "updateFeatured")

CSV_HEADERS = [
    "Title",
    "Slug",
    "Short Description",
    "Status",
    "Featured",
    "Start Date",
    "Release Date",
    "Tags",
    "Tech Stack",
    "GitHub Link",
    "Live Link",
]

# ===== TRANSFORMS =====

def team_to_team_members(team: Any) -> List[Dict[str, Optional[str]]]:
    """Normalize an API team list ([{name, email?}]) into team member rows."""
    if not isinstance(team, list):
        return []
    return [{"name": member.get("name"), "email": member.get("email") or None} for member in team]

def project_to_api_format(project: Mapping[str, Any]) -> dict:
    """Replace the team_members relation with a plain team list."""
    data = {key: value for key, value in project.items() if key != "team_members"}
    data["team"] = [
        {"name": member.get("name"), "email": member.get("email")}
        for member in project.get("team_members") or []
    ]
    return data

def resolve_status(status: Any) -> Optional[str]:
    """Map a wire status to its stored code; unknown values are a client error."""
    if status in (None, ""):
        return None
    mapped = map_project_status(status)
    if mapped is None:
        raise ClientValidationError(f"Invalid project status: {status}")
    return mapped

def validate_project_arrays(body: Mapping[str, Any]) -> None:
    results = [validate_array_field(body[field], field) for field in ARRAY_FIELDS if body.get(field) is not None]
    if body.get("teamMembers") is not None:
        results.append(validate_team_members(body["teamMembers"]))
    combine_validations(*results).raise_for_error()

def build_project_create_data(body: Mapping[str, Any]) -> dict:
    short_description = body.get("shortDescription") or ""
    return {
        "title": body.get("title"),
        "slug": body.get("slug"),
        "short_description": short_description,
        "long_description": body.get("longDescription") or "",
        "description": short_description,
        "tags": body.get("tags") or [],
        "tech_stack": body.get("techStack") or [],
        "links": body.get("links") or {},
        "images": body.get("images") or [],
        "background_image": body.get("backgroundImage") or None,
        "featured": bool(body.get("featured")),
        "status": resolve_status(body.get("status")) or DEFAULT_PROJECT_STATUS,
        "start_date": parse_datetime(body.get("startDate"), "startDate") or datetime.now(UTC),
        "release_date": parse_datetime(body.get("releaseDate"), "releaseDate"),
        "meta_title": body.get("metaTitle") or None,
        "meta_description": body.get("metaDescription") or None,
        "og_image": body.get("ogImage") or None,
    }

def build_project_update_data(body: Mapping[str, Any]) -> dict:
    """Only fields present in the body are changed."""
    def get(key):
        return body[key] if key in body else UNSET

    data = {
        "title": get("title"),
        "slug": get("slug"),
        "long_description": get("longDescription"),
        "tags": get("tags"),
        "tech_stack": get("techStack"),
        "links": get("links"),
        "images": get("images"),
        "featured": get("featured"),
    }
    if "shortDescription" in body:
        data["short_description"] = body["shortDescription"]
        data["description"] = body["shortDescription"]
    if "backgroundImage" in body:
        data["background_image"] = body["backgroundImage"] or None
    if "status" in body:
        data["status"] = resolve_status(body["status"]) or UNSET
    if "startDate" in body:
        data["start_date"] = parse_datetime(body["startDate"], "startDate") or datetime.now(UTC)
    if "releaseDate" in body:
        data["release_date"] = parse_datetime(body["releaseDate"], "releaseDate")
    for wire, column in (("metaTitle", "meta_title"), ("metaDescription", "meta_description"), ("ogImage", "og_image")):
        if wire in body:
            data[column] = body[wire] or None
    return {key: value for key, value in data.items() if value is not UNSET}

# ===== CRUD =====

async def get_project(store: ContentStore, project_id: str) -> dict:
    project = await store.find_unique(Project, {"id": project_id}, TEAM_INCLUDE)
    if project is None:
        raise NotFoundError(PROJECT_NOT_FOUND)
    return project

async def list_projects(store: ContentStore, limit: int = 100) -> List[dict]:
    return await store.find_many(Project, {
        "where": {},
        "order_by": {"updated_at": "desc"},
        "take": limit,
        "include": TEAM_INCLUDE,
    })

async def sync_team_members(store: ContentStore, project_id: str, team_members: Any) -> None:
    """Replace a project's team. None leaves the current team untouched."""
    if team_members is None:
        return
    rows = [{**member, "project_id": project_id} for member in team_to_team_members(team_members)]
    await store.replace_many(ProjectTeamMember, {"project_id": project_id}, rows)

async def create_project(store: ContentStore, body: Mapping[str, Any], user_id: Optional[str]) -> dict:
    validate_admin_project_data(body).raise_for_error()
    validate_project_arrays(body)

    project = await store.create(Project, build_project_create_data(body))
    await sync_team_members(store, project["id"], body.get("teamMembers"))

    await log_activity(
        store,
        user_id,
        entity_type="Project",
        entity_id=project["id"],
        project_id=project["id"],
        action="create",
        description=f'Project "{project["title"]}" created',
    )
    logger.info(f"Project created: {project['slug']} (id={project['id']})")
    return await get_project(store, project["id"])

async def update_project(store: ContentStore, project_id: str, body: Mapping[str, Any], user_id: Optional[str]) -> dict:
    validate_project_arrays(body)
    changes = build_project_update_data(body)

    existing = await store.find_unique(Project, {"id": project_id})
    if existing is None:
        raise NotFoundError(PROJECT_NOT_FOUND)
    project = await store.update(Project, {"id": project_id}, changes)
    await sync_team_members(store, project_id, body.get("teamMembers"))

    old_values, new_values = diff_fields(existing, changes)
    await log_activity(
        store,
        user_id,
        entity_type="Project",
        entity_id=project_id,
        project_id=project_id,
        action="update",
        old_value=old_values,
        new_value=new_values,
        description=f'Project "{project["title"]}" updated',
    )
    return await get_project(store, project_id)

async def delete_project(store: ContentStore, project_id: str, user_id: Optional[str]) -> dict:
    existing = await store.find_unique(Project, {"id": project_id})
    if existing is None:
        raise NotFoundError(PROJECT_NOT_FOUND)

    deleted = await store.delete(Project, {"id": project_id})
    await log_activity(
        store,
        user_id,
        entity_type="Project",
        entity_id=project_id,
        project_id=project_id,
        action="delete",
        description=f'Project "{existing["title"]}" deleted',
    )
    logger.info(f"Project deleted: {existing['slug']} (id={project_id})")
    return deleted

# ===== BULK & IMPORT =====

async def bulk_update(
    store: ContentStore,
    action: Any,
    project_ids: Any,
    data: Optional[Mapping[str, Any]],
    user_id: Optional[str],
) -> str:
    """Apply one action to many projects, logging each id in order. Returns the summary message."""
    if not isinstance(project_ids, list) or not project_ids:
        raise ClientValidationError("No projects selected")
    if action not in BULK_ACTIONS:
        raise ClientValidationError("Invalid action")
    data = data or {}
    where = {"id": {"in": project_ids}}

    if action == "delete":
        await store.delete_many(Project, where)
        for project_id in project_ids:
            await log_activity(
                store, user_id, "Project", project_id, "delete",
                project_id=project_id,
                description="Bulk deleted project",
            )
        return f"{len(project_ids)} project(s) deleted successfully"

    if action == "updateStatus":
        if not data.get("status"):
            raise ClientValidationError("Status is required")
        status = resolve_status(data["status"])
        await store.update_many(Project, where, {"status": status})
        for project_id in project_ids:
            await log_activity(
                store, user_id, "Project", project_id, "status_change",
                project_id=project_id,
                field="status",
                new_value={"value": data["status"]},
                description=f"Bulk status changed to {data['status']}",
            )
        return f"{len(project_ids)} project(s) updated successfully"

    if data.get("featured") is None:
        raise ClientValidationError("Featured value is required")
    featured = bool(data["featured"])
    await store.update_many(Project, where, {"featured": featured})
    for project_id in project_ids:
        await log_activity(
            store, user_id, "Project", project_id, "update",
            project_id=project_id,
            field="featured",
            new_value={"value": featured},
            description=f"Bulk featured set to {str(featured).lower()}",
        )
    return f"{len(project_ids)} project(s) updated successfully"

async def import_projects(store: ContentStore, projects: Any) -> dict:
    """
    Create each project independently.
    Returns {"successful": [record, ...], "failed": [{"project": input, "error": message}, ...]}.
    """
    if not isinstance(projects, list):
        raise ClientValidationError("Projects must be an array")

    results = {"successful": [], "failed": []}
    for project_data in projects:
        if not isinstance(project_data, dict) or not project_data.get("title") or not project_data.get("slug"):
            results["failed"].append({"project": project_data, "error": IMPORT_REQUIRED_MESSAGE})
            continue
        try:
            validate_project_arrays(project_data)
            project = await store.create(Project, build_project_create_data(project_data))
        except (ApiError, StoreError) as e:
            error = map_exception(e, PROJECT_SLUG_CONFLICT).message
            logger.warning(f"Project import failed for slug={project_data.get('slug')}: {error}")
            results["failed"].append({"project": project_data, "error": error})
            continue
        results["successful"].append(project)

    logger.info(f"Imported {len(results['successful'])} project(s), {len(results['failed'])} failed")
    return results

# ===== EXPORT =====

def _date_cell(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value)[:10]

def project_to_csv_row(project: Mapping[str, Any]) -> List[str]:
    links = project.get("links") if isinstance(project.get("links"), dict) else {}
    tags = project.get("tags") if isinstance(project.get("tags"), list) else []
    tech_stack = project.get("tech_stack") if isinstance(project.get("tech_stack"), list) else []
    return [
        project.get("title") or "",
        project.get("slug") or "",
        (project.get("short_description") or "").replace("\n", " "),
        project.get("status") or "",
        "Yes" if project.get("featured") else "No",
        _date_cell(project.get("start_date")),
        _date_cell(project.get("release_date")),
        "; ".join(tags),
        "; ".join(tech_stack),
        links.get("github") or "",
        links.get("live") or "",
    ]

def export_projects_csv(projects: List[Mapping[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for project in projects:
        writer.writerow(project_to_csv_row(project))
    return buffer.getvalue().rstrip("\n")

def export_filename(extension: str) -> str:
    return f"projects-{datetime.now(UTC).date().isoformat()}.{extension}"
