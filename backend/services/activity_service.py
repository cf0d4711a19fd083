# services/activity_service.py - Best-effort audit trail for admin mutations
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi.encoders import jsonable_encoder

from core.logger import get_logger
from core.store import ContentStore
from models.db_models import ActivityLog

logger = get_logger(__name__)

def wrap_value(value: Any) -> Optional[dict]:
    """Snapshots are stored as JSON objects; scalars become {"value": v}."""
    if not value:
        return None
    if isinstance(value, dict):
        return jsonable_encoder(value)
    return {"value": jsonable_encoder(value)}

async def log_activity(
    store: ContentStore,
    user_id: Optional[str],
    entity_type: str,
    entity_id: str,
    action: str,
    project_id: Optional[str] = None,
    field: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
    description: Optional[str] = None,
    details: Optional[dict] = None,
) -> Optional[dict]:
    """
    Write one activity log entry.
    Failures are logged and swallowed: the audited operation has already succeeded.
    """
    try:
        return await store.create(ActivityLog, {
            "user_id": user_id or None,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "project_id": project_id or None,
            "action": action,
            "field": field or None,
            "old_value": wrap_value(old_value),
            "new_value": wrap_value(new_value),
            "description": description or None,
            "details": jsonable_encoder(details) if details else None,
        })
    except Exception as e:
        logger.error(f"Failed to log activity ({entity_type} {entity_id} {action}): {e}")
        return None

def diff_fields(old: Mapping[str, Any], changes: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return (old_snapshot, new_snapshot) for the fields whose value actually changes."""
    old_snapshot, new_snapshot = {}, {}
    for field, value in changes.items():
        if field == "updated_at":
            continue
        previous = old.get(field)
        if previous != value:
            old_snapshot[field] = previous
            new_snapshot[field] = value
    return old_snapshot, new_snapshot
