# core/status_mapper.py - Normalize project status strings to stored status codes
from typing import Optional

PROJECT_STATUS_MAP = {
    # Legacy display strings
    "Planned": "Planned",
    "In Progress": "InProgress",
    "In Development": "InDevelopment",
    "In Testing": "InTesting",
    "Completed": "Completed",
    "In Production": "InProduction",
    "Maintenance": "Maintenance",
    "On Hold": "OnHold",
    "Deprecated": "Deprecated",
    "Sunsetted": "Sunsetted",
    # Stored codes map to themselves
    "Draft": "Draft",
    "Published": "Published",
    "InProgress": "InProgress",
    "InDevelopment": "InDevelopment",
    "InTesting": "InTesting",
    "InProduction": "InProduction",
    "OnHold": "OnHold",
}

PROJECT_STATUSES = frozenset(PROJECT_STATUS_MAP.values())
DEFAULT_PROJECT_STATUS = "Draft"

def map_project_status(status) -> Optional[str]:
    """
    Return the stored status code for a display string or code.
    Matching is case-sensitive: "in progress" is not "In Progress".
    """
    if not status or not isinstance(status, str):
        return None
    return PROJECT_STATUS_MAP.get(status)
