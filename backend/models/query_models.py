# models/query_models.py
"""
Filter value objects for list endpoints.

Each filter class is built from raw query parameters with from_query(); a
parameter that is absent produces a no-op filter instead of a literal value.
"""
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from core.query import UNSET, build_activity_log_where, build_post_where, build_project_where

def split_tags(raw: Any) -> List[str]:
    """Accept ?tags=a,b as well as repeated ?tags=a&tags=b."""
    if not raw:
        return []
    values = raw if isinstance(raw, list) else [raw]
    return [tag.strip() for value in values for tag in str(value).split(",") if tag.strip()]

def first_value(raw: Any) -> Optional[str]:
    if isinstance(raw, list):
        return raw[0] if raw else None
    return raw

def parse_bool(raw: Any) -> Optional[bool]:
    value = first_value(raw)
    if value is None or value == "":
        return None
    return str(value).lower() == "true"

class PostFilters(BaseModel):
    status: Optional[str] = None  # None or "all" means any status
    topic: Optional[str] = None
    search: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @classmethod
    def from_query(cls, query: Mapping[str, Any], default_status: Optional[str] = None) -> "PostFilters":
        return cls(
            status=first_value(query.get("status")) or default_status,
            topic=first_value(query.get("topic")) or None,
            search=first_value(query.get("search")) or None,
            tags=split_tags(query.get("tags")),
        )

    def to_where(self) -> dict:
        return build_post_where(
            status=self.status if self.status is not None else UNSET,
            topic=self.topic,
            search=self.search,
            tags=self.tags,
        )

class ProjectFilters(BaseModel):
    status: Optional[str] = None
    search: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    featured: Optional[bool] = None

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "ProjectFilters":
        return cls(
            status=first_value(query.get("status")) or None,
            search=first_value(query.get("search")) or None,
            tags=split_tags(query.get("tags")),
            featured=parse_bool(query.get("featured")),
        )

    def to_where(self) -> dict:
        return build_project_where(
            status=self.status,
            search=self.search,
            tags=self.tags,
            featured=self.featured if self.featured is not None else UNSET,
        )

class ActivityLogFilters(BaseModel):
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    project_id: Optional[str] = None

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "ActivityLogFilters":
        return cls(
            entity_type=first_value(query.get("entityType")) or None,
            entity_id=first_value(query.get("entityId")) or None,
            project_id=first_value(query.get("projectId")) or None,
        )

    def to_where(self) -> dict:
        return build_activity_log_where(self.entity_type, self.entity_id, self.project_id)
