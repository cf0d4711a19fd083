# core/validators.py - Request body validation helpers
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from core.errors import ClientValidationError

@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: Optional[str] = None

    def raise_for_error(self) -> None:
        if not self.is_valid:
            raise ClientValidationError(self.message or "Validation failed")

VALID = ValidationResult(is_valid=True)

def validate_required_fields(data: Mapping[str, Any], required_fields: Sequence[str]) -> ValidationResult:
    """Fail when any required field is missing or empty, naming all of them."""
    missing = [field for field in required_fields if not (data or {}).get(field)]
    if missing:
        return ValidationResult(False, f"Missing required fields: {', '.join(missing)}")
    return VALID

def validate_array_field(value: Any, field_name: str) -> ValidationResult:
    if not isinstance(value, list):
        return ValidationResult(False, f"{field_name} must be an array")
    return VALID

def validate_array_fields(data: Mapping[str, Any], array_fields: Sequence[str]) -> ValidationResult:
    for field in array_fields:
        result = validate_array_field((data or {}).get(field), field)
        if not result.is_valid:
            return result
    return VALID

def combine_validations(*validations: ValidationResult) -> ValidationResult:
    """Return the first failing result, or VALID."""
    for validation in validations:
        if not validation.is_valid:
            return validation
    return VALID

# ===== PROJECTS =====

def validate_project_data(data: Mapping[str, Any], required_fields: Sequence[str] = ("title", "startDate")) -> ValidationResult:
    return validate_required_fields(data, required_fields)

def validate_admin_project_data(data: Mapping[str, Any]) -> ValidationResult:
    return validate_required_fields(data, ["title", "slug"])

def validate_team_member(member: Any) -> ValidationResult:
    if not isinstance(member, Mapping) or not member.get("name"):
        return ValidationResult(False, "Team member name is required")
    return VALID

def validate_team_members(team: Any) -> ValidationResult:
    if not isinstance(team, list):
        return ValidationResult(False, "Team must be an array")
    for member in team:
        result = validate_team_member(member)
        if not result.is_valid:
            return result
    return VALID

# ===== VALUE PARSING =====

def parse_datetime(value: Any, field_name: str) -> Optional[datetime]:
    """Parse an ISO-8601 date/datetime string from a request body."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ClientValidationError(f"{field_name} must be an ISO-8601 date")
