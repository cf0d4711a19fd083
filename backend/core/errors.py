# core/errors.py - API error taxonomy and centralized status mapping
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logger import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"

# ===== STORE SIGNALS =====
# Raised by the data store; translated to HTTP by map_exception.

class StoreError(Exception):
    pass

class RecordNotFoundError(StoreError):
    def __init__(self, model_name: str, where: Optional[dict] = None):
        self.model_name = model_name
        self.where = where or {}
        super().__init__(f"{model_name} record not found for {self.where}")

class UniqueConstraintError(StoreError):
    def __init__(self, model_name: str, fields: list[str]):
        self.model_name = model_name
        self.fields = fields
        super().__init__(f"Unique constraint failed on {model_name}({', '.join(fields) or 'unknown'})")

class InvalidQueryError(StoreError):
    pass

# ===== API ERRORS =====

class ApiError(Exception):
    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class ClientValidationError(ApiError):
    status_code = 400
    default_message = "Validation failed"

class NotFoundError(ApiError):
    status_code = 404
    default_message = "Record not found"

class ConflictError(ApiError):
    # Uniqueness conflicts are reported as 400, not 409
    status_code = 400
    default_message = "A record with this value already exists"

class AuthError(ApiError):
    status_code = 401
    default_message = "Unauthorized"

class MethodNotSupportedError(ApiError):
    status_code = 405
    default_message = "Method Not Allowed"

def map_exception(
    exc: Exception,
    conflict_message: Optional[str] = None,
    not_found_message: Optional[str] = None,
) -> ApiError:
    """
    Translate any exception raised inside a business handler into an ApiError.
    Unknown errors are logged and reported with a generic message.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, UniqueConstraintError):
        if conflict_message:
            return ConflictError(conflict_message)
        field = exc.fields[0] if exc.fields else "field"
        return ConflictError(f"A record with this {field} already exists")
    if isinstance(exc, RecordNotFoundError):
        return NotFoundError(not_found_message)
    if isinstance(exc, InvalidQueryError):
        return ClientValidationError(str(exc))

    logger.error(f"Unhandled API error: {exc!r}", exc_info=exc)
    return ApiError()

def error_body(error: ApiError) -> dict:
    return {"message": error.message}

# ===== FRAMEWORK HANDLERS =====

def install_exception_handlers(app: FastAPI) -> None:
    """Render framework-level errors with the same {"message": ...} shape."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in errors]
        message = f"Invalid fields: {', '.join(f for f in fields if f)}" if any(fields) else "Validation failed"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error = map_exception(exc)
        return JSONResponse(status_code=error.status_code, content=error_body(error))
