# core/dispatch.py - Method routing, auth and error mapping for API routes
"""
Business handlers are plain async functions:

    async def handler(request: ApiRequest, store: ContentStore) -> ApiResponse

create_api_handler() wraps a {method: handler} mapping into a single callable
that routes by method (405), checks the caller identity for protected methods
(401), runs the handler, and maps anything it raises to an error response.
mount() plugs that callable into a FastAPI router.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Type

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from sqlmodel import SQLModel

from core.casing import camelize, snake_keys
from core.errors import (
    ApiError,
    AuthError,
    ClientValidationError,
    MethodNotSupportedError,
    NotFoundError,
    error_body,
    map_exception,
)
from core.logger import get_logger
from core.security import resolve_identity
from core.store import ContentStore
from core.validators import ValidationResult

logger = get_logger(__name__)

ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
READ_ONLY_FIELDS = ("id", "created_at", "updated_at")

@dataclass
class ApiRequest:
    method: str
    query: dict = field(default_factory=dict)
    body: Any = None
    headers: dict = field(default_factory=dict)
    path_params: dict = field(default_factory=dict)
    identity: Optional[dict] = None
    client_ip: Optional[str] = None

    @classmethod
    async def from_starlette(cls, request: Request) -> "ApiRequest":
        # Repeated query parameters (?tags=a&tags=b) become lists
        query = {}
        for key in request.query_params.keys():
            values = request.query_params.getlist(key)
            query[key] = values[0] if len(values) == 1 else values

        body = None
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except ValueError:
                raise ClientValidationError("Request body must be valid JSON")

        headers = {key.lower(): value for key, value in request.headers.items()}
        forwarded = headers.get("x-forwarded-for")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        else:
            client_ip = headers.get("x-real-ip") or (request.client.host if request.client else None)

        return cls(
            method=request.method.upper(),
            query=query,
            body=body,
            headers=headers,
            path_params=dict(request.path_params),
            client_ip=client_ip,
        )

    def json_body(self) -> dict:
        """The request body as a JSON object; anything else is a client error."""
        if self.body is None:
            return {}
        if not isinstance(self.body, dict):
            raise ClientValidationError("Request body must be a JSON object")
        return self.body

@dataclass
class ApiResponse:
    status: int = 200
    body: Any = None
    headers: dict = field(default_factory=dict)
    media_type: Optional[str] = None  # None means JSON

    @classmethod
    def json(cls, body: Any, status: int = 200, headers: Optional[dict] = None) -> "ApiResponse":
        return cls(status=status, body=body, headers=headers or {})

    @classmethod
    def no_content(cls) -> "ApiResponse":
        return cls(status=204)

    @classmethod
    def text(cls, body: str, media_type: str, status: int = 200, headers: Optional[dict] = None) -> "ApiResponse":
        return cls(status=status, body=body, headers=headers or {}, media_type=media_type)

    @classmethod
    def error(cls, error: ApiError) -> "ApiResponse":
        return cls(status=error.status_code, body=error_body(error))

    def to_starlette(self) -> Response:
        if self.status == 204:
            return Response(status_code=204, headers=self.headers)
        if self.media_type:
            return Response(content=self.body, status_code=self.status, media_type=self.media_type, headers=self.headers)
        return JSONResponse(
            content=camelize(jsonable_encoder(self.body)),
            status_code=self.status,
            headers=self.headers,
        )

Handler = Callable[[ApiRequest, ContentStore], Awaitable[ApiResponse]]

def create_api_handler(
    handlers: Mapping[str, Handler],
    protected: Iterable[str] = (),
    conflict_message: Optional[str] = None,
    not_found_message: Optional[str] = None,
) -> Handler:
    routes = {method.upper(): handler for method, handler in handlers.items()}
    protected_methods = {method.upper() for method in protected}

    async def dispatch(request: ApiRequest, store: ContentStore) -> ApiResponse:
        handler = routes.get(request.method.upper())
        if handler is None:
            return ApiResponse.error(MethodNotSupportedError())

        request.identity = resolve_identity(request.headers)
        if request.method.upper() in protected_methods and request.identity is None:
            return ApiResponse.error(AuthError())

        try:
            return await handler(request, store)
        except Exception as exc:
            error = map_exception(exc, conflict_message, not_found_message)
            if error.status_code >= 500:
                logger.error(f"{request.method} handler failed: {error.message}")
            return ApiResponse.error(error)

    return dispatch

# ===== SINGLE-RECORD RESOURCES =====

def create_get_latest_handler(model: Type[SQLModel], not_found_message: str) -> Handler:
    async def get_latest(request: ApiRequest, store: ContentStore) -> ApiResponse:
        record = await store.find_first(model, {"order_by": {"created_at": "desc"}})
        if record is None:
            raise NotFoundError(not_found_message)
        return ApiResponse.json(record)

    return get_latest

def create_singleton_replace_handler(
    model: Type[SQLModel],
    validate: Callable[[dict], ValidationResult],
    status: int = 201,
) -> Handler:
    """Validate the wire body, then atomically replace the single row of `model`."""

    async def replace(request: ApiRequest, store: ContentStore) -> ApiResponse:
        body = request.json_body()
        validate(body).raise_for_error()
        data = {key: value for key, value in snake_keys(body).items() if key not in READ_ONLY_FIELDS}
        record = await store.replace_singleton(model, data)
        return ApiResponse.json(record, status=status)

    return replace

# ===== FASTAPI GLUE =====

def get_store(request: Request) -> ContentStore:
    return request.app.state.store

def mount(router: APIRouter, path: str, handler: Handler, name: Optional[str] = None) -> None:
    async def endpoint(request: Request, store: ContentStore = Depends(get_store)):
        try:
            api_request = await ApiRequest.from_starlette(request)
        except ApiError as error:
            return ApiResponse.error(error).to_starlette()
        response = await handler(api_request, store)
        return response.to_starlette()

    router.add_api_route(path, endpoint, methods=list(ALL_METHODS), name=name or path)
