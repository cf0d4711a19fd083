# main.py
# Standard library imports
import uuid
from contextlib import asynccontextmanager
from typing import Optional

# Third-party imports
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request

# Local imports
from api import admin, admin_projects, articles, auth, newsletter, playlists, posts, projects, site_content
from core.errors import install_exception_handlers
from core.init import run_all
from core.logger import get_logger, request_id_ctx_var
from core.settings import settings
from core.store import ContentStore

# export environment variables
UVICORN_MODE = settings.UVICORN_MODE
FRONTEND_ORIGIN = settings.FRONTEND_ORIGIN

logger = get_logger(__name__)

def create_app(store: Optional[ContentStore] = None) -> FastAPI:
    """
    Build the API application.
    Without an explicit store one is created from settings at startup and disposed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = store is None
        if owns_store:
            app.state.store = await run_all()
        else:
            await store.init_schema()
            app.state.store = store
        logger.info(f"Content API started (mode={UVICORN_MODE})")
        try:
            yield
        finally:
            if owns_store:
                await app.state.store.dispose()

    app = FastAPI(lifespan=lifespan)
    if store is not None:
        app.state.store = store

    # Mount routers first
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication APIs"])
    app.include_router(posts.router, tags=["Post APIs"])
    app.include_router(articles.router, tags=["Post APIs"])
    app.include_router(playlists.router, tags=["Playlist APIs"])
    app.include_router(projects.router, tags=["Project APIs"])
    app.include_router(site_content.router, tags=["Site Content APIs"])
    app.include_router(newsletter.router, tags=["Newsletter APIs"])
    app.include_router(admin.router, tags=["Admin APIs"])
    app.include_router(admin_projects.router, tags=["Admin Project APIs"])

    install_exception_handlers(app)

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request_id_ctx_var.set(request_id)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    if UVICORN_MODE != "production":
        # Enable CORS in development mode
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[FRONTEND_ORIGIN],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    return app

app = create_app()
