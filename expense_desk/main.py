import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .db.migrate import apply_migrations
from .db.seed import seed_default_admin
from .core import errors
from .routers import (
    admin,
    auth,
    card_summaries,
    expenses,
    health,
    reports,
    uploads,
    users,
)


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    # Initialize logging early
    init_logging(debug=settings.debug)

    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
        seed_default_admin(settings.db_path, settings)  # type: ignore[arg-type]
    except Exception:
        # Failing to init DB is fatal; re-raise after logging
        logging.getLogger("app").exception("failed to prepare database on startup")
        raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.DomainError, errors.domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(expenses.router)
    app.include_router(reports.router)
    app.include_router(card_summaries.router)
    app.include_router(uploads.router)
    app.include_router(admin.router)

    # Stored attachments are served read-only under the public uploads prefix
    app.mount(
        settings.public_uploads_base_url,
        StaticFiles(directory=str(settings.uploads_dir)),
        name="uploads-files",
    )

    @app.get("/")
    async def root():
        return {"message": "Expense Desk API", "version": settings.version}

    return app


app = create_app()
