"""FastAPI application factory: mounts admin UI and API routes."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from supportdesk.config import Config, load_config
from supportdesk.handlers import HandlerContext
from supportdesk.log import configure_logging
from supportdesk.web.admin import create_admin

CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def create_app(config: Config | None = None, context: HandlerContext | None = None) -> FastAPI:
    """Build the FastAPI application with admin and API.

    Pass `context` to inject pre-built dependencies (tests do); otherwise they
    are wired from `config`.
    """
    if context is not None:
        config = context.config
    elif config is None:
        config = load_config()
    configure_logging(config.logging.level)

    if context is None:
        context = HandlerContext.from_config(config)

    app = FastAPI(title="Support Desk", version="0.1.0")
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )

    admin = create_admin(context.session_factory.kw["bind"])
    admin.mount_to(app)

    # Import and mount API router
    from supportdesk.web.api import router as api_router
    app.include_router(api_router, prefix="/api")

    # Redirect root to admin
    @app.get("/")
    async def _root():
        return RedirectResponse(url="/admin")

    return app
