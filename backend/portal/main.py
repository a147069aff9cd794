"""
FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal import __version__
from portal.config import get_settings
from portal.integrations.portal_api import PortalApiClient
from portal.routes import calendar, campus, classroom, drive, google_auth, health, mail
from portal.services.session_context import SessionContext
from portal.utils.logger import get_logger, setup_logging

# Get settings
settings = get_settings()

# Setup logging
setup_logging(settings.log_level)
logger = get_logger(__name__)


def create_app(
    context: Optional[SessionContext] = None,
    portal_client: Optional[PortalApiClient] = None,
) -> FastAPI:
    """
    Build the app.

    The SessionContext is created on startup unless one is passed in;
    persisted Google sessions are restored before the first request.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = context or SessionContext(settings)
        ctx.initialize()
        results = await ctx.restore()
        restored = [provider.label for provider, result in results.items() if result.success]
        logger.info(f"Restored sessions: {', '.join(restored) or 'none'}")

        app.state.context = ctx
        app.state.portal = portal_client or PortalApiClient(
            settings.portal_api_url,
            ctx.token_store.storage,
            timeout=settings.portal_api_timeout_seconds,
        )
        yield

    app = FastAPI(
        title="Campus Portal",
        description="Google Workspace backend for the campus student portal",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(google_auth.router, prefix="/api/google", tags=["Google Sign-in"])
    app.include_router(mail.router, prefix="/api/mail", tags=["Mail"])
    app.include_router(drive.router, prefix="/api/drive", tags=["Drive"])
    app.include_router(classroom.router, prefix="/api/classroom", tags=["Classroom"])
    app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])
    app.include_router(campus.router, prefix="/api/portal", tags=["Campus Portal"])

    @app.get("/")
    async def root():
        """Root endpoint - points to docs."""
        return {
            "message": "Campus Portal API",
            "docs": "/docs",
            "health": "/api/health",
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("portal.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
