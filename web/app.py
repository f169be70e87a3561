"""
FastAPI application for the partner intake form API.

JSON only; the form itself is rendered by a separate front end.
Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.contacts import ContactRepository
from core.markets import MarketConfigRegistry
from core.tracking import build_emitter
from utils.config import Config
from utils.logging_setup import configure_logging
from web.form_routes import FormServices, SessionStore, router as form_router


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("RAILWAY_ENVIRONMENT") is not None or os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration - the public form is served from its own origin
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:5173", "http://localhost:8000", "http://127.0.0.1:8000"]


def build_services(config: Config) -> FormServices:
    """Wire the registry, repository and emitter from configuration."""
    return FormServices(
        registry=MarketConfigRegistry.from_file(config.market_config_path),
        repository=ContactRepository(config.resolved_contacts_path),
        emitter=build_emitter(config.tracking_webhook_url, timeout=config.request_timeout),
        sessions=SessionStore(idle_timeout=config.session_idle_timeout),
    )


def create_app(config: Optional[Config] = None, services: Optional[FormServices] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration (defaults to the environment)
        services: Pre-built collaborators (tests inject in-memory ones)
    """
    config = config or Config.load()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Partner Intake Engine",
        description="Adaptive multi-step intake form for partner recruitment",
        version="0.1.0",
        # Production settings: disable docs/redoc for private deployment
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    # ==========================================================================
    # Healthcheck endpoints are registered first; no dependencies, no IO.
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Secondary health endpoint."""
        return {
            "status": "healthy",
            "version": "0.1.0",
            "environment": "production" if IS_PRODUCTION else "development",
        }

    # CORS middleware - locked down for production
    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["*"],
        )

    app.state.config = config
    app.state.form_services = services or build_services(config)
    logger.info(
        "Partner intake API ready (%d markets)",
        len(app.state.form_services.registry),
    )

    app.include_router(form_router)

    return app
