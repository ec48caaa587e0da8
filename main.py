"""
FastAPI Application Entry Point

Integrates:
  - Messenger webhook (handshake + signed events)
  - Health checks
  - Shared Graph API transport (one httpx.AsyncClient per process)

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import Config
from transport.facebook import (
    ActivityHandler,
    ClientConfig,
    FacebookClient,
    TokenResolver,
    router as facebook_router,
)

# Setup logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    client_config: Optional[ClientConfig] = None,
    token_resolver: Optional[TokenResolver] = None,
    activity_handler: Optional[ActivityHandler] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        client_config: Credentials; read from the environment when omitted
        token_resolver: async page_id -> access token, for multi-page apps
        activity_handler: called with each verified inbound activity
        http_client: shared transport; one is opened for the app lifetime when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan: startup and shutdown handlers.
        """
        if client_config is None:
            Config.validate()
        config = client_config or ClientConfig.from_env()
        owns_transport = http_client is None
        transport = http_client or httpx.AsyncClient(timeout=None)

        app.state.facebook_client = FacebookClient(
            config,
            http_client=transport,
            token_resolver=token_resolver,
        )

        # Startup
        logger.info("=" * 60)
        logger.info("Messenger transport starting up...")
        logger.info(f"Graph API: https://{config.api_host}/{config.api_version}")
        logger.info(f"Mode: {'single page' if config.access_token else 'per-page tokens'}")
        logger.info(f"Environment: {Config.ENVIRONMENT}")
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("Messenger transport shutting down...")
        if owns_transport:
            await transport.aclose()

    app = FastAPI(
        title="Messenger Transport API",
        description="Signed Graph API client and Messenger webhook receiver",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.activity_handler = activity_handler

    # Middleware for logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    # Include routers
    app.include_router(facebook_router)

    # Health check endpoints
    @app.get("/health/live")
    async def health_live():
        """Live health check (Kubernetes liveness probe)."""
        return {"status": "alive"}

    @app.get("/health/ready")
    async def health_ready(request: Request):
        """Readiness health check (Kubernetes readiness probe)."""
        client = getattr(request.app.state, "facebook_client", None)
        if client is None:
            return {"status": "not_ready", "reason": "transport not started"}

        missing = [
            name
            for name, value in (
                ("app_secret", client.config.app_secret),
                ("verify_token", client.config.verify_token),
            )
            if not value
        ]
        if missing:
            return {"status": "not_ready", "reason": f"missing {', '.join(missing)}"}
        return {"status": "ready"}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Messenger Transport API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "facebook_handshake": "GET /webhook/facebook",
                "facebook_webhook": "POST /webhook/facebook",
                "health_live": "GET /health/live",
                "health_ready": "GET /health/ready",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.PORT,
        reload=Config.ENVIRONMENT == "development",
    )
