"""
Main Entry Module

This module serves as the application entry point, configuring FastAPI
and running the development server.

Features:
- Application factory
- Storage lifecycle
- CORS setup
- Rate limiting
- Router mounting
- Development server

Security:
- CORS policies
- Upload rate limits
- Fail-fast configuration

Dependencies:
- FastAPI for API
- CORS middleware
- slowapi for rate limiting
- uvicorn for server
- Logging

Author: Snapped Development Team
"""

from typing import Any, Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .shared.config import StorageSettings, get_cors_origins
from .shared.rate_limit import limiter
from .shared.storage import build_lifespan
from .features.imageupload import router as image_upload_router

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[StorageSettings] = None,
    s3_client: Optional[Any] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Storage settings; read from the environment at startup when omitted
        s3_client: S3 client to share across requests; built from settings when omitted

    Returns:
        FastAPI: Configured application
    """
    app = FastAPI(
        title="Image Upload Service",
        lifespan=build_lifespan(settings=settings, s3_client=s3_client),
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add routers
    logger.info("Mounting API routers...")
    app.include_router(image_upload_router)

    @app.get("/api/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug"
    )
