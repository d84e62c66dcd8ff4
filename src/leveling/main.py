"""
Leveling Assessment FastAPI Application

Adaptive leveling assessments for school programs.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leveling.config import settings
from leveling.core.dependencies import get_assessment_service, init_assessment_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Startup:
    - Load question bank into memory
    - Initialize assessment service

    Shutdown:
    - Log in-flight assessments (they are not persisted)
    """
    logger.info("Leveling service starting...")

    service = init_assessment_service()
    bank = service.question_bank
    logger.info(f"Loaded {len(bank)} programs (v{bank.metadata['version']})")

    yield

    logger.info("Leveling service shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Leveling Assessment Service",
        description="Adaptive leveling assessments for school programs",
        version="0.1.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_local else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoints
    @app.get("/", tags=["Health"])
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "Leveling Assessment Service",
            "status": "operational",
            "version": "0.1.0",
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health", tags=["Health"], response_model=None)
    async def health_check() -> JSONResponse:
        """Health check endpoint for load balancers.

        Returns:
            - status: healthy/unhealthy
            - checks: Individual health checks
        """
        checks: dict[str, dict[str, Any]] = {}

        # Question bank health
        try:
            bank = get_assessment_service().question_bank
            checks["question_bank"] = {
                "status": "healthy",
                "programs": len(bank),
                "version": bank.metadata["version"],
            }
        except Exception as e:
            checks["question_bank"] = {"status": "unhealthy", "error": str(e)}

        all_healthy = all(check["status"] == "healthy" for check in checks.values())
        status_code = 200 if all_healthy else 503

        return JSONResponse(
            status_code=status_code,
            content={
                "status": "healthy" if all_healthy else "unhealthy",
                "environment": settings.ENVIRONMENT,
                "checks": checks,
            },
        )

    # Register API routers
    from leveling.api.v1 import assessments

    app.include_router(assessments.router, prefix="/api/v1/assessments", tags=["Assessments"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leveling.main:app",
        host="0.0.0.0",  # nosec B104 - Intentional for containerized deployment
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
