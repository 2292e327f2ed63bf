"""Health check endpoints for Taskhub.

- ``GET /health/``: liveness, always ok while the process serves requests.
- ``GET /health/ready``: readiness, verifies the database accepts queries.

Both respond with the standard envelope; an unreachable database makes the
readiness probe answer 503.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskhub.logging import get_logger
from taskhub.web.dependencies import get_session_factory
from taskhub.web.envelope import ApiResponse, ok

logger = get_logger(__name__)


class HealthStatus(BaseModel):
    """Health check payload.

    Attributes:
        status: "ok" or "unhealthy"
        database: Database connectivity ("connected", "disconnected"), readiness only
    """

    status: str
    database: str | None = None


def create_health_router() -> APIRouter:
    """Create the health check router.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with database verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=ApiResponse[HealthStatus])
    async def health() -> Any:
        return ok(HealthStatus(status="ok"), "health.ok")

    @router.get("/ready", response_model=ApiResponse[HealthStatus])
    async def readiness(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Any:
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            body = ApiResponse[HealthStatus](
                data=HealthStatus(status="unhealthy", database="disconnected"),
                message="health.unhealthy",
                errors=["Database is not reachable"],
                success=False,
            )
            return JSONResponse(status_code=503, content=body.model_dump(mode="json"))

        logger.debug("readiness_check_passed", database="connected")
        return ok(HealthStatus(status="ok", database="connected"), "health.ready")

    return router
