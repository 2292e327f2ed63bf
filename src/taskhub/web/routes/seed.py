"""Administrative seeding endpoints for Taskhub.

All routes require the admin role. Seeding is idempotent in the sense that
users are never duplicated and the fixed initial projects are only created
on an empty project table.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import TaskhubConfig
from taskhub.database.models.user import User
from taskhub.logging import get_logger
from taskhub.seed import DatabaseSeeder, DatabaseStats, SampleDataSeeder, collect_stats
from taskhub.web.dependencies import get_config, get_session, require_admin
from taskhub.web.envelope import ApiResponse, ok

logger = get_logger(__name__)


class StatsResponse(BaseModel):
    """Row counts of the non-deleted entities and tasks per status."""

    users: int
    projects: int
    tasks: int
    comments: int
    activity_logs: int
    project_members: int
    tasks_by_status: dict[str, int]


def _stats(stats: DatabaseStats) -> StatsResponse:
    return StatsResponse(**stats.as_dict(), tasks_by_status=stats.tasks_by_status)


def create_seed_router() -> APIRouter:
    """Create the seeding router.

    Routes:
        POST /seed/initial - Seed the fixed initial dataset
        POST /seed/sample - Add randomised sample data
        GET /seed/stats - Current row counts
    """
    router = APIRouter(prefix="/seed", tags=["seed"])

    @router.post("/initial", response_model=ApiResponse[StatsResponse])
    async def seed_initial(
        admin: User = Depends(require_admin),  # noqa: B008
        session: AsyncSession = Depends(get_session),  # noqa: B008
        config: TaskhubConfig = Depends(get_config),  # noqa: B008
    ) -> Any:
        stats = await DatabaseSeeder(session, config.auth).seed()
        logger.info("seed_initial_requested", admin_id=str(admin.id), **stats.as_dict())
        return ok(_stats(stats), "seed.initial.success")

    @router.post("/sample", response_model=ApiResponse[StatsResponse])
    async def seed_sample(
        admin: User = Depends(require_admin),  # noqa: B008
        session: AsyncSession = Depends(get_session),  # noqa: B008
        config: TaskhubConfig = Depends(get_config),  # noqa: B008
    ) -> Any:
        stats = await SampleDataSeeder(session, config.auth).seed()
        logger.info("seed_sample_requested", admin_id=str(admin.id), **stats.as_dict())
        return ok(_stats(stats), "seed.sample.success")

    @router.get("/stats", response_model=ApiResponse[StatsResponse])
    async def seed_stats(
        admin: User = Depends(require_admin),  # noqa: B008
        session: AsyncSession = Depends(get_session),  # noqa: B008
    ) -> Any:
        stats = await collect_stats(session)
        return ok(_stats(stats), "stats.retrieved.success")

    return router
