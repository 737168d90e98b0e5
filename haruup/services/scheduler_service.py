"""Cron scheduling for the ranking batch."""

from __future__ import annotations

import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haruup.adapters.llm.factory import get_llm_client
from haruup.core.clock import local_today
from haruup.core.config import settings
from haruup.schemas.ranking import RankingBatchResult
from haruup.services.ranking_batch_service import RankingBatchService
from haruup.services.ranking_label_service import RankingLabelService

logger = logging.getLogger(__name__)

RANKING_BATCH_JOB_ID = "ranking_batch_daily"


class SchedulerService:
    """Runs the ranking batch for the previous day on a cron schedule.

    Failures are logged and left for the next run; nothing is retried.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.scheduler = AsyncIOScheduler(timezone=settings.app.tzinfo)

    def start(self) -> None:
        self.scheduler.add_job(
            func=self.ranking_batch_job,
            trigger=CronTrigger.from_crontab(settings.ranking.batch_cron, timezone=settings.app.tzinfo),
            id=RANKING_BATCH_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info("scheduler.started", extra={"cron": settings.ranking.batch_cron})

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("scheduler.stopped")

    async def ranking_batch_job(self) -> RankingBatchResult | None:
        target_date = local_today() - timedelta(days=1)
        label_service = RankingLabelService(get_llm_client())
        try:
            async with self.session_factory() as session:
                return await RankingBatchService(session, label_service).execute_batch(target_date)
        except Exception:
            logger.exception("ranking_batch.job_failed", extra={"target_date": target_date.isoformat()})
            return None
