import asyncio
import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from hr_calltracker.services.employee_analytics import EmployeeAnalyticsService
from hr_calltracker.services.scheduling_engine import SchedulingEngine

logger = logging.getLogger(__name__)


class PeriodicAnalysis:
    """
    Re-runs the scheduling analysis on a fixed interval inside the event loop.
    A failing run is logged and the next one still happens.
    """

    def __init__(
        self,
        engine: SchedulingEngine,
        analytics: Optional[EmployeeAnalyticsService] = None,
        interval_seconds: float = 300,
    ):
        self.engine = engine
        self.analytics = analytics
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        try:
            if self.analytics is not None:
                await run_in_threadpool(self.analytics.refresh)
            pending = await self.engine.generate_suggestions()
            logger.info(f"Periodic analysis: {len(pending)} pending suggestion(s)")
        except Exception:
            logger.exception("Periodic analysis run failed")

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.is_running:
            return
        logger.info(f"Starting periodic analysis every {self.interval_seconds:g}s")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Periodic analysis stopped")
