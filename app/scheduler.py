"""
Background scheduling for the visitor expiry sweep.

The job is owned by a ``VisitorSweepScheduler`` instance that the FastAPI
lifespan starts and shuts down; nothing is scheduled at import time. The
session factory and the clock are injected so tests can drive
``run_once`` without a database server or a real calendar.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.services.visitante_service import sweep_expired_visitors
from app.utils.fechas import now_local

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "sweep_expired_visitors"


class VisitorSweepScheduler:
    """Periodically purges expired visitors on an APScheduler thread.

    Args:
        session_factory: Callable returning a new SQLAlchemy ``Session``.
        interval_hours: Hours between sweeps (24 in production).
        clock: Returns the "now" handed to the sweep.
        timezone: Timezone name for the APScheduler instance.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_hours: int = 24,
        clock: Callable[[], datetime] = now_local,
        timezone: str = "UTC",
    ) -> None:
        self._session_factory = session_factory
        self._interval_hours = interval_hours
        self._clock = clock
        self._scheduler = BackgroundScheduler(timezone=timezone)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def run_once(self) -> int:
        """Run one sweep in a fresh session; errors are logged, not raised."""
        db = self._session_factory()
        try:
            return sweep_expired_visitors(db, self._clock())
        except Exception:
            logger.exception("Visitor sweep failed")
            return 0
        finally:
            db.close()

    def start(self) -> None:
        if self._scheduler.running:
            return
        self._scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(hours=self._interval_hours),
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Visitor sweep scheduled every %d h", self._interval_hours)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Visitor sweep scheduler stopped")
