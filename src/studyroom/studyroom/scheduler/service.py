from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from .jobs import JOB_BACKUP, JOB_EXPIRY_REMINDERS, Job
from .tickers import APSchedulerTicker, Ticker, parse_cron

logger = logging.getLogger(__name__)


@dataclass
class JobState:
    last_run: Optional[datetime] = None
    last_result: Any = None
    last_error: Optional[str] = None
    run_count: int = 0
    failure_count: int = 0


class SchedulerService:
    """Runs maintenance jobs on their cron schedules.

    Each ``start`` builds a fresh ticker from ``ticker_factory``; ``stop`` cancels
    every timer synchronously. A failing job is logged and recorded in its
    status; other jobs keep their schedule.
    """

    def __init__(
        self,
        jobs: Sequence[Job],
        *,
        ticker_factory: Optional[Callable[[], Ticker]] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        names = [j.name for j in jobs]
        if len(set(names)) != len(names):
            raise ValidationError("Job names must be unique")
        for job in jobs:
            parse_cron(job.schedule)

        self._jobs: Dict[str, Job] = {j.name: j for j in jobs}
        self._ticker_factory = ticker_factory or APSchedulerTicker
        self._clock = clock
        self._ticker: Optional[Ticker] = None
        self._lifecycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._run_locks = {name: threading.Lock() for name in self._jobs}
        self._states = {name: JobState() for name in self._jobs}

    @property
    def is_running(self) -> bool:
        return self._ticker is not None

    def start(self) -> None:
        with self._lifecycle_lock:
            if self._ticker is not None:
                logger.info("Scheduler already running")
                return
            ticker = self._ticker_factory()
            for job in self._jobs.values():
                ticker.add(job.name, job.schedule, self._scheduled_callback(job.name))
            ticker.start()
            self._ticker = ticker
        logger.info("Scheduler started with %d job(s)", len(self._jobs))

    def stop(self) -> None:
        with self._lifecycle_lock:
            ticker, self._ticker = self._ticker, None
            if ticker is None:
                return
            ticker.shutdown()
        logger.info("Scheduler stopped")

    def _scheduled_callback(self, name: str) -> Callable[[], None]:
        def fire() -> None:
            job = self._jobs[name]
            try:
                enabled = job.is_enabled()
            except Exception:
                logger.exception("Could not evaluate whether job %s is enabled; running it", name)
                enabled = True
            if not enabled:
                logger.info("Job %s is disabled; skipping scheduled run", name)
                return
            try:
                self.run_job(name)
            except Exception:
                # Logged and recorded in the job's status by run_job.
                pass

        return fire

    def run_job(self, name: str) -> Any:
        """Run one job now, whether or not the scheduler is running.

        The outcome is recorded in the job's status; errors are re-raised to the caller.
        """

        job = self._jobs.get(name)
        if job is None:
            raise NotFoundError(f"Unknown job: {name}")

        with self._run_locks[name]:
            started = self._clock()
            logger.info("Running job %s", name)
            try:
                result = job.action()
            except DomainError as e:
                self._record(name, started, error=str(e))
                logger.error("Job %s failed: %s", name, e)
                raise
            except Exception as e:
                self._record(name, started, error=str(e) or type(e).__name__)
                logger.exception("Job %s failed", name)
                raise
            self._record(name, started, result=result)
            logger.info("Job %s finished", name)
            return result

    def _record(self, name: str, started: datetime, *, result: Any = None, error: Optional[str] = None) -> None:
        with self._state_lock:
            state = self._states[name]
            state.last_run = started
            state.run_count += 1
            if error is None:
                state.last_result = result
                state.last_error = None
            else:
                state.last_error = error
                state.failure_count += 1

    def trigger_backup(self) -> Any:
        return self.run_job(JOB_BACKUP)

    def trigger_expiry_reminders(self) -> Any:
        return self.run_job(JOB_EXPIRY_REMINDERS)

    def get_status(self) -> dict:
        ticker = self._ticker
        jobs = []
        with self._state_lock:
            for name, job in self._jobs.items():
                state = self._states[name]
                next_run = ticker.next_run(name) if ticker is not None else None
                jobs.append(
                    {
                        "name": name,
                        "schedule": job.schedule,
                        "description": job.description,
                        "last_run": state.last_run.strftime("%Y-%m-%d %H:%M:%S") if state.last_run else None,
                        "last_result": state.last_result,
                        "last_error": state.last_error,
                        "run_count": state.run_count,
                        "failure_count": state.failure_count,
                        "next_run": next_run.isoformat() if next_run else None,
                    }
                )
        return {"is_running": ticker is not None, "jobs": jobs}
