"""In-process cron scheduler.

Each job is an asyncio task that sleeps until the next fire time computed by
croniter, runs its coroutine and loops. A failing run is logged and the job keeps
its schedule.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional

from croniter import croniter

from indexsync.core.exceptions import ConfigurationError
from indexsync.core.logging import ContextualLogger
from indexsync.core.logging import logger as default_logger

JobTask = Callable[[], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduledJob:
    """Handle on one recurring job."""

    def __init__(self, name: str, rule: str, task: JobTask, logger: ContextualLogger):
        """Initialize the job. Call ``start`` to begin firing."""
        self.name = name
        self.rule = rule
        self._job_task = task
        self.logger = logger
        self._runner: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def next_fire_time(self, now: Optional[datetime] = None) -> datetime:
        """Next time the job fires after ``now``."""
        return croniter(self.rule, now or _utcnow()).get_next(datetime)

    def start(self) -> None:
        if self.running:
            return
        self._runner = asyncio.create_task(self._loop(), name=f"cron:{self.name}")

    async def _loop(self) -> None:
        while True:
            delay = (self.next_fire_time() - _utcnow()).total_seconds()
            await asyncio.sleep(max(delay, 0))
            try:
                await self._job_task()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Scheduled job {self.name} failed: {e}", exc_info=True)

    def stop(self) -> None:
        """Cancel the job. A run in progress is cancelled as well."""
        if self._runner is not None and not self._runner.done():
            self._runner.cancel()
        self._runner = None


class CronScheduler:
    """Owns the recurring jobs of the process, keyed by name."""

    def __init__(self, logger: Optional[ContextualLogger] = None):
        """Initialize the scheduler."""
        self.logger = logger or default_logger.with_context(component="cron_scheduler")
        self._jobs: Dict[str, ScheduledJob] = {}

    def add(self, name: str, rule: str, task: JobTask) -> ScheduledJob:
        """Create and start a recurring job, replacing any job with the same name.

        Raises:
            ConfigurationError: If ``rule`` is not a valid cron expression
        """
        if not croniter.is_valid(rule):
            raise ConfigurationError(f"Invalid cron expression {rule!r} for job {name}")

        self.remove(name)
        job = ScheduledJob(name, rule, task, self.logger.with_context(job=name))
        job.start()
        self._jobs[name] = job
        self.logger.debug(f"Job {name} scheduled with rule {rule}")
        return job

    def get(self, name: str) -> Optional[ScheduledJob]:
        return self._jobs.get(name)

    def remove(self, name: str) -> bool:
        """Stop and forget a job. Returns whether it existed."""
        job = self._jobs.pop(name, None)
        if job is None:
            return False
        job.stop()
        return True

    def shutdown(self) -> None:
        """Stop every job."""
        for name in list(self._jobs):
            self.remove(name)
