"""Recurring job scheduling."""

from indexsync.platform.scheduling.cron import CronScheduler, ScheduledJob

__all__ = ["CronScheduler", "ScheduledJob"]
