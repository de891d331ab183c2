"""Background scheduler service module for periodic tasks."""

from app.services.scheduler.scheduler_service import SchedulerService, scheduler_service

__all__ = [
    "SchedulerService",
    "scheduler_service",
]
