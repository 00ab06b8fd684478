"""Milestones and reminders package."""

from fortress.milestones.scheduler import MilestoneScheduler
from fortress.milestones.reminders import (
    REMINDER_TITLE,
    LoggingNotificationSurface,
    NotificationSurface,
    PermissionState,
    ReminderService,
)

__all__ = [
    "LoggingNotificationSurface",
    "MilestoneScheduler",
    "NotificationSurface",
    "PermissionState",
    "REMINDER_TITLE",
    "ReminderService",
]
