"""
Milestone Reminders

Drives MilestoneScheduler.due_reminders() on a timer and pushes
notifications for milestones due today.

The scheduler itself is pure and re-reports due items on every call.
This service closes that gap for a single session: each milestone is
notified at most once per target day while the service lives. Nothing
about "already notified" is persisted.

The timer is an asyncio task that is always cancelled by stop(), so
tearing down the app never leaks a running loop.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Optional

import structlog

from fortress.audit import AuditLogger
from fortress.milestones.scheduler import MilestoneScheduler
from fortress.models.audit import AuditEventBuilder
from fortress.models.ledger import Milestone
from fortress.services.clock import Clock, SystemClock


logger = structlog.get_logger(__name__)

REMINDER_TITLE = "Milestone due today"


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


class NotificationSurface(ABC):
    """Where reminders are shown (desktop notifications, a chat bot, ...)."""

    @abstractmethod
    async def request_permission(self) -> PermissionState:
        pass

    @abstractmethod
    async def notify(self, title: str, body: str) -> None:
        pass


class LoggingNotificationSurface(NotificationSurface):
    """Default surface: reminders go to the structured log."""

    async def request_permission(self) -> PermissionState:
        return PermissionState.GRANTED

    async def notify(self, title: str, body: str) -> None:
        logger.info("reminder", title=title, body=body)


class ReminderService:
    """
    Periodic reminder check with per-session de-duplication.

    Usage:
        async with ReminderService(scheduler, notifier) as reminders:
            ...
    """

    def __init__(
        self,
        scheduler: MilestoneScheduler,
        notifier: Optional[NotificationSurface] = None,
        clock: Optional[Clock] = None,
        interval_seconds: float = 3600.0,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._scheduler = scheduler
        self._notifier = notifier or LoggingNotificationSurface()
        self._clock = clock or SystemClock()
        self._interval = interval_seconds
        self._audit_logger = audit_logger or AuditLogger()
        self._notified: set[tuple[str, date]] = set()
        self._task: Optional[asyncio.Task] = None
        self._permission: Optional[PermissionState] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def permission(self) -> Optional[PermissionState]:
        return self._permission

    async def check_once(self) -> list[Milestone]:
        """Notify every due milestone not yet notified this session."""
        sent = []
        for milestone in self._scheduler.due_reminders(self._clock.now()):
            key = (milestone.id, milestone.target_date)
            if key in self._notified:
                continue

            try:
                await self._notifier.notify(REMINDER_TITLE, milestone.title)
            except Exception as e:
                # Try again on the next tick
                logger.warning(
                    "reminder_notify_failed",
                    milestone_id=milestone.id,
                    error=str(e),
                )
                continue

            self._notified.add(key)
            sent.append(milestone)
            self._audit_logger.log(AuditEventBuilder.reminder_sent(
                milestone.id, milestone.title, milestone.target_date.isoformat(),
            ))

        return sent

    async def start(self) -> bool:
        """
        Ask for permission, check once, then keep checking on the interval.

        Returns False (and schedules nothing) if permission is denied.
        """
        if self.running:
            return True

        if self._permission is None:
            self._permission = await self._notifier.request_permission()

        if self._permission != PermissionState.GRANTED:
            self._audit_logger.log(AuditEventBuilder.notification_permission_denied())
            return False

        await self.check_once()
        self._task = asyncio.create_task(self._run(), name="fortress-reminders")
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.check_once()
            except Exception as e:
                logger.error("reminder_check_failed", error=str(e))

    async def stop(self) -> None:
        """Cancel the periodic check. Safe to call more than once."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> 'ReminderService':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
