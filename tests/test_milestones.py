"""Tests for the milestone scheduler and reminder service."""

import asyncio
from datetime import date

import pytest

from fortress.milestones import (
    REMINDER_TITLE,
    LoggingNotificationSurface,
    PermissionState,
    ReminderService,
)
from fortress.models.audit import AuditEventType
from fortress.services.clock import FixedClock
from fortress.validation import NotFoundError, ValidationError


class FlakyClock(FixedClock):
    """Fixed clock that can be told to fail its next reads."""

    def __init__(self, today: date):
        super().__init__(today)
        self.fail_next = 0

    def now(self) -> date:
        if self.fail_next:
            self.fail_next -= 1
            raise RuntimeError("clock unavailable")
        return super().now()


def add_milestones(scheduler, *items):
    async def scenario():
        for title, target in items:
            await scheduler.add_milestone(title, target)

    asyncio.run(scenario())


class TestMilestoneScheduler:

    def test_add_milestone(self, scheduler, model):
        update = asyncio.run(scheduler.add_milestone("Renew FD", "2026-01-14"))

        milestone = update.document.todos[0]
        assert milestone.title == "Renew FD"
        assert milestone.target_date == date(2026, 1, 14)
        assert milestone.completed is False
        assert model.milestones == [milestone]

    @pytest.mark.parametrize("target", ["14-01-2026", "2026/01/14", "Jan 14 2026", "2026-02-30"])
    def test_add_milestone_rejects_bad_dates(self, scheduler, model, target):
        with pytest.raises(ValidationError):
            asyncio.run(scheduler.add_milestone("Renew FD", target))
        assert model.milestones == []

    def test_add_milestone_rejects_empty_title(self, scheduler):
        with pytest.raises(ValidationError):
            asyncio.run(scheduler.add_milestone("", "2026-01-14"))

    def test_add_milestone_rejects_long_title(self, scheduler, model):
        with pytest.raises(ValidationError, match="at most 300"):
            asyncio.run(scheduler.add_milestone("t" * 301, "2026-01-14"))
        assert model.milestones == []

    def test_due_on_exact_day_only(self, scheduler):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))

        assert [m.title for m in scheduler.due_reminders(date(2026, 1, 14))] == ["Renew FD"]
        assert scheduler.due_reminders(date(2026, 1, 13)) == []
        assert scheduler.due_reminders(date(2026, 1, 15)) == []

    def test_due_reminders_accepts_iso_string(self, scheduler):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        assert len(scheduler.due_reminders("2026-01-14")) == 1

    def test_due_reminders_repeat(self, scheduler):
        """Test that the scheduler keeps no notified state."""
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        first = scheduler.due_reminders(date(2026, 1, 14))
        second = scheduler.due_reminders(date(2026, 1, 14))
        assert first == second
        assert len(first) == 1

    def test_completed_milestones_are_not_due(self, scheduler):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        milestone_id = scheduler.active_milestones()[0].id

        asyncio.run(scheduler.toggle_milestone(milestone_id))

        assert scheduler.due_reminders(date(2026, 1, 14)) == []
        assert [m.id for m in scheduler.completed_milestones()] == [milestone_id]

    def test_active_view_is_sorted_and_stable(self, scheduler):
        add_milestones(
            scheduler,
            ("Late", "2026-06-01"),
            ("Tie first", "2026-02-01"),
            ("Early", "2026-01-01"),
            ("Tie second", "2026-02-01"),
        )
        assert [m.title for m in scheduler.active_milestones()] == [
            "Early", "Tie first", "Tie second", "Late",
        ]

    def test_toggle_twice_reopens(self, scheduler):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        milestone_id = scheduler.active_milestones()[0].id

        async def scenario():
            await scheduler.toggle_milestone(milestone_id)
            return await scheduler.toggle_milestone(milestone_id)

        update = asyncio.run(scenario())
        assert update.document.todos[0].completed is False

    def test_remove_milestone(self, scheduler, primary, read_stored):
        add_milestones(scheduler, ("A", "2026-01-14"), ("B", "2026-01-15"))
        milestone_id = scheduler.active_milestones()[0].id

        asyncio.run(scheduler.remove_milestone(milestone_id))

        assert [m.title for m in scheduler.active_milestones()] == ["B"]
        assert [m.title for m in read_stored(primary).todos] == ["B"]

    def test_unknown_milestone(self, scheduler):
        with pytest.raises(NotFoundError):
            asyncio.run(scheduler.toggle_milestone("missing"))
        with pytest.raises(NotFoundError):
            asyncio.run(scheduler.remove_milestone("missing"))


class TestReminderService:

    def test_check_once_notifies_due_items(self, scheduler, notifier, clock, audit_logger):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"), ("Later", "2026-02-01"))
        service = ReminderService(scheduler, notifier, clock=clock, audit_logger=audit_logger)

        sent = asyncio.run(service.check_once())

        assert [m.title for m in sent] == ["Renew FD"]
        assert notifier.sent == [(REMINDER_TITLE, "Renew FD")]
        assert audit_logger.recent_events()[0].event_type == AuditEventType.REMINDER_SENT

    def test_check_once_deduplicates(self, scheduler, notifier, clock):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        service = ReminderService(scheduler, notifier, clock=clock)

        async def scenario():
            await service.check_once()
            return await service.check_once()

        assert asyncio.run(scenario()) == []
        assert len(notifier.sent) == 1

    def test_new_service_notifies_again(self, scheduler, notifier, clock):
        """Test that de-duplication only lasts for one service instance."""
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))

        asyncio.run(ReminderService(scheduler, notifier, clock=clock).check_once())
        asyncio.run(ReminderService(scheduler, notifier, clock=clock).check_once())

        assert len(notifier.sent) == 2

    def test_next_day_item_notified_when_day_comes(self, scheduler, notifier, clock):
        add_milestones(scheduler, ("Tomorrow", "2026-01-15"))
        service = ReminderService(scheduler, notifier, clock=clock)

        assert asyncio.run(service.check_once()) == []
        clock.advance()
        assert [m.title for m in asyncio.run(service.check_once())] == ["Tomorrow"]

    def test_notifier_failure_is_retried(self, scheduler, notifier, clock):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        notifier.fail_next = 1
        service = ReminderService(scheduler, notifier, clock=clock)

        async def scenario():
            first = await service.check_once()
            second = await service.check_once()
            return first, second

        first, second = asyncio.run(scenario())
        assert first == []
        assert [m.title for m in second] == ["Renew FD"]

    def test_denied_permission(self, scheduler, denied_notifier, clock, audit_logger):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        service = ReminderService(
            scheduler, denied_notifier, clock=clock, audit_logger=audit_logger,
        )

        started = asyncio.run(service.start())

        assert started is False
        assert service.running is False
        assert service.permission == PermissionState.DENIED
        assert denied_notifier.sent == []
        event_types = [e.event_type for e in audit_logger.recent_events()]
        assert AuditEventType.NOTIFICATION_PERMISSION_DENIED in event_types

    def test_start_and_stop(self, scheduler, notifier, clock):
        add_milestones(scheduler, ("Renew FD", "2026-01-14"))
        service = ReminderService(scheduler, notifier, clock=clock)

        async def scenario():
            assert await service.start() is True
            assert await service.start() is True
            running = service.running
            await service.stop()
            await service.stop()
            return running

        assert asyncio.run(scenario()) is True
        assert service.running is False
        assert notifier.permission_requests == 1
        assert len(notifier.sent) == 1

    def test_periodic_check(self, scheduler, notifier, clock):
        add_milestones(scheduler, ("Tomorrow", "2026-01-15"))
        service = ReminderService(scheduler, notifier, clock=clock, interval_seconds=0.01)

        async def scenario():
            async with service:
                clock.advance()
                for _ in range(100):
                    if notifier.sent:
                        break
                    await asyncio.sleep(0.01)
            return service.running

        assert asyncio.run(scenario()) is False
        assert notifier.sent == [(REMINDER_TITLE, "Tomorrow")]

    def test_periodic_check_survives_a_failing_tick(self, scheduler, notifier, clock):
        """Test that one failed check does not end the reminder loop."""
        add_milestones(scheduler, ("Tomorrow", "2026-01-15"))
        flaky = FlakyClock(clock.now())
        service = ReminderService(scheduler, notifier, clock=flaky, interval_seconds=0.01)

        async def scenario():
            async with service:
                flaky.fail_next = 1
                flaky.advance()
                for _ in range(100):
                    if notifier.sent:
                        break
                    await asyncio.sleep(0.01)
                return service.running

        assert asyncio.run(scenario()) is True
        assert flaky.fail_next == 0
        assert notifier.sent == [(REMINDER_TITLE, "Tomorrow")]

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_bad_interval(self, scheduler, interval):
        with pytest.raises(ValueError):
            ReminderService(scheduler, interval_seconds=interval)

    def test_logging_surface(self):
        surface = LoggingNotificationSurface()

        async def scenario():
            permission = await surface.request_permission()
            await surface.notify(REMINDER_TITLE, "Renew FD")
            return permission

        assert asyncio.run(scenario()) == PermissionState.GRANTED
