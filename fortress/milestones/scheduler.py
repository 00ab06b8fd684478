"""
Milestone Scheduler

Holds dated todo items (through the ledger model), keeps the active
view sorted, and answers "what is due today?".

DESIGN DECISION: due_reminders() is a pure function of the date it is
given. It owns no timer and remembers nothing about what was already
notified; calling it twice for the same day reports the same items
twice. Suppressing repeat alerts is the notification layer's job
(see ReminderService).
"""

from datetime import date
from typing import Optional

from fortress.ledger.model import LedgerModel
from fortress.models.ledger import LedgerUpdate, Milestone
from fortress.validation import LedgerValidator


class MilestoneScheduler:

    def __init__(
        self,
        model: LedgerModel,
        validator: Optional[LedgerValidator] = None,
    ):
        self._model = model
        self._validator = validator or LedgerValidator()

    async def add_milestone(self, title: str, target_date: object) -> LedgerUpdate:
        """
        Add a milestone.

        Raises:
            ValidationError: If title is empty or target_date is not
                exactly YYYY-MM-DD
        """
        return await self._model.add_milestone(title, target_date)

    async def toggle_milestone(self, milestone_id: str) -> LedgerUpdate:
        return await self._model.toggle_milestone(milestone_id)

    async def remove_milestone(self, milestone_id: str) -> LedgerUpdate:
        return await self._model.remove_milestone(milestone_id)

    def active_milestones(self) -> list[Milestone]:
        """Open milestones, soonest first; ties keep insertion order."""
        active = [m for m in self._model.milestones if not m.completed]
        # sorted() is stable, so equal dates stay in insertion order
        return sorted(active, key=lambda m: m.target_date)

    def completed_milestones(self) -> list[Milestone]:
        return [m for m in self._model.milestones if m.completed]

    def due_reminders(self, now: object) -> list[Milestone]:
        """Open milestones whose target date is exactly `now`."""
        today = self._validator.parse_target_date(now)
        return [m for m in self.active_milestones() if m.target_date == today]
