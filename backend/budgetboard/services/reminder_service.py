# Overview: Daily reminder sweep; scans tasks and budgets and inserts notifications.

"""
Reminder Sweep

Three independent scans, run once a day (08:00 UTC by default):

1. Overdue tasks: open, assigned, due before today. Skipped when the assignee
   already has an 'overdue' notification created today whose message contains
   the task title. That check is textual containment, so a task whose title is
   a substring of another task's title can be suppressed by it.
2. Due tomorrow: open, assigned, due exactly tomorrow. Not deduplicated; a
   second run on the same day notifies again.
3. Budget overruns: projects with a budget whose expenses reach 80% of it.
   The owner is notified on every run.

The sweep owns its scheduler and takes the app and a clock as dependencies,
so tests can drive run_once() with a fixed "now". A failing scan is logged
and the remaining scans still run. Overlapping runs are not prevented.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Notification, Project, Task
from ..models.projects import TASK_STATUS_COMPLETED
from ..models.communications import (
    NOTIFICATION_BUDGET_WARNING,
    NOTIFICATION_DUE_SOON,
    NOTIFICATION_OVERDUE,
)
from ..validation import money
from . import budget_service, notification_service
from budgetboard.time_utils import start_of_day, utcnow


JOB_ID = "reminder_sweep"
MAX_OVERLAPPING_RUNS = 100
BUDGET_ALERT_RATIO = Decimal("0.80")


class ReminderSweep:
    def __init__(self, app, clock: Callable[[], datetime] = utcnow, scheduler=None):
        self.app = app
        self.clock = clock
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if self.running:
            return
        trigger = CronTrigger(
            hour=self.app.config["REMINDER_SWEEP_HOUR"],
            minute=self.app.config["REMINDER_SWEEP_MINUTE"],
            timezone="UTC",
        )
        self._scheduler.add_job(
            self.run_once,
            trigger,
            id=JOB_ID,
            replace_existing=True,
            # overlapping runs are not skipped
            max_instances=MAX_OVERLAPPING_RUNS,
        )
        self._scheduler.start()
        self.app.logger.info(
            "Reminder sweep scheduled daily at %02d:%02d UTC",
            self.app.config["REMINDER_SWEEP_HOUR"],
            self.app.config["REMINDER_SWEEP_MINUTE"],
        )

    def stop(self, wait: bool = False) -> None:
        if self.running:
            self._scheduler.shutdown(wait=wait)

    def run_once(self) -> dict[str, int | None]:
        """Run all three scans. A scan that failed reports None."""
        with self.app.app_context():
            self.app.logger.info("Running daily reminder check...")
            return {
                "overdue": self._guarded("overdue tasks", self.check_overdue_tasks),
                "due_soon": self._guarded("upcoming deadlines", self.check_upcoming_deadlines),
                "budget": self._guarded("budget limits", self.check_budget_limits),
            }

    def _guarded(self, label: str, scan: Callable[[], int]) -> int | None:
        try:
            return scan()
        except Exception:
            db.session.rollback()
            self.app.logger.exception("Error checking %s", label)
            return None

    def check_overdue_tasks(self) -> int:
        now = self.clock()
        today = now.date()
        rows = (
            db.session.query(Task.id, Task.title, Task.assigned_to, Task.project_id, Project.name)
            .join(Project, Project.id == Task.project_id)
            .filter(
                Task.status != TASK_STATUS_COMPLETED,
                Task.due_date < today,
                Task.assigned_to.isnot(None),
            )
            .all()
        )

        created = 0
        for _task_id, title, assignee_id, project_id, project_name in rows:
            already_sent = (
                db.session.query(Notification.id)
                .filter(
                    Notification.user_id == assignee_id,
                    Notification.type == NOTIFICATION_OVERDUE,
                    Notification.message.contains(title),
                    Notification.created_at >= start_of_day(now),
                )
                .first()
            )
            if already_sent:
                continue
            notification_service.create_notification(
                assignee_id,
                project_id,
                NOTIFICATION_OVERDUE,
                f'Task "{title}" in "{project_name}" is overdue!',
                created_at=now,
            )
            created += 1

        self.app.logger.info("Checked %d overdue tasks", len(rows))
        return created

    def check_upcoming_deadlines(self) -> int:
        now = self.clock()
        tomorrow = now.date() + timedelta(days=1)
        rows = (
            db.session.query(Task.title, Task.assigned_to, Task.project_id, Project.name)
            .join(Project, Project.id == Task.project_id)
            .filter(
                Task.status != TASK_STATUS_COMPLETED,
                Task.due_date == tomorrow,
                Task.assigned_to.isnot(None),
            )
            .all()
        )
        for title, assignee_id, project_id, project_name in rows:
            notification_service.create_notification(
                assignee_id,
                project_id,
                NOTIFICATION_DUE_SOON,
                f'Task "{title}" is due tomorrow in "{project_name}"',
                created_at=now,
            )

        self.app.logger.info("Sent %d deadline reminders", len(rows))
        return len(rows)

    def check_budget_limits(self) -> int:
        now = self.clock()
        used = func.coalesce(func.sum(Expense.amount), 0)
        rows = (
            db.session.query(Project.id, Project.name, Project.total_budget, Project.owner_id, used.label("used"))
            .outerjoin(Expense, Expense.project_id == Project.id)
            .filter(Project.total_budget > 0)
            .group_by(Project.id, Project.name, Project.total_budget, Project.owner_id)
            .having(used >= Project.total_budget * BUDGET_ALERT_RATIO)
            .all()
        )
        for project_id, name, total_budget, owner_id, used_amount in rows:
            pct = budget_service.round_percent(
                budget_service.percent_of(money(used_amount), money(total_budget))
            )
            notification_service.create_notification(
                owner_id,
                project_id,
                NOTIFICATION_BUDGET_WARNING,
                f'Budget for "{name}" is {pct}% used',
                created_at=now,
            )

        self.app.logger.info("Checked %d budget limits", len(rows))
        return len(rows)


def init_reminder_sweep(app, clock: Callable[[], datetime] = utcnow) -> ReminderSweep:
    """Attach a sweep to the app; start it only when REMINDER_SWEEP_ENABLED is set."""
    sweep = ReminderSweep(app, clock=clock)
    app.extensions["reminder_sweep"] = sweep
    if app.config.get("REMINDER_SWEEP_ENABLED"):
        sweep.start()
    return sweep
