from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Notification, Project, ProjectMember, Task, Expense
from ..errors import NotFoundError
from ..validation import money
from budgetboard.time_utils import to_iso_date, utcnow


NOTIFICATION_LIST_LIMIT = 30
DASHBOARD_DUE_WINDOW_DAYS = 3
DASHBOARD_DUE_LIMIT = 5
DASHBOARD_BUDGET_RATIO = Decimal("0.75")


def create_notification(
    user_id: str,
    project_id: str | None,
    type_: str,
    message: str,
    *,
    created_at: datetime | None = None,
    commit: bool = True,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        project_id=project_id,
        type=type_,
        message=message,
        created_at=created_at or utcnow(),
    )
    db.session.add(notification)
    if commit:
        db.session.commit()
    return notification


def list_notifications(user_id: str, limit: int = NOTIFICATION_LIST_LIMIT) -> dict:
    rows = (
        db.session.query(Notification, Project.name)
        .outerjoin(Project, Project.id == Notification.project_id)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )
    notifications = []
    for notification, project_name in rows:
        item = notification.to_dict()
        item["project_name"] = project_name
        notifications.append(item)

    # Counted over the returned page, same as the client badge
    unread_count = sum(1 for item in notifications if not item["is_read"])
    return {"notifications": notifications, "unread_count": unread_count}


def mark_all_read(user_id: str) -> int:
    updated = (
        db.session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.session.commit()
    return updated


def _get_owned(notification_id: str, user_id: str) -> Notification:
    notification = (
        db.session.query(Notification)
        .filter_by(id=notification_id, user_id=user_id)
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found.")
    return notification


def mark_read(notification_id: str, user_id: str) -> Notification:
    notification = _get_owned(notification_id, user_id)
    notification.is_read = True
    db.session.commit()
    return notification


def delete_notification(notification_id: str, user_id: str) -> None:
    notification = _get_owned(notification_id, user_id)
    db.session.delete(notification)
    db.session.commit()


def dashboard(user_id: str, today: date | None = None) -> dict:
    """
    Home screen summary for one user:
    - project_count: memberships
    - tasks_due_soon: open tasks due within the next few days (overdue included)
    - budget_warnings: projects at or above 75% of budget
    """
    today = today or utcnow().date()

    project_count = db.session.query(func.count(ProjectMember.id)).filter(
        ProjectMember.user_id == user_id
    ).scalar()

    due_rows = (
        db.session.query(Task.id, Task.title, Task.due_date, Task.status, Project.name)
        .join(Project, Project.id == Task.project_id)
        .join(
            ProjectMember,
            (ProjectMember.project_id == Project.id) & (ProjectMember.user_id == user_id),
        )
        .filter(
            Task.status != "completed",
            Task.due_date.isnot(None),
            Task.due_date <= today + timedelta(days=DASHBOARD_DUE_WINDOW_DAYS),
        )
        .order_by(Task.due_date.asc())
        .limit(DASHBOARD_DUE_LIMIT)
        .all()
    )

    used = func.coalesce(func.sum(Expense.amount), 0)
    budget_rows = (
        db.session.query(Project.id, Project.name, Project.total_budget, used.label("used"))
        .join(
            ProjectMember,
            (ProjectMember.project_id == Project.id) & (ProjectMember.user_id == user_id),
        )
        .outerjoin(Expense, Expense.project_id == Project.id)
        .filter(Project.total_budget > 0)
        .group_by(Project.id, Project.name, Project.total_budget)
        .having(used >= Project.total_budget * DASHBOARD_BUDGET_RATIO)
        .all()
    )

    return {
        "project_count": int(project_count or 0),
        "tasks_due_soon": [
            {
                "id": task_id,
                "title": title,
                "due_date": to_iso_date(due_date),
                "status": status,
                "project_name": project_name,
            }
            for task_id, title, due_date, status, project_name in due_rows
        ],
        "budget_warnings": [
            {
                "id": project_id,
                "name": name,
                "total_budget": str(money(total_budget)),
                "used": str(money(used_amount)),
            }
            for project_id, name, total_budget, used_amount in budget_rows
        ],
    }
