from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Task, User
from ..errors import NotFoundError, ValidationError
from ..validation import clean_text, money, parse_amount, parse_date
from . import activity_service, budget_service
from budgetboard.time_utils import utcnow


DEFAULT_CATEGORY = "General"


def _get_expense(project_id: str, expense_id: str) -> Expense:
    expense = db.session.query(Expense).filter_by(id=expense_id, project_id=project_id).first()
    if not expense:
        raise NotFoundError("Expense not found.")
    return expense


def _check_task(project_id: str, task_id: str | None) -> None:
    if not task_id:
        return
    exists = db.session.query(Task.id).filter_by(id=task_id, project_id=project_id).first()
    if not exists:
        raise ValidationError("Task does not belong to this project.")


def _expense_rows(*criteria):
    return (
        db.session.query(Expense, User.name, User.avatar, Task.title)
        .join(User, User.id == Expense.created_by)
        .outerjoin(Task, Task.id == Expense.task_id)
        .filter(*criteria)
        .order_by(Expense.date.desc(), Expense.created_at.desc())
        .all()
    )


def _with_names(rows) -> list[dict]:
    result = []
    for expense, created_by_name, created_by_avatar, task_title in rows:
        item = expense.to_dict()
        item.update({
            "created_by_name": created_by_name,
            "created_by_avatar": created_by_avatar,
            "task_title": task_title,
        })
        result.append(item)
    return result


def list_expenses(project_id: str) -> dict:
    return {
        "expenses": _with_names(_expense_rows(Expense.project_id == project_id)),
        "summary": budget_service.budget_summary(project_id),
    }


def list_task_expenses(project_id: str, task_id: str) -> list[dict]:
    return _with_names(_expense_rows(Expense.project_id == project_id, Expense.task_id == task_id))


def create_expense(project_id: str, actor: User, data: dict) -> dict:
    """
    Record an expense, then run the budget-threshold check.

    The insert, the budget check and the warnings are separate round trips:
    the expense stays recorded even if the check never runs.
    """
    amount = data.get("amount")
    description = clean_text(data.get("description"))
    if amount in (None, "") or not description:
        raise ValidationError("Amount and description are required.")
    amount = parse_amount(amount)

    task_id = data.get("task_id") or None
    _check_task(project_id, task_id)

    expense = Expense(
        project_id=project_id,
        task_id=task_id,
        amount=amount,
        description=description,
        category=clean_text(data.get("category")) or DEFAULT_CATEGORY,
        created_by=actor.id,
        date=parse_date(data.get("date"), "date") or utcnow().date(),
    )
    db.session.add(expense)
    db.session.commit()

    budget_service.check_budget_threshold(project_id)

    activity_service.log_activity(
        project_id, task_id, actor.id, f"Added expense: {description} ({amount})"
    )

    item = expense.to_dict()
    item["created_by_name"] = actor.name
    return item


def update_expense(project_id: str, expense_id: str, actor: User, data: dict) -> Expense:
    """Partial update: fields that are missing or null keep their stored value."""
    expense = _get_expense(project_id, expense_id)

    if data.get("amount") is not None:
        expense.amount = parse_amount(data["amount"])
    if data.get("description") is not None:
        description = clean_text(data["description"])
        if not description:
            raise ValidationError("Description cannot be empty.")
        expense.description = description
    if data.get("category") is not None:
        expense.category = clean_text(data["category"])
    if data.get("task_id") is not None:
        _check_task(project_id, data["task_id"])
        expense.task_id = data["task_id"]
    # a blank date keeps the stored one
    expense_date = parse_date(data.get("date"), "date")
    if expense_date is not None:
        expense.date = expense_date

    db.session.commit()

    activity_service.log_activity(
        project_id, expense.task_id, actor.id, f"Updated expense: {expense.description}"
    )
    return expense


def delete_expense(project_id: str, expense_id: str, actor: User) -> None:
    expense = _get_expense(project_id, expense_id)
    description = expense.description
    db.session.delete(expense)
    db.session.commit()

    activity_service.log_activity(project_id, None, actor.id, f"Deleted expense: {description}")


def category_summary(project_id: str) -> list[dict]:
    total = func.sum(Expense.amount)
    rows = (
        db.session.query(Expense.category, total.label("total"), func.count(Expense.id).label("count"))
        .filter(Expense.project_id == project_id)
        .group_by(Expense.category)
        .order_by(total.desc())
        .all()
    )
    return [
        {"category": category, "total": str(money(amount)), "count": int(count)}
        for category, amount, count in rows
    ]
