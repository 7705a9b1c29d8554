from __future__ import annotations

from flask import current_app
from sqlalchemy import and_, func, select

from ..extensions import db
from ..models import Project, ProjectMember, Task, Expense, User
from ..models.projects import TASK_STATUS_COMPLETED
from ..errors import NotFoundError, ValidationError
from ..roles import OWNER
from ..validation import clean_text, money, parse_budget, parse_date
from . import activity_service


def _aggregate_columns():
    task_count = (
        select(func.count(Task.id))
        .where(Task.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )
    completed_tasks = (
        select(func.count(Task.id))
        .where(Task.project_id == Project.id, Task.status == TASK_STATUS_COMPLETED)
        .correlate(Project)
        .scalar_subquery()
    )
    used = (
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )
    member_count = (
        select(func.count(ProjectMember.id))
        .where(ProjectMember.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )
    return (
        task_count.label("task_count"),
        completed_tasks.label("completed_tasks"),
        used.label("used_budget"),
        member_count.label("member_count"),
    )


def _project_query(user_id: str):
    """Projects visible to user_id, joined with the caller's role and the owner."""
    return (
        db.session.query(
            Project,
            ProjectMember.role,
            User.name,
            User.email,
            *_aggregate_columns(),
        )
        .join(
            ProjectMember,
            and_(ProjectMember.project_id == Project.id, ProjectMember.user_id == user_id),
        )
        .join(User, User.id == Project.owner_id)
    )


def _row_to_dict(row, *, include_owner_email: bool) -> dict:
    project, role, owner_name, owner_email, task_count, completed, used, member_count = row
    item = project.to_dict()
    item.update({
        "user_role": role,
        "owner_name": owner_name,
        "task_count": int(task_count or 0),
        "completed_tasks": int(completed or 0),
        "used_budget": str(money(used)),
        "member_count": int(member_count or 0),
    })
    if include_owner_email:
        item["owner_email"] = owner_email
    return item


def list_projects(user_id: str) -> list[dict]:
    rows = _project_query(user_id).order_by(Project.created_at.desc()).all()
    return [_row_to_dict(row, include_owner_email=False) for row in rows]


def get_project(project_id: str, user_id: str) -> dict:
    row = _project_query(user_id).filter(Project.id == project_id).first()
    if not row:
        raise NotFoundError("Project not found.")
    return _row_to_dict(row, include_owner_email=True)


def create_project(owner: User, data: dict) -> Project:
    """
    Create a project and its owner membership in one transaction, so a
    project never exists without its owner's 'owner' row.
    """
    name = clean_text(data.get("name"))
    if not name:
        raise ValidationError("Project name is required.")

    total_budget = data.get("total_budget")
    project = Project(
        name=name,
        description=clean_text(data.get("description")),
        total_budget=parse_budget(total_budget) if total_budget not in (None, "") else money(0),
        currency=clean_text(data.get("currency")) or current_app.config["DEFAULT_CURRENCY"],
        owner_id=owner.id,
        due_date=parse_date(data.get("due_date"), "due_date"),
    )
    db.session.add(project)
    db.session.flush()

    db.session.add(ProjectMember(project_id=project.id, user_id=owner.id, role=OWNER))
    db.session.commit()

    activity_service.log_activity(project.id, None, owner.id, f'Created project "{name}"')
    return project


def update_project(project_id: str, actor: User, data: dict) -> Project:
    """Partial update: fields that are missing or null keep their stored value."""
    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found.")

    if data.get("name") is not None:
        name = clean_text(data["name"])
        if not name:
            raise ValidationError("Project name cannot be empty.")
        project.name = name
    if data.get("description") is not None:
        project.description = clean_text(data["description"])
    if data.get("total_budget") is not None:
        project.total_budget = parse_budget(data["total_budget"])
    if data.get("currency") is not None:
        project.currency = clean_text(data["currency"])
    if data.get("due_date") is not None:
        project.due_date = parse_date(data["due_date"], "due_date")
    if data.get("status") is not None:
        project.status = clean_text(data["status"])

    db.session.commit()

    activity_service.log_activity(project.id, None, actor.id, "Updated project settings")
    return project


def delete_project(project_id: str) -> None:
    """
    Delete the project row; members, tasks, expenses, activities and
    notifications go with it through ON DELETE CASCADE.
    """
    deleted = db.session.query(Project).filter(Project.id == project_id).delete(
        synchronize_session=False
    )
    if not deleted:
        raise NotFoundError("Project not found.")
    db.session.commit()
