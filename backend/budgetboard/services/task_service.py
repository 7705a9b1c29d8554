from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import aliased

from ..extensions import db
from ..models import Comment, Expense, Task, User
from ..models.projects import TASK_PRIORITIES, TASK_STATUSES, TASK_STATUS_TODO
from ..models.communications import NOTIFICATION_TASK_ASSIGNED
from ..errors import NotFoundError, ValidationError
from ..validation import clean_text, money, parse_choice, parse_date, parse_int, parse_progress
from . import activity_service, notification_service


def get_task(project_id: str, task_id: str) -> Task:
    task = db.session.query(Task).filter_by(id=task_id, project_id=project_id).first()
    if not task:
        raise NotFoundError("Task not found.")
    return task


def list_tasks(project_id: str) -> list[dict]:
    assignee = aliased(User)
    creator = aliased(User)
    cost_used = (
        select(func.coalesce(func.sum(Expense.amount), 0))
        .where(Expense.task_id == Task.id)
        .scalar_subquery()
    )
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.task_id == Task.id)
        .scalar_subquery()
    )
    rows = (
        db.session.query(
            Task,
            assignee.name,
            assignee.avatar,
            creator.name,
            cost_used.label("cost_used"),
            comment_count.label("comment_count"),
        )
        .outerjoin(assignee, assignee.id == Task.assigned_to)
        .outerjoin(creator, creator.id == Task.created_by)
        .filter(Task.project_id == project_id)
        .order_by(Task.status, Task.position, Task.created_at)
        .all()
    )
    result = []
    for task, assigned_name, assigned_avatar, created_by_name, cost, comments in rows:
        item = task.to_dict()
        item.update({
            "assigned_to_name": assigned_name,
            "assigned_to_avatar": assigned_avatar,
            "created_by_name": created_by_name,
            "cost_used": str(money(cost)),
            "comment_count": int(comments or 0),
        })
        result.append(item)
    return result


def create_task(project_id: str, creator: User, data: dict) -> Task:
    title = clean_text(data.get("title"))
    if not title:
        raise ValidationError("Task title is required.")

    status = data.get("status")
    if status not in TASK_STATUSES:
        status = TASK_STATUS_TODO

    priority = data.get("priority") or "medium"
    parse_choice(priority, TASK_PRIORITIES, "priority")

    position = data.get("position")
    progress = data.get("progress")
    assigned_to = data.get("assigned_to") or None

    task = Task(
        project_id=project_id,
        title=title,
        description=clean_text(data.get("description")),
        status=status,
        progress=parse_progress(progress) if progress is not None else 0,
        assigned_to=assigned_to,
        due_date=parse_date(data.get("due_date"), "due_date"),
        priority=priority,
        position=parse_int(position, "position") if position is not None else 0,
        created_by=creator.id,
    )
    db.session.add(task)
    db.session.commit()

    if assigned_to and assigned_to != creator.id:
        notification_service.create_notification(
            assigned_to,
            project_id,
            NOTIFICATION_TASK_ASSIGNED,
            f'{creator.name} assigned you a task: "{title}"',
        )

    activity_service.log_activity(project_id, task.id, creator.id, f'Created task "{title}"')
    return task


def update_task(project_id: str, task_id: str, actor: User, data: dict) -> Task:
    """
    Partial update (missing or null fields are kept).

    Writes at most one activity line: a status change wins over a progress change.
    """
    task = get_task(project_id, task_id)
    old_status = task.status
    old_progress = task.progress

    if data.get("title") is not None:
        title = clean_text(data["title"])
        if not title:
            raise ValidationError("Task title cannot be empty.")
        task.title = title
    if data.get("description") is not None:
        task.description = clean_text(data["description"])
    if data.get("status") is not None:
        task.status = parse_choice(data["status"], TASK_STATUSES, "status")
    if data.get("progress") is not None:
        task.progress = parse_progress(data["progress"])
    if data.get("assigned_to") is not None:
        task.assigned_to = data["assigned_to"]
    if data.get("due_date") is not None:
        task.due_date = parse_date(data["due_date"], "due_date")
    if data.get("priority") is not None:
        task.priority = parse_choice(data["priority"], TASK_PRIORITIES, "priority")
    if data.get("position") is not None:
        task.position = parse_int(data["position"], "position")

    db.session.commit()

    if task.status != old_status:
        activity_service.log_activity(
            project_id, task.id, actor.id,
            f'Moved "{task.title}" to {activity_service.status_label(task.status)}',
        )
    elif task.progress != old_progress:
        activity_service.log_activity(
            project_id, task.id, actor.id,
            f'Updated progress of "{task.title}" to {task.progress}%',
        )
    return task


def delete_task(project_id: str, task_id: str, actor: User) -> None:
    task = get_task(project_id, task_id)
    title = task.title
    db.session.delete(task)
    db.session.commit()

    activity_service.log_activity(project_id, None, actor.id, f'Deleted task "{title}"')


def list_comments(project_id: str, task_id: str) -> list[dict]:
    get_task(project_id, task_id)
    rows = (
        db.session.query(Comment, User.name, User.avatar)
        .join(User, User.id == Comment.user_id)
        .filter(Comment.task_id == task_id)
        .order_by(Comment.created_at.asc())
        .all()
    )
    result = []
    for comment, user_name, user_avatar in rows:
        item = comment.to_dict()
        item["user_name"] = user_name
        item["user_avatar"] = user_avatar
        result.append(item)
    return result


def add_comment(project_id: str, task_id: str, author: User, content: str | None) -> dict:
    content = clean_text(content)
    if not content:
        raise ValidationError("Comment content is required.")

    task = get_task(project_id, task_id)
    comment = Comment(task_id=task.id, user_id=author.id, content=content)
    db.session.add(comment)
    db.session.commit()

    activity_service.log_activity(project_id, task.id, author.id, f'Commented on "{task.title}"')

    item = comment.to_dict()
    item["user_name"] = author.name
    item["user_avatar"] = author.avatar
    return item
