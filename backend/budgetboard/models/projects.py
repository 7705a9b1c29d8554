from __future__ import annotations

from ..extensions import db
from .auth import new_id
from budgetboard.time_utils import to_iso_date, to_utc_z, utcnow


PROJECT_STATUS_ACTIVE = "active"

TASK_STATUS_TODO = "todo"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_COMPLETED = "completed"
TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED)

TASK_PRIORITIES = ("low", "medium", "high")


class Project(db.Model):
    """
    A budgeted workspace owned by one user.

    used_budget is never stored here; it is always SUM(expenses.amount) at read time.
    """
    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    total_budget = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    currency = db.Column(db.String(10), nullable=False, default="RWF")
    status = db.Column(db.String(50), nullable=False, default=PROJECT_STATUS_ACTIVE)
    owner_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    due_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", foreign_keys=[owner_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "total_budget": str(self.total_budget) if self.total_budget is not None else "0.00",
            "currency": self.currency,
            "status": self.status,
            "owner_id": self.owner_id,
            "due_date": to_iso_date(self.due_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProjectMember(db.Model):
    """One role per (project, user)."""
    __tablename__ = "project_members"
    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = db.Column(db.String(50), nullable=False, default="viewer")
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "role": self.role,
            "joined_at": to_utc_z(self.joined_at),
        }


class Task(db.Model):
    """Kanban card: todo -> in_progress -> completed."""
    __tablename__ = "tasks"
    __table_args__ = (
        db.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_tasks_progress_range"),
        db.Index("ix_tasks_project_status_position", "project_id", "status", "position"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(50), nullable=False, default=TASK_STATUS_TODO)
    progress = db.Column(db.Integer, nullable=False, default=0)
    assigned_to = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    due_date = db.Column(db.Date, nullable=True, index=True)
    priority = db.Column(db.String(20), nullable=False, default="medium")
    position = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "progress": self.progress,
            "assigned_to": self.assigned_to,
            "due_date": to_iso_date(self.due_date),
            "priority": self.priority,
            "position": self.position,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Expense(db.Model):
    """
    Money spent against a project's budget, optionally tied to a task.

    Amounts are NUMERIC(15, 2) and handled as Decimal throughout.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    description = db.Column(db.String(500), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    created_by = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "amount": str(self.amount),
            "description": self.description,
            "category": self.category,
            "created_by": self.created_by,
            "date": to_iso_date(self.date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Comment(db.Model):
    """Append-only discussion on a task."""
    __tablename__ = "comments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "content": self.content,
            "created_at": to_utc_z(self.created_at),
        }
