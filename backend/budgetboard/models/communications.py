from __future__ import annotations

from ..extensions import db
from .auth import new_id
from budgetboard.time_utils import to_utc_z, utcnow


NOTIFICATION_INVITE = "invite"
NOTIFICATION_TASK_ASSIGNED = "task_assigned"
NOTIFICATION_OVERDUE = "overdue"
NOTIFICATION_DUE_SOON = "due_soon"
NOTIFICATION_BUDGET_WARNING = "budget_warning"


class Activity(db.Model):
    """
    Project audit trail.

    IMMUTABLE: Never update or delete. Append-only, read newest first.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_project_created", "project_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action = db.Column(db.String(255), nullable=False)
    details = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "action": self.action,
            "details": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }


class Notification(db.Model):
    """Per-user alert, optionally scoped to a project."""
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True
    )
    type = db.Column(db.String(100), nullable=False)  # invite, task_assigned, overdue, due_soon, budget_warning
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "type": self.type,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
