from __future__ import annotations

from ..extensions import db
from ..models import Project, ProjectMember, User
from ..models.communications import NOTIFICATION_INVITE
from ..errors import NotFoundError, ValidationError
from ..roles import ASSIGNABLE_ROLES, OWNER, VIEWER
from .auth_service import normalize_email
from . import activity_service, notification_service
from budgetboard.time_utils import to_utc_z


def get_membership(project_id: str, user_id: str) -> ProjectMember | None:
    return (
        db.session.query(ProjectMember)
        .filter_by(project_id=project_id, user_id=user_id)
        .first()
    )


def list_members(project_id: str) -> list[dict]:
    rows = (
        db.session.query(User, ProjectMember.role, ProjectMember.joined_at)
        .join(ProjectMember, ProjectMember.user_id == User.id)
        .filter(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.joined_at.asc())
        .all()
    )
    return [
        {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "avatar": user.avatar,
            "role": role,
            "joined_at": to_utc_z(joined_at),
        }
        for user, role, joined_at in rows
    ]


def _guard_owner(project_id: str, user_id: str) -> None:
    project = db.session.get(Project, project_id)
    if project and project.owner_id == user_id:
        raise ValidationError("The project owner's membership cannot be changed.")


def invite_member(project_id: str, inviter: User, email: str | None, role: str | None) -> dict:
    """
    Add (or re-role) a registered user by email.

    An unknown or missing role falls back to viewer. Inviting an existing member
    updates their role in place (one row per project+user).
    """
    if not email:
        raise ValidationError("Email is required.")

    member_role = role if role in ASSIGNABLE_ROLES else VIEWER

    invited = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not invited:
        raise NotFoundError("No user found with this email address.")

    _guard_owner(project_id, invited.id)

    membership = get_membership(project_id, invited.id)
    if membership:
        membership.role = member_role
    else:
        db.session.add(ProjectMember(project_id=project_id, user_id=invited.id, role=member_role))
    db.session.commit()

    notification_service.create_notification(
        invited.id,
        project_id,
        NOTIFICATION_INVITE,
        f"{inviter.name} invited you to join a project",
    )

    activity_service.log_activity(
        project_id, None, inviter.id, f"Invited {invited.name} as {member_role}"
    )
    return {
        "id": invited.id,
        "name": invited.name,
        "email": invited.email,
        "avatar": invited.avatar,
        "role": member_role,
    }


def update_member_role(project_id: str, user_id: str, role: str | None, actor: User) -> ProjectMember:
    if role not in ASSIGNABLE_ROLES:
        raise ValidationError("Invalid role.")

    _guard_owner(project_id, user_id)

    membership = get_membership(project_id, user_id)
    if not membership:
        raise NotFoundError("Member not found.")

    membership.role = role
    db.session.commit()

    activity_service.log_activity(project_id, None, actor.id, f"Updated member role to {role}")
    return membership


def remove_member(project_id: str, user_id: str, actor: User) -> None:
    membership = get_membership(project_id, user_id)
    if not membership:
        raise NotFoundError("Member not found.")
    if membership.role == OWNER:
        raise ValidationError("The project owner's membership cannot be changed.")

    db.session.delete(membership)
    db.session.commit()

    activity_service.log_activity(project_id, None, actor.id, "Removed a member from project")
