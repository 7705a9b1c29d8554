# Overview: Service-layer operations for the project activity feed.

"""
Activity Feed

log_activity() is fire-and-forget. It runs after the primary mutation has
committed, writes in its own commit, and a failure is reported to the app
logger and then dropped. It never raises and never rolls back the caller's
change.
"""

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Activity, User


ACTIVITY_FEED_LIMIT = 50


def log_activity(
    project_id: str,
    task_id: str | None,
    user_id: str | None,
    action: str,
    details: dict | None = None,
) -> Activity | None:
    try:
        activity = Activity(
            project_id=project_id,
            task_id=task_id,
            user_id=user_id,
            action=action,
            details=details or {},
        )
        db.session.add(activity)
        db.session.commit()
        return activity
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning(
            "Activity log failed for project %s: %s", project_id, action, exc_info=True
        )
        return None


def list_activities(project_id: str, limit: int = ACTIVITY_FEED_LIMIT) -> list[dict]:
    rows = (
        db.session.query(Activity, User.name, User.avatar)
        .outerjoin(User, User.id == Activity.user_id)
        .filter(Activity.project_id == project_id)
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )
    result = []
    for activity, user_name, user_avatar in rows:
        item = activity.to_dict()
        item["user_name"] = user_name
        item["user_avatar"] = user_avatar
        result.append(item)
    return result


def status_label(status: str) -> str:
    return status.replace("_", " ")
