# Overview: Budget aggregation and the synchronous budget-threshold warning.

"""
Budget Aggregation

used_budget is always a live SUM over the project's expenses; nothing is
cached on the project row. All arithmetic is Decimal.

Threshold warning (runs after an expense insert has committed):
- pct = used / total_budget * 100, or 0 when total_budget is 0
- 80 <= pct < 100 -> one budget_warning per owner/admin member
- No deduplication: every expense that leaves the project inside the band
  warns again, and two concurrent inserts may both warn. At most one attempt
  is made per expense; a crash after the expense commit leaves it unsent.
"""

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, Project, ProjectMember
from ..models.communications import NOTIFICATION_BUDGET_WARNING
from ..errors import NotFoundError
from ..roles import BUDGET_ALERT_ROLES
from ..validation import money
from . import notification_service


WARNING_THRESHOLD_PCT = Decimal("80")
OVERRUN_PCT = Decimal("100")
HUNDRED = Decimal("100")


def used_budget(project_id: str) -> Decimal:
    total = (
        db.session.query(func.coalesce(func.sum(Expense.amount), 0))
        .filter(Expense.project_id == project_id)
        .scalar()
    )
    return money(total)


def percent_of(used: Decimal, total: Decimal) -> Decimal:
    """Exact percentage; 0 when there is no budget to divide by."""
    if total <= 0:
        return Decimal("0")
    return used / total * HUNDRED


def round_percent(pct: Decimal) -> int:
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def budget_summary(project_id: str) -> dict:
    project = db.session.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found.")

    total = money(project.total_budget)
    used = used_budget(project_id)
    return {
        "total_budget": str(total),
        "used_budget": str(used),
        "remaining": str(total - used),
        "percent_used": round_percent(percent_of(used, total)),
    }


def check_budget_threshold(project_id: str) -> int:
    """
    Point-in-time check after an expense insert. Returns warnings created.
    """
    project = db.session.get(Project, project_id)
    if not project:
        return 0

    pct = percent_of(used_budget(project_id), money(project.total_budget))
    if not (WARNING_THRESHOLD_PCT <= pct < OVERRUN_PCT):
        return 0

    recipients = (
        db.session.query(ProjectMember.user_id)
        .filter(
            ProjectMember.project_id == project_id,
            ProjectMember.role.in_(BUDGET_ALERT_ROLES),
        )
        .all()
    )
    message = f"Budget is {round_percent(pct)}% used"
    for (user_id,) in recipients:
        notification_service.create_notification(
            user_id, project_id, NOTIFICATION_BUDGET_WARNING, message, commit=False
        )
    db.session.commit()
    return len(recipients)
