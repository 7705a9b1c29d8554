# Overview: Project role hierarchy and the minimum role required per action.

"""
Project roles, highest first:

    owner > admin > editor > viewer

Each role is a superset of the one below it for write actions. A route declares
the minimum role it needs; the allowed set is every role ranked at or above it.
Viewers never mutate.
"""

OWNER = "owner"
ADMIN = "admin"
EDITOR = "editor"
VIEWER = "viewer"

# Highest first. The order is also the order used in "Required: ..." messages.
ROLE_HIERARCHY = (OWNER, ADMIN, EDITOR, VIEWER)

ROLE_RANK = {role: len(ROLE_HIERARCHY) - index for index, role in enumerate(ROLE_HIERARCHY)}

# Roles that can be granted through invite / role change. Ownership is fixed at creation.
ASSIGNABLE_ROLES = (ADMIN, EDITOR, VIEWER)

# Members notified when a project's budget crosses the warning threshold
BUDGET_ALERT_ROLES = (OWNER, ADMIN)

# Minimum role per action. None means any member (read-only access).
ACTION_MIN_ROLE = {
    "view_project": None,
    "view_tasks": None,
    "view_expenses": None,
    "view_members": None,
    "view_activity": None,
    "comment_task": None,
    "create_task": EDITOR,
    "update_task": EDITOR,
    "create_expense": EDITOR,
    "update_expense": EDITOR,
    "delete_task": ADMIN,
    "delete_expense": ADMIN,
    "invite_member": ADMIN,
    "change_member_role": ADMIN,
    "remove_member": ADMIN,
    "update_project": ADMIN,
    "delete_project": OWNER,
}


def roles_at_least(min_role: str | None) -> tuple[str, ...]:
    """
    Expand a minimum role into the allowed role set.

    Returns an empty tuple for None, which the decorator reads as "any member".
    """
    if min_role is None:
        return ()
    if min_role not in ROLE_RANK:
        raise ValueError(f"Unknown role: {min_role}")
    threshold = ROLE_RANK[min_role]
    return tuple(role for role in ROLE_HIERARCHY if ROLE_RANK[role] >= threshold)


def is_valid_role(role: str | None) -> bool:
    return role in ROLE_RANK
