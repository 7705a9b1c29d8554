# Overview: Request authentication and project-role decorators for API routes.

from functools import wraps
from flask import request, g

from .errors import AuthError, AuthorizationError
from .roles import ACTION_MIN_ROLE, roles_at_least
from .services import token_service
from .services.member_service import get_membership


def _bearer_token() -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthError("Access denied. No token provided.")
    return auth_header.split(" ", 1)[1].strip()


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the authenticated User.

    Returns 401 if:
    - No Authorization header
    - Token malformed or signature invalid ("Invalid token.")
    - Token expired ("Token expired. Please login again.")
    - User referenced by the token no longer exists
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = token_service.resolve_user(_bearer_token())
        return f(*args, **kwargs)

    return decorated_function


def require_project_role(min_role: str | None = None, *, param: str = "project_id"):
    """
    Require membership in the project named by the URL parameter `param`,
    holding at least `min_role` (None: any member).

    The allowed role set and the parameter are fixed when the route is declared.
    Must be applied below @require_auth. Sets g.project_role.

    Returns 403 if:
    - Caller is not a member ("You are not a member of this project.")
    - Caller's role is below min_role ("Insufficient permissions. Required: ...")
    """
    allowed_roles = roles_at_least(min_role)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                raise AuthError()

            membership = get_membership(kwargs.get(param), g.current_user.id)
            if not membership:
                raise AuthorizationError("You are not a member of this project.")

            if allowed_roles and membership.role not in allowed_roles:
                raise AuthorizationError(
                    f"Insufficient permissions. Required: {' or '.join(allowed_roles)}"
                )

            g.project_role = membership.role
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_project_action(action: str, *, param: str = "project_id"):
    """Shorthand: look the minimum role for `action` up in the role matrix."""
    return require_project_role(ACTION_MIN_ROLE[action], param=param)
