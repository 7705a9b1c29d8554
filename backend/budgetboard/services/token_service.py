# Overview: Service-layer operations for session tokens; signs and verifies JWTs.

"""
Session Token Service

Tokens are stateless signed JWTs (HS256 by default) carrying the user id in
"sub" and an absolute expiry in "exp". Nothing is stored server-side; a token
stays valid until it expires or its user is deleted.
"""

import re
from datetime import datetime, timedelta

import jwt
from flask import current_app

from ..extensions import db
from ..models import User
from ..errors import AuthError
from budgetboard.time_utils import utcnow


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str | int) -> timedelta:
    """Parse "7d", "12h", "30m", "45s" or plain seconds into a timedelta."""
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def issue_token(user_id: str, *, now: datetime | None = None) -> str:
    now = now or utcnow()
    lifetime = parse_duration(current_app.config["JWT_EXPIRES_IN"])
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> str:
    """
    Return the user id carried by a token.

    Raises AuthError with a distinct message for expired tokens so the client
    can prompt for a fresh login instead of treating it as tampering.
    """
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired. Please login again.")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token.")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid token.")
    return user_id


def resolve_user(token: str) -> User:
    user_id = decode_token(token)
    user = db.session.get(User, user_id)
    if user is None:
        raise AuthError("Invalid token. User not found.")
    return user
