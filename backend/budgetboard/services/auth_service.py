# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Registration, login and profile updates. Passwords are hashed with bcrypt
(cost factor from BCRYPT_ROUNDS) and never stored or returned in plaintext.

SECURITY NOTES:
- Minimum 6 characters
- Login failures are reported identically whether the email is unknown or the
  password is wrong, so the endpoint cannot be used to enumerate accounts
- Email comparison is case-insensitive (stored lower-cased)
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..errors import AuthError, ConflictError, ValidationError
from . import token_service


MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password."


def _require_strings(message: str, *values) -> None:
    # JSON bodies can carry numbers, lists or objects where text is expected
    if any(value is not None and not isinstance(value, str) for value in values):
        raise ValidationError(message)


def normalize_email(email: str) -> str:
    _require_strings("Email must be a string.", email)
    return email.strip().lower()


def derive_initials(name: str) -> str:
    """First letter of up to two words, upper-cased: "alice uwimana" -> "AU"."""
    words = name.split()
    return "".join(word[0] for word in words[:2]).upper()


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str) -> User:
    """
    Create a user with a hashed password and derived initials.

    Raises:
        ValidationError: missing field or short password
        ConflictError: email already registered (case-insensitive)
    """
    _require_strings("Name, email and password must be strings.", name, email, password)
    name = (name or "").strip()
    email = normalize_email(email or "")
    if not name or not email or not password:
        raise ValidationError("Name, email and password are required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    existing = db.session.query(User.id).filter_by(email=email).first()
    if existing:
        raise ConflictError("An account with this email already exists.")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        avatar=derive_initials(name),
    )
    db.session.add(user)
    # A concurrent registration loses on the unique index and surfaces as 409
    db.session.commit()
    return user


def register(name: str, email: str, password: str) -> tuple[User, str]:
    user = create_user(name, email, password)
    return user, token_service.issue_token(user.id)


def authenticate(email: str, password: str) -> User:
    _require_strings("Email and password must be strings.", email, password)
    if not email or not password:
        raise ValidationError("Email and password are required.")

    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthError(INVALID_CREDENTIALS)
    return user


def login(email: str, password: str) -> tuple[User, str]:
    user = authenticate(email, password)
    return user, token_service.issue_token(user.id)


def update_profile(user: User, *, name: str | None = None) -> User:
    """
    Partial update. Omitted fields are left unchanged; initials follow the name.
    """
    if name is not None:
        _require_strings("Name must be a string.", name)
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty.")
        user.name = name
        user.avatar = derive_initials(name)

    db.session.commit()
    return user
