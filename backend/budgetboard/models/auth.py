from __future__ import annotations

import uuid

from ..extensions import db
from budgetboard.time_utils import to_utc_z, utcnow


def new_id() -> str:
    """Opaque identifier for every row (UUID4 text)."""
    return str(uuid.uuid4())


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Email is unique and stored case-folded. The password is only ever stored
    as a bcrypt hash and never leaves the model through to_dict().
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # Display initials derived from the name ("Alice Uwimana" -> "AU")
    avatar = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
