from __future__ import annotations

import uuid

from sqlalchemy.orm import validates

from .app import db
from .shared.passwords import hash_password, check_password


def _new_id() -> str:
    return uuid.uuid4().hex


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255))
    full_name = db.Column(db.String(255))
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.Index("ix_users_email_lower", db.func.lower(email), unique=True),
    )

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return value.lower()

    def set_password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    def check_password(self, plain: str) -> bool:
        if not self.password_hash:
            return False
        return check_password(plain, self.password_hash)


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.String(64), primary_key=True, default=_new_id)
    title = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="upcoming")
    date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )


class CertificateConfiguration(db.Model):
    __tablename__ = "certificate_configurations"

    id = db.Column(db.String(64), primary_key=True, default=_new_id)
    # No FK to events: deleting a configuration never cascades.
    event_id = db.Column(db.String(64), nullable=False)
    event_title = db.Column(db.String(255), nullable=False, default="")
    template_base64 = db.Column(db.Text, nullable=False)
    attendees = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )
    __table_args__ = (
        db.UniqueConstraint("event_id", name="uix_certificate_configuration_event"),
    )

    def summary(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "event_title": self.event_title,
            "attendee_count": len(self.attendees or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
