"""Certificate configuration (admin) and issuance (public lookup) workflows."""

from __future__ import annotations

import enum
from typing import NamedTuple

from flask import current_app

from ..app import db
from ..constants import (
    CERTIFIABLE_EVENT_STATUS,
    DEFAULT_TEMPLATE_MAX_BYTES,
    TEMPLATE_MEDIA_TYPES,
)
from ..models import CertificateConfiguration, Event, User
from ..shared.certificates import (
    certificate_filename,
    decode_template,
    encode_template,
    find_attendee,
    name_font,
    normalize_email,
    render_certificate_pdf,
)
from ..shared.errors import (
    AttendeeNotFoundError,
    CertificateNotConfiguredError,
    DuplicateConfigurationError,
    EmailRequiredError,
    EventNotSelectedError,
    GenerationError,
    IneligibleEventError,
    MissingEventError,
    MissingRosterError,
    MissingTemplateError,
    NotAuthorizedError,
    TemplateTooLargeError,
    UnsupportedImageFormatError,
)
from ..shared.rosters import Attendee, parse_roster
from .certificate_store import CertificateStore


class UploadedFile(NamedTuple):
    filename: str
    content_type: str
    data: bytes

    @classmethod
    def from_storage(cls, storage) -> "UploadedFile | None":
        """Wrap a werkzeug ``FileStorage``; ``None`` when nothing was sent."""
        if storage is None or not getattr(storage, "filename", ""):
            return None
        return cls(
            filename=storage.filename,
            content_type=(storage.mimetype or "").lower(),
            data=storage.read(),
        )


class IssuedCertificate(NamedTuple):
    filename: str
    data: bytes


class LookupStatus(str, enum.Enum):
    IDLE = "idle"
    FOUND = "found"
    NOT_FOUND = "not-found"
    ERROR = "error"


def _store() -> CertificateStore:
    return CertificateStore(db.session)


def _require_admin(principal: User | None) -> User:
    if principal is None or not principal.is_admin:
        raise NotAuthorizedError()
    return principal


def _validate_template(template_file: UploadedFile) -> None:
    if template_file.content_type not in TEMPLATE_MEDIA_TYPES:
        raise UnsupportedImageFormatError()
    limit = current_app.config.get("CERT_TEMPLATE_MAX_BYTES", DEFAULT_TEMPLATE_MAX_BYTES)
    if len(template_file.data) > limit:
        raise TemplateTooLargeError(
            f"The certificate template is too large (max {limit // 1024} KB)."
        )


def list_certificate_configurations() -> list[CertificateConfiguration]:
    return _store().list()


def list_public_certificates() -> list[dict]:
    return [
        {"event_id": c.event_id, "event_title": c.event_title}
        for c in _store().list()
    ]


def list_eligible_events() -> list[Event]:
    """Completed events that have no certificate configuration yet."""
    configured = {c.event_id for c in _store().list()}
    events = (
        Event.query.filter(Event.status == CERTIFIABLE_EVENT_STATUS)
        .order_by(Event.date.desc(), Event.title)
        .all()
    )
    return [e for e in events if e.id not in configured]


def configure_certificate(
    event_id: str | None,
    roster_file: UploadedFile | None,
    template_file: UploadedFile | None,
    *,
    principal: User | None,
) -> CertificateConfiguration:
    admin = _require_admin(principal)
    event_id = (event_id or "").strip()
    if not event_id:
        raise MissingEventError()
    event = db.session.get(Event, event_id)
    if not event:
        raise MissingEventError("The selected event does not exist.")
    if event.status != CERTIFIABLE_EVENT_STATUS:
        raise IneligibleEventError()
    if roster_file is None or not roster_file.data:
        raise MissingRosterError()
    if template_file is None or not template_file.data:
        raise MissingTemplateError()
    _validate_template(template_file)

    attendees: list[Attendee] = parse_roster(roster_file.data, roster_file.filename)

    store = _store()
    if store.get_by_event(event_id):
        raise DuplicateConfigurationError()
    config = store.create(
        event_id=event_id,
        event_title=event.title,
        template_base64=encode_template(template_file.data),
        attendees=attendees,
    )
    current_app.logger.info(
        "[CERT-CONFIG] event=%s attendees=%s template_bytes=%s by=%s",
        event_id,
        len(attendees),
        len(template_file.data),
        admin.email,
    )
    return config


def delete_certificate_configuration(config_id: str, *, principal: User | None) -> None:
    admin = _require_admin(principal)
    _store().delete(config_id)
    current_app.logger.info("[CERT-DELETE] id=%s by=%s", config_id, admin.email)


def _find_configuration(event_id: str) -> CertificateConfiguration:
    config = _store().get_by_event(event_id)
    if not config:
        raise CertificateNotConfiguredError()
    return config


def _lookup(
    event_id: str | None, email: str | None
) -> tuple[CertificateConfiguration, Attendee]:
    event_id = str(event_id or "").strip()
    if not event_id:
        raise EventNotSelectedError()
    if not normalize_email(email):
        raise EmailRequiredError()
    config = _find_configuration(event_id)
    attendee = find_attendee(config, email)
    if attendee is None:
        current_app.logger.info(
            "[CERT-LOOKUP] event=%s result=not-found", event_id
        )
        raise AttendeeNotFoundError()
    return config, attendee


def lookup_attendee(event_id: str | None, email: str | None) -> Attendee:
    """Search step of the public flow; raises on every non-match."""
    _, attendee = _lookup(event_id, email)
    return attendee


def issue_certificate(event_id: str | None, email: str | None) -> IssuedCertificate:
    config, attendee = _lookup(event_id, email)
    try:
        template = decode_template(config.template_base64)
        font = name_font(current_app.config.get("CERT_NAME_FONT_PATH"))
        data = render_certificate_pdf(template, attendee.name, font)
    except Exception as exc:
        current_app.logger.exception(
            "[CERT-FAIL] event=%s config=%s", config.event_id, config.id
        )
        raise GenerationError() from exc
    current_app.logger.info(
        "[CERT-ISSUE] event=%s bytes=%s", config.event_id, len(data)
    )
    return IssuedCertificate(filename=certificate_filename(attendee.name), data=data)
