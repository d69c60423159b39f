from __future__ import annotations

from io import BytesIO

from flask import Blueprint, jsonify, request, send_file

from ..services.issuance import (
    LookupStatus,
    issue_certificate,
    list_public_certificates,
    lookup_attendee,
)
from ..shared.errors import (
    CertificateError,
    GenerationError,
    NotFoundError,
    http_status,
)

bp = Blueprint("certificates", __name__, url_prefix="/certificates")


@bp.errorhandler(CertificateError)
def handle_certificate_error(exc: CertificateError):
    if isinstance(exc, NotFoundError):
        status = LookupStatus.NOT_FOUND
    elif isinstance(exc, GenerationError):
        status = LookupStatus.ERROR
    else:
        status = LookupStatus.IDLE
    return (
        jsonify({"status": status.value, "error": exc.message}),
        http_status(exc),
    )


def _field(payload, key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _lookup_args() -> tuple[str, str]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = request.form
    return _field(payload, "event_id"), _field(payload, "email")


@bp.get("/events")
def events():
    return jsonify({"certificates": list_public_certificates()})


@bp.post("/lookup")
def lookup():
    event_id, email = _lookup_args()
    attendee = lookup_attendee(event_id, email)
    return jsonify({"status": LookupStatus.FOUND.value, "name": attendee.name})


@bp.post("/download")
def download():
    event_id, email = _lookup_args()
    issued = issue_certificate(event_id, email)
    return send_file(
        BytesIO(issued.data),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=issued.filename,
    )
