from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..services.issuance import (
    UploadedFile,
    configure_certificate,
    delete_certificate_configuration,
    list_certificate_configurations,
    list_eligible_events,
)
from ..shared.errors import CertificateError, http_status
from ..shared.rbac import admin_required

bp = Blueprint(
    "settings_certificates", __name__, url_prefix="/settings/certificates"
)


@bp.errorhandler(CertificateError)
def handle_certificate_error(exc: CertificateError):
    current_app.logger.info(
        "[CERT-ADMIN] rejected kind=%s error=%s", exc.kind, type(exc).__name__
    )
    return jsonify({"error": exc.message}), http_status(exc)


@bp.get("/")
@admin_required
def list_configurations(current_user):
    configs = list_certificate_configurations()
    events = list_eligible_events()
    return jsonify(
        {
            "certificates": [c.summary() for c in configs],
            "available_events": [
                {
                    "id": e.id,
                    "title": e.title,
                    "date": e.date.isoformat() if e.date else None,
                }
                for e in events
            ],
        }
    )


@bp.post("/")
@admin_required
def create_configuration(current_user):
    config = configure_certificate(
        request.form.get("event_id"),
        UploadedFile.from_storage(request.files.get("roster")),
        UploadedFile.from_storage(request.files.get("template")),
        principal=current_user,
    )
    return jsonify(config.summary()), 201


@bp.post("/<config_id>/delete")
@admin_required
def delete_configuration(config_id: str, current_user):
    delete_certificate_configuration(config_id, principal=current_user)
    return jsonify({"ok": True})
