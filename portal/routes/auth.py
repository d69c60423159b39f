from __future__ import annotations

from flask import (
    Blueprint,
    current_app,
    jsonify,
    request,
    session as flask_session,
)

from ..app import db
from ..models import User

bp = Blueprint("auth", __name__)


def _credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or request.form
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    return email, password


@bp.post("/login", endpoint="login")
def login():
    email, password = _credentials()
    user = (
        User.query.filter(db.func.lower(User.email) == email).first()
        if email
        else None
    )
    if not user or not user.check_password(password):
        current_app.logger.info(f"[AUTH-FAIL] email={email or '<blank>'}")
        return jsonify({"error": "Invalid email or password."}), 401
    flask_session.pop("user_id", None)
    flask_session["user_id"] = user.id
    return jsonify({"ok": True, "email": user.email, "is_admin": bool(user.is_admin)})


@bp.post("/logout", endpoint="logout")
def logout():
    flask_session.pop("user_id", None)
    return jsonify({"ok": True})
