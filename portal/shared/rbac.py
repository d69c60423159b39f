from functools import wraps

from flask import jsonify, session

from ..app import db
from ..models import User


def admin_required(fn):
    """Pass the signed-in administrator to the view as ``current_user``."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        user_id = session.get("user_id")
        if not user_id:
            return jsonify({"error": "Sign in required."}), 401
        user = db.session.get(User, user_id)
        if not user or not user.is_admin:
            return jsonify({"error": "Administrator access required."}), 403
        return fn(*args, **kwargs, current_user=user)

    return wrapper
