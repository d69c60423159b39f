import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .models import User  # noqa: E402
from .constants import DEFAULT_TEMPLATE_MAX_BYTES  # noqa: E402


def create_app():
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["PREFERRED_URL_SCHEME"] = "https"

    DB_USER = os.getenv("DB_USER", "portal")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "portal")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["MAX_CONTENT_LENGTH"] = int(
        os.getenv("MAX_CONTENT_LENGTH", 25 * 1024 * 1024)
    )
    app.config["CERT_TEMPLATE_MAX_BYTES"] = int(
        os.getenv("CERT_TEMPLATE_MAX_BYTES", DEFAULT_TEMPLATE_MAX_BYTES)
    )
    app.config["CERT_NAME_FONT_PATH"] = os.getenv("CERT_NAME_FONT_PATH") or None
    app.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    db.init_app(app)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    from .routes.auth import bp as auth_bp
    from .routes.certificates import bp as certificates_bp
    from .routes.settings_certificates import bp as settings_certificates_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(certificates_bp)
    app.register_blueprint(settings_certificates_bp)

    with app.app_context():
        if not os.getenv("FLASK_SKIP_SEED"):
            seed_initial_admin_safely()

    return app


def seed_initial_admin_safely() -> None:
    """Seed an administrator if the users table is empty and credentials are set."""

    try:
        if db.engine.url.drivername.startswith("sqlite"):
            return
        from sqlalchemy import inspect

        if "users" not in inspect(db.engine).get_table_names():
            logging.info("admin seed skipped (users table missing)")
            return
        if db.session.query(User).count() > 0:
            return

        email = (os.getenv("FIRST_ADMIN_EMAIL") or "").strip().lower()
        password = os.getenv("FIRST_ADMIN_PASSWORD") or ""
        if not email or not password:
            logging.info("admin seed skipped (FIRST_ADMIN_EMAIL/PASSWORD unset)")
            return
        admin = User(email=email, full_name=email, is_admin=True)
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        logging.info("Seeded admin %s.", email)
    except Exception:
        db.session.rollback()
        logging.exception("seed_initial_admin_safely failed")
