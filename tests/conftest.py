import os
import pathlib
import sys
from io import BytesIO

import pytest
from openpyxl import Workbook
from PIL import Image

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from portal.app import create_app, db
from portal.models import Event, User


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "slow" in item.keywords or "quarantine" in item.keywords:
            continue
        item.add_marker("full")
        if "no_smoke" in item.keywords:
            continue
        item.add_marker("smoke")


@pytest.fixture
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    os.environ["FLASK_SKIP_SEED"] = "1"
    application = create_app()
    application.config["TESTING"] = True
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    user = User(email="admin@example.com", full_name="Admin", is_admin=True)
    user.set_password("pw-admin-123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def completed_event(app):
    event = Event(id="evt1", title="DevFest 2025", status="completed")
    db.session.add(event)
    db.session.commit()
    return event


@pytest.fixture
def make_image():
    def _make(fmt="PNG", size=(1000, 700), mode="RGB", color="white"):
        buf = BytesIO()
        Image.new(mode, size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_roster():
    def _make(headers, rows):
        wb = Workbook()
        ws = wb.active
        ws.append(list(headers))
        for row in rows:
            ws.append(list(row))
        buf = BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return _make
