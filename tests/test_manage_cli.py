import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from portal.app import db
from portal.models import Event, User
from portal.services.certificate_store import CertificateStore
from portal.shared.certificates import encode_template
from portal.shared.rosters import Attendee
from manage import create_admin, create_event, issue_cert, list_certs


@pytest.fixture
def runner(app):
    for command in (create_admin, create_event, issue_cert, list_certs):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_create_admin_and_event(runner):
    res = runner.invoke(args=["create_admin", "--email", "Boss@Example.com", "--password", "s3cret-pass"])
    assert res.exit_code == 0
    user = User.query.filter_by(email="boss@example.com").one()
    assert user.is_admin and user.check_password("s3cret-pass")

    res = runner.invoke(args=["create_event", "--id", "evt1", "--title", "DevFest", "--date", "2025-11-02"])
    assert res.exit_code == 0
    event = db.session.get(Event, "evt1")
    assert event.status == "completed"
    assert event.date.isoformat() == "2025-11-02"


def test_list_and_issue(runner, make_image, tmp_path):
    res = runner.invoke(args=["list_certs"])
    assert "No certificate configurations" in res.output

    CertificateStore().create(
        event_id="evt1",
        event_title="DevFest",
        template_base64=encode_template(make_image("PNG", (400, 300))),
        attendees=[Attendee("Jane Doe", "jane@x.com")],
    )
    res = runner.invoke(args=["list_certs"])
    assert "event=evt1" in res.output and "attendees=1" in res.output

    res = runner.invoke(args=["issue_cert", "--event", "evt1", "--email", "jane@x.com", "--out", str(tmp_path)])
    assert res.exit_code == 0
    out = tmp_path / "certificate-jane-doe.pdf"
    assert out.read_bytes().startswith(b"%PDF")

    res = runner.invoke(args=["issue_cert", "--event", "evt1", "--email", "nobody@x.com"])
    assert res.exit_code == 1
