from io import BytesIO

import pytest
from PyPDF2 import PdfReader

from portal.app import db
from portal.models import CertificateConfiguration, Event, User
from portal.services.certificate_store import CertificateStore
from portal.services.issuance import (
    LookupStatus,
    UploadedFile,
    configure_certificate,
    delete_certificate_configuration,
    issue_certificate,
    list_certificate_configurations,
    list_eligible_events,
    list_public_certificates,
    lookup_attendee,
)
from portal.shared.certificates import decode_template, encode_template
from portal.shared.errors import (
    AttendeeNotFoundError,
    CertificateNotConfiguredError,
    DuplicateConfigurationError,
    EmailRequiredError,
    EventNotSelectedError,
    GenerationError,
    IneligibleEventError,
    MissingColumnsError,
    MissingEventError,
    MissingRosterError,
    MissingTemplateError,
    NoValidRowsError,
    NotAuthorizedError,
    RenderError,
    TemplateTooLargeError,
    UnsupportedImageFormatError,
)
from portal.shared.rosters import Attendee


@pytest.fixture
def roster(make_roster):
    return UploadedFile(
        "attendees.xlsx",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        make_roster(["Name", "Email"], [["Jane Doe", "jane@x.com"]]),
    )


@pytest.fixture
def template(make_image):
    return UploadedFile("template.png", "image/png", make_image("PNG", (1000, 700)))


@pytest.fixture
def configured(admin, completed_event, roster, template):
    return configure_certificate("evt1", roster, template, principal=admin)


def test_configure_persists_configuration(configured, template):
    assert configured.event_id == "evt1"
    assert configured.event_title == "DevFest 2025"
    assert configured.attendees == [{"name": "Jane Doe", "email": "jane@x.com"}]
    assert decode_template(configured.template_base64) == template.data
    assert [c.id for c in list_certificate_configurations()] == [configured.id]


def test_scenario_a_issue_certificate(configured):
    issued = issue_certificate("evt1", "jane@x.com")
    assert issued.filename == "certificate-jane-doe.pdf"
    page = PdfReader(BytesIO(issued.data)).pages[0]
    assert (float(page.mediabox.width), float(page.mediabox.height)) == (1000, 700)


def test_issue_uses_stored_name_for_messy_email(configured):
    assert issue_certificate("evt1", "  JANE@X.COM ").filename == "certificate-jane-doe.pdf"


def test_scenario_b_unknown_email(configured):
    with pytest.raises(AttendeeNotFoundError):
        issue_certificate("evt1", "nobody@x.com")


def test_scenario_c_unconfigured_event(configured):
    with pytest.raises(CertificateNotConfiguredError):
        issue_certificate("missing-event", "jane@x.com")


def test_scenario_d_header_only_roster_persists_nothing(
    admin, completed_event, make_roster, template
):
    empty = UploadedFile("empty.xlsx", "", make_roster(["Name", "Email"], []))
    with pytest.raises(NoValidRowsError):
        configure_certificate("evt1", empty, template, principal=admin)
    assert db.session.query(CertificateConfiguration).count() == 0


def test_issue_requires_event_and_email(configured):
    with pytest.raises(EventNotSelectedError):
        issue_certificate("", "jane@x.com")
    with pytest.raises(EmailRequiredError):
        issue_certificate("evt1", "   ")


def test_lookup_attendee_returns_name(configured):
    assert lookup_attendee("evt1", "Jane@x.com") == Attendee("Jane Doe", "jane@x.com")


def test_configure_validation_order(admin, completed_event, roster, template):
    with pytest.raises(MissingEventError):
        configure_certificate("", roster, template, principal=admin)
    with pytest.raises(MissingEventError):
        configure_certificate("no-such-event", roster, template, principal=admin)
    with pytest.raises(MissingRosterError):
        configure_certificate("evt1", None, template, principal=admin)
    with pytest.raises(MissingTemplateError):
        configure_certificate("evt1", roster, None, principal=admin)
    with pytest.raises(MissingTemplateError):
        configure_certificate(
            "evt1", roster, UploadedFile("t.png", "image/png", b""), principal=admin
        )
    assert list_certificate_configurations() == []


def test_configure_rejects_non_image_media_type(admin, completed_event, roster, make_image):
    gif = UploadedFile("t.gif", "image/gif", make_image("GIF", (100, 100)))
    with pytest.raises(UnsupportedImageFormatError):
        configure_certificate("evt1", roster, gif, principal=admin)


def test_configure_accepts_jpeg(admin, completed_event, roster, make_image):
    jpeg = UploadedFile("t.jpg", "image/jpeg", make_image("JPEG", (800, 600)))
    configure_certificate("evt1", roster, jpeg, principal=admin)
    page = PdfReader(BytesIO(issue_certificate("evt1", "jane@x.com").data)).pages[0]
    assert (float(page.mediabox.width), float(page.mediabox.height)) == (800, 600)


def test_configure_enforces_template_size_limit(app, admin, completed_event, roster, template):
    app.config["CERT_TEMPLATE_MAX_BYTES"] = 10
    with pytest.raises(TemplateTooLargeError):
        configure_certificate("evt1", roster, template, principal=admin)


def test_configure_roster_column_errors_propagate(admin, completed_event, make_roster, template):
    bad = UploadedFile("r.xlsx", "", make_roster(["Who", "Contact"], [["Jane", "j@x.com"]]))
    with pytest.raises(MissingColumnsError):
        configure_certificate("evt1", bad, template, principal=admin)


def test_configure_rejects_incomplete_event(admin, roster, template):
    db.session.add(Event(id="evt2", title="Upcoming", status="upcoming"))
    db.session.commit()
    with pytest.raises(IneligibleEventError):
        configure_certificate("evt2", roster, template, principal=admin)


def test_configure_requires_admin(completed_event, roster, template):
    member = User(email="member@example.com", is_admin=False)
    db.session.add(member)
    db.session.commit()
    with pytest.raises(NotAuthorizedError):
        configure_certificate("evt1", roster, template, principal=member)
    with pytest.raises(NotAuthorizedError):
        configure_certificate("evt1", roster, template, principal=None)


def test_configure_twice_for_same_event(configured, admin, roster, template):
    with pytest.raises(DuplicateConfigurationError):
        configure_certificate("evt1", roster, template, principal=admin)
    assert len(list_certificate_configurations()) == 1


def test_delete_then_reconfigure(configured, admin, roster, template):
    delete_certificate_configuration(configured.id, principal=admin)
    assert list_certificate_configurations() == []
    with pytest.raises(CertificateNotConfiguredError):
        issue_certificate("evt1", "jane@x.com")
    configure_certificate("evt1", roster, template, principal=admin)
    assert issue_certificate("evt1", "jane@x.com").filename == "certificate-jane-doe.pdf"


def test_generation_failure_is_distinct_from_not_found(app, caplog):
    CertificateStore().create(
        event_id="evt9",
        event_title="Broken",
        template_base64=encode_template(b"\x89PNG\r\n\x1a\nbroken"),
        attendees=[Attendee("Jane Doe", "jane@x.com")],
    )
    caplog.set_level("INFO")
    with pytest.raises(GenerationError) as exc:
        issue_certificate("evt9", "jane@x.com")
    assert isinstance(exc.value.__cause__, UnsupportedImageFormatError)
    assert not isinstance(exc.value, AttendeeNotFoundError)
    assert "[CERT-FAIL]" in caplog.text


def test_listing_helpers(configured, admin):
    db.session.add_all(
        [
            Event(id="evt2", title="Study Jam", status="completed"),
            Event(id="evt3", title="Later", status="upcoming"),
        ]
    )
    db.session.commit()
    assert list_public_certificates() == [
        {"event_id": "evt1", "event_title": "DevFest 2025"}
    ]
    assert [e.id for e in list_eligible_events()] == ["evt2"]
    assert list_certificate_configurations() == list_certificate_configurations()


def test_name_outside_font_is_a_generation_error(app, make_image):
    CertificateStore().create(
        event_id="evt7",
        event_title="Meetup",
        template_base64=encode_template(make_image("PNG", (1200, 800))),
        attendees=[Attendee("李雷", "li@x.com")],
    )
    with pytest.raises(GenerationError) as exc:
        issue_certificate("evt7", "li@x.com")
    assert isinstance(exc.value.__cause__, RenderError)


def test_lookup_status_values():
    assert [s.value for s in LookupStatus] == ["idle", "found", "not-found", "error"]
