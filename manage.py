import os
from datetime import date

import click
from flask.cli import FlaskGroup
from flask_migrate import Migrate

from portal.app import create_app, db
from portal.constants import EVENT_STATUSES
from portal.models import Event, User
from portal.services.issuance import (
    issue_certificate,
    list_certificate_configurations,
)
from portal.shared.errors import CertificateError


migrate = Migrate()


def create_portal_app():
    app = create_app()
    migrate.init_app(app, db)
    return app


cli = FlaskGroup(create_app=create_portal_app)


@cli.command("create_admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
def create_admin(email: str, password: str):
    """Create an administrator, or reset the password of an existing one."""
    email = email.strip().lower()
    user = User.query.filter(db.func.lower(User.email) == email).one_or_none()
    if not user:
        user = User(email=email, full_name=email)
        db.session.add(user)
    user.is_admin = True
    user.set_password(password)
    db.session.commit()
    click.echo(f"admin {email} id={user.id}")


@cli.command("create_event")
@click.option("--id", "event_id", default=None, help="Opaque event id (generated if omitted)")
@click.option("--title", required=True)
@click.option(
    "--status",
    type=click.Choice(EVENT_STATUSES),
    default="completed",
    show_default=True,
)
@click.option("--date", "event_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
def create_event(event_id, title: str, status: str, event_date):
    event = Event(
        title=title.strip(),
        status=status,
        date=event_date.date() if event_date else date.today(),
    )
    if event_id:
        event.id = event_id.strip()
    db.session.add(event)
    db.session.commit()
    click.echo(f"event {event.id} status={event.status}")


@cli.command("list_certs")
def list_certs():
    configs = list_certificate_configurations()
    if not configs:
        click.echo("No certificate configurations")
        return
    for config in configs:
        click.echo(
            f"{config.id} event={config.event_id} title={config.event_title!r} "
            f"attendees={len(config.attendees or [])}"
        )


@cli.command("issue_cert")
@click.option("--event", "event_id", required=True)
@click.option("--email", required=True)
@click.option("--out", "out_dir", default=".", show_default=True)
def issue_cert(event_id: str, email: str, out_dir: str):
    """Render one attendee's certificate to a file."""
    try:
        issued = issue_certificate(event_id, email)
    except CertificateError as exc:
        click.echo(exc.message, err=True)
        raise SystemExit(1)
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, issued.filename)
    with open(path, "wb") as handle:
        handle.write(issued.data)
    click.echo(path)


if __name__ == "__main__":
    cli()
