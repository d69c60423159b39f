from __future__ import annotations

from typing import Iterable

from sqlalchemy.exc import IntegrityError

from ..app import db
from ..models import CertificateConfiguration
from ..shared.errors import ConfigurationNotFoundError, DuplicateConfigurationError
from ..shared.rosters import Attendee


class CertificateStore:
    """Persistence for certificate configurations.

    Configurations are created and deleted whole; there is no update path.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def list(self) -> list[CertificateConfiguration]:
        return (
            self.session.query(CertificateConfiguration)
            .order_by(CertificateConfiguration.created_at, CertificateConfiguration.id)
            .all()
        )

    def get(self, config_id: str) -> CertificateConfiguration | None:
        return self.session.get(CertificateConfiguration, config_id)

    def get_by_event(self, event_id: str) -> CertificateConfiguration | None:
        for config in self.list():
            if config.event_id == event_id:
                return config
        return None

    def create(
        self,
        event_id: str,
        event_title: str,
        template_base64: str,
        attendees: Iterable[Attendee],
    ) -> CertificateConfiguration:
        config = CertificateConfiguration(
            event_id=event_id,
            event_title=event_title or "",
            template_base64=template_base64,
            attendees=[a.to_dict() for a in attendees],
        )
        self.session.add(config)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateConfigurationError() from exc
        return config

    def delete(self, config_id: str) -> None:
        config = self.get(config_id)
        if not config:
            raise ConfigurationNotFoundError()
        self.session.delete(config)
        self.session.commit()
