"""Failure taxonomy for certificate configuration and issuance.

Every error carries a user-facing ``message`` and a ``kind`` that the HTTP
layer maps to a status code: ``validation`` (400), ``forbidden`` (403),
``not_found`` (404), ``conflict`` (409) and ``system`` (500).
"""

from __future__ import annotations


class CertificateError(Exception):
    kind = "system"
    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CertificateError):
    kind = "validation"
    default_message = "Invalid input."


class NotFoundError(CertificateError):
    kind = "not_found"
    default_message = "Not found."


# Configure (administrator) path


class NotAuthorizedError(CertificateError):
    kind = "forbidden"
    default_message = "Administrator access required."


class MissingEventError(ValidationError):
    default_message = "Please select an event."


class IneligibleEventError(ValidationError):
    default_message = "Certificates can only be configured for completed events."


class MissingRosterError(ValidationError):
    default_message = "Please upload an Excel file with attendees."


class MissingTemplateError(ValidationError):
    default_message = "Please upload a PNG or JPG certificate template."


class TemplateTooLargeError(ValidationError):
    default_message = "The certificate template is too large."


class UnsupportedImageFormatError(ValidationError):
    default_message = "Please upload a PNG or JPG template."


class DuplicateConfigurationError(CertificateError):
    kind = "conflict"
    default_message = "Certificates are already configured for this event."


class ConfigurationNotFoundError(NotFoundError):
    default_message = "Certificate configuration not found."


# Roster parsing


class RosterError(ValidationError):
    default_message = "Failed to parse Excel file."


class RosterFormatError(RosterError):
    pass


class MissingColumnsError(RosterError):
    default_message = (
        "Excel must have columns containing 'name' and 'email' in headers."
    )


class NoValidRowsError(RosterError):
    default_message = "No valid entries found in Excel file."


class EmptyInputError(NoValidRowsError):
    default_message = "Excel file is empty."


# Issue (public lookup) path


class EventNotSelectedError(ValidationError):
    default_message = "Please select an event."


class EmailRequiredError(ValidationError):
    default_message = "Please enter your registered email."


class CertificateNotConfiguredError(NotFoundError):
    default_message = "Certificates are not available for this event."


class AttendeeNotFoundError(NotFoundError):
    default_message = (
        "This email is not registered for the selected event. "
        "Please check your email and try again."
    )


class RenderError(CertificateError):
    pass


class GenerationError(CertificateError):
    pass


HTTP_STATUS_BY_KIND = {
    "validation": 400,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "system": 500,
}


def http_status(exc: CertificateError) -> int:
    return HTTP_STATUS_BY_KIND.get(exc.kind, 500)
