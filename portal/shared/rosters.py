"""Attendee roster parsing.

A roster is the first sheet of an uploaded workbook whose first row holds the
column headers. CSV exports are accepted too and read the same way.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Iterator, NamedTuple, Sequence

from openpyxl import load_workbook

from .errors import (
    EmptyInputError,
    MissingColumnsError,
    NoValidRowsError,
    RosterFormatError,
)


class Attendee(NamedTuple):
    name: str
    email: str

    def to_dict(self) -> dict:
        return {"name": self.name, "email": self.email}


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_csv(filename: str | None) -> bool:
    return (filename or "").strip().lower().endswith(".csv")


def _workbook_rows(data: bytes) -> list[tuple]:
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise RosterFormatError(
            "Failed to parse Excel file. Upload an .xlsx workbook."
        ) from exc
    try:
        if not wb.worksheets:
            return []
        return list(wb.worksheets[0].iter_rows(values_only=True))
    finally:
        wb.close()


def _csv_rows(data: bytes) -> list[tuple]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise RosterFormatError("Roster CSV must be UTF-8 encoded.") from exc
    return [tuple(row) for row in csv.reader(io.StringIO(text))]


def _unique_headers(headers: Sequence[str]) -> list[str]:
    """Suffix repeated headers ``_1``, ``_2``, ... so no column is dropped."""
    seen: dict[str, int] = {}
    unique = []
    for header in headers:
        if not header:
            unique.append(header)
            continue
        candidate = header
        while candidate in seen:
            seen[header] += 1
            candidate = f"{header}_{seen[header]}"
        seen.setdefault(candidate, 0)
        seen.setdefault(header, 0)
        unique.append(candidate)
    return unique


def read_records(
    data: bytes, filename: str | None = None
) -> tuple[list[str], list[dict[str, Any]]]:
    """Return the header row and the data rows of the first sheet keyed by it.

    Columns with a blank header are ignored, as are rows whose cells are
    all blank. Repeated headers are renamed ``Name``, ``Name_1``, ...
    """
    rows = _csv_rows(data) if _is_csv(filename) else _workbook_rows(data)
    if not rows:
        return [], []
    headers = _unique_headers([_cell_text(h) for h in rows[0]])
    records: list[dict[str, Any]] = []
    for row in rows[1:]:
        record = {
            header: value
            for header, value in zip(headers, row)
            if header
        }
        if any(_cell_text(v) for v in record.values()):
            records.append(record)
    return [h for h in headers if h], records


def _first_header(headers: Iterable[str], *needles: str) -> str | None:
    for header in headers:
        lowered = header.lower()
        if any(n in lowered for n in needles):
            return header
    return None


def resolve_columns(headers: Sequence[str]) -> tuple[str, str]:
    """Pick the (name, email) columns from the header row."""
    name_col = _first_header(headers, "name")
    email_col = _first_header(headers, "email", "mail")
    if not name_col or not email_col:
        raise MissingColumnsError(
            "Excel must have columns containing 'name' and 'email' in headers "
            f"(found: {', '.join(headers) or 'none'})."
        )
    return name_col, email_col


def iter_attendees(
    records: Iterable[dict[str, Any]], name_col: str, email_col: str
) -> Iterator[Attendee]:
    for record in records:
        name = _cell_text(record.get(name_col))
        email = _cell_text(record.get(email_col))
        if name and email:
            yield Attendee(name=name, email=email)


def parse_roster(data: bytes, filename: str | None = None) -> list[Attendee]:
    headers, records = read_records(data, filename)
    if not records:
        raise EmptyInputError()
    name_col, email_col = resolve_columns(headers)
    attendees = list(iter_attendees(records, name_col, email_col))
    if not attendees:
        raise NoValidRowsError()
    return attendees
