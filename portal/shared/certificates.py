from __future__ import annotations

import base64
import binascii
import logging
import math
import os
import re
from io import BytesIO
from typing import Any, Iterable, Mapping, NamedTuple

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.pdfmetrics import getAscentDescent, stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from ..constants import (
    JPEG_SIGNATURE,
    NAME_COLOR,
    NAME_FONT,
    NAME_MIN_SIZE,
    NAME_START_SIZE,
    NAME_WIDTH_RATIO,
    PNG_SIGNATURE,
)
from .errors import RenderError, UnsupportedImageFormatError
from .rosters import Attendee

logger = logging.getLogger("portal.certificates")

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]+')


class NameLayout(NamedTuple):
    font: str
    size: int
    text_width: float
    text_height: float
    x: float
    y: float


def certificate_filename(name: str) -> str:
    """``Jane Doe`` -> ``certificate-jane-doe.pdf``."""
    slug = _UNSAFE_FILENAME_CHARS.sub("", (name or "").strip())
    slug = re.sub(r"\s+", "-", slug).lower()
    return f"certificate-{slug}.pdf" if slug else "certificate.pdf"


def normalize_email(s: object) -> str:
    """Normalize an email by stripping whitespace and lowercasing."""
    if s is None:
        return ""
    return str(s).strip().lower()


def _as_attendee(entry: Attendee | Mapping[str, Any]) -> Attendee:
    if isinstance(entry, Attendee):
        return entry
    return Attendee(
        name=str(entry.get("name") or "").strip(),
        email=str(entry.get("email") or "").strip(),
    )


def find_attendee(source: Any, email: str | None) -> Attendee | None:
    """Return the first attendee whose email matches ``email``.

    ``source`` is either a configuration (anything with an ``attendees``
    attribute) or an iterable of attendees / ``{"name", "email"}`` mappings.
    Matching ignores case and surrounding whitespace on both sides.
    """
    wanted = normalize_email(email)
    if not wanted:
        return None
    entries: Iterable = getattr(source, "attendees", source) or []
    for entry in entries:
        attendee = _as_attendee(entry)
        if normalize_email(attendee.email) == wanted:
            return attendee
    return None


def encode_template(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_template(text: str) -> bytes:
    """Decode a stored template, tolerating a ``data:...;base64,`` prefix."""
    payload = (text or "").strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UnsupportedImageFormatError(
            "Stored certificate template is not valid base64."
        ) from exc


def detect_image_format(data: bytes) -> str:
    if data[:8] == PNG_SIGNATURE:
        return "PNG"
    if data[:2] == JPEG_SIGNATURE:
        return "JPEG"
    raise UnsupportedImageFormatError(
        "Certificate template must be a PNG or JPEG image."
    )


def decode_image(data: bytes) -> Image.Image:
    fmt = detect_image_format(data)
    try:
        img = Image.open(BytesIO(data), formats=[fmt])
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise UnsupportedImageFormatError(
            f"Certificate template could not be decoded as {fmt}."
        ) from exc
    if img.mode not in ("RGB", "RGBA", "L"):
        has_alpha = "A" in img.mode or "transparency" in img.info
        img = img.convert("RGBA" if has_alpha else "RGB")
    return img


def name_font(ttf_path: str | None = None) -> str:
    """Font used for the attendee name.

    With ``ttf_path`` the TrueType file is registered once under its file
    stem (``DejaVuSerif-Bold``); otherwise the standard NAME_FONT face is used.
    """
    if not ttf_path:
        return NAME_FONT
    font = os.path.splitext(os.path.basename(ttf_path))[0]
    if font not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(font, ttf_path))
        except Exception as exc:
            raise RenderError(f"Name font could not be loaded: {ttf_path}") from exc
        logger.info("[CERT-FONT] registered %s from %s", font, ttf_path)
    return font


def missing_glyphs(name: str, font: str) -> list[str]:
    """Characters of ``name`` the font would draw as its notdef box."""
    face = getattr(pdfmetrics.getFont(font), "face", None)
    if face is not None and hasattr(face, "charToGlyph"):
        return [ch for ch in name if ord(ch) not in face.charToGlyph]
    missing = []
    for ch in name:
        try:
            ch.encode("cp1252")
        except UnicodeEncodeError:
            missing.append(ch)
    return missing


def fit_name(
    name: str, page_width: float, page_height: float, font: str = NAME_FONT
) -> NameLayout:
    """Size and center ``name`` inside the page.

    Starts at NAME_START_SIZE and, when the name is wider than
    NAME_WIDTH_RATIO of the page, shrinks once in proportion to the overflow,
    never below NAME_MIN_SIZE.
    """
    target_width = page_width * NAME_WIDTH_RATIO
    size = NAME_START_SIZE
    text_width = stringWidth(name, font, size)
    if text_width > target_width:
        size = max(NAME_MIN_SIZE, math.floor(target_width / text_width * size))
        text_width = stringWidth(name, font, size)
    ascent, descent = getAscentDescent(font, size)
    text_height = ascent - descent
    return NameLayout(
        font=font,
        size=size,
        text_width=text_width,
        text_height=text_height,
        x=(page_width - text_width) / 2,
        y=page_height / 2 - text_height / 2,
    )


def render_certificate_pdf(
    template_bytes: bytes, name: str, font: str = NAME_FONT
) -> bytes:
    """Composite ``name`` onto the template and return a one-page PDF.

    The page is exactly the template's pixel size (one PDF unit per pixel)
    and the template is drawn full-bleed beneath the name. A name with
    characters the font cannot draw raises ``RenderError``.
    """
    image = decode_image(template_bytes)
    missing = missing_glyphs(name, font)
    if missing:
        chars = "".join(dict.fromkeys(missing))
        raise RenderError(f"Font {font} cannot render: {chars}")
    width, height = image.size
    try:
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=(width, height))
        c.drawImage(
            ImageReader(image), 0, 0, width=width, height=height, mask="auto"
        )
        layout = fit_name(name, width, height, font)
        c.setFillColorRGB(*NAME_COLOR)
        c.setFont(layout.font, layout.size)
        c.drawString(layout.x, layout.y, name)
        c.showPage()
        c.save()
    except Exception as exc:
        raise RenderError(f"Certificate rendering failed: {exc}") from exc
    logger.debug(
        "[CERT-RENDER] page=%sx%s size=%s width=%.1f",
        width,
        height,
        layout.size,
        layout.text_width,
    )
    return buffer.getvalue()
