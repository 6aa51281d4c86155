# server/attachments.py
"""
Turn an uploaded syllabus into a transport-safe Attachment.

Accepts anything shaped like FastAPI's UploadFile: ``filename``,
``content_type`` and an async ``read()``.
"""

import base64
import mimetypes
import re
from typing import Any

from .errors import FileReadError
from .schemas import Attachment

# Advisory only; the browser file picker uses it as a hint. Word files are
# left out since the provider only reads PDF, plain text and images.
ACCEPTED_EXTENSIONS = (".pdf", ".txt", ".png", ".jpg", ".jpeg")

DEFAULT_MIME_TYPE = "application/octet-stream"

_DATA_URL_PREFIX = re.compile(r"^data:[^,]*;base64,", flags=re.I)


def strip_data_url(text: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if one is present."""
    return _DATA_URL_PREFIX.sub("", text.strip(), count=1)


def _guess_mime_type(filename: str, declared: str | None) -> str:
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_MIME_TYPE


async def encode(upload: Any) -> Attachment:
    filename = getattr(upload, "filename", None) or "syllabus"
    try:
        raw = await upload.read()
    except Exception as e:
        print(f"[attachments] Could not read {filename!r}:", repr(e))
        raise FileReadError() from e

    if not isinstance(raw, (bytes, bytearray, str)):
        print(f"[attachments] Reader for {filename!r} returned {type(raw).__name__}, not bytes")
        raise FileReadError()

    # some readers hand back a data URL that is already base64
    if isinstance(raw, str) and _DATA_URL_PREFIX.match(raw.strip()):
        data = strip_data_url(raw)
    else:
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        data = base64.b64encode(bytes(raw)).decode("ascii")

    return Attachment(
        name=filename,
        mime_type=_guess_mime_type(filename, getattr(upload, "content_type", None)),
        data=data,
    )
