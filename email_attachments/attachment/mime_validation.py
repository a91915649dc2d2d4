"""MIME type detection for attachment content.

The declared type of an attached file decides how mail clients open it, so
the type is taken from the filename extension when it is known and from the
content's magic bytes otherwise.

Example:
    >>> from email_attachments.attachment.mime_validation import detect_mime_type
    >>> detect_mime_type(b"%PDF-1.7 ...", "scan")
    'application/pdf'
"""

from __future__ import annotations

import logging
import mimetypes

import puremagic

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


# Composite types may only use 7bit/8bit/binary transfer encodings, so files
# of these types are attached as opaque binary data
NON_ATTACHABLE_MAINTYPES = frozenset({"message", "multipart"})


def split_mime_type(mime_type: str) -> tuple[str, str]:
    """Split 'type/subtype' into the parts used for an attachment part.

    Falls back to the default type for malformed values and for composite
    types (message/*, multipart/*).
    """
    if not mime_type or "/" not in mime_type:
        mime_type = DEFAULT_MIME_TYPE
    maintype, _, subtype = mime_type.partition("/")
    maintype, subtype = maintype.strip().lower(), subtype.strip().lower()
    if maintype in NON_ATTACHABLE_MAINTYPES or not maintype or not subtype:
        return split_mime_type(DEFAULT_MIME_TYPE)
    return maintype, subtype


def _detect_from_content(content: bytes, filename: str) -> str | None:
    if not content:
        return None

    try:
        detected = puremagic.magic_string(content)
    except (puremagic.PureError, ValueError):
        logger.debug("Could not identify file type of '%s' from content", filename)
        return None

    for match in detected:
        if match.mime_type:
            return match.mime_type
    return None


def detect_mime_type(content: bytes, filename: str) -> str:
    """Determine the MIME type of an attachment.

    Args:
        content: The binary content of the file.
        filename: The attachment filename (used for the extension lookup).

    Returns:
        The guessed MIME type, or 'application/octet-stream' if neither the
        extension nor the content identifies the file.
    """
    guessed_type, _ = mimetypes.guess_type(filename, strict=False)
    if guessed_type:
        return guessed_type

    return _detect_from_content(content, filename) or DEFAULT_MIME_TYPE
