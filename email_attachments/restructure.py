"""Restructuring of notification emails so they can carry attachments.

A notification arrives as ``multipart/alternative`` holding a text and an HTML
rendering. Files cannot be added to that container, so the message becomes::

    multipart/mixed
    ├── multipart/alternative
    │   ├── text/plain
    │   └── text/html
    └── attachments...
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from email.message import EmailMessage, MIMEPart
from typing import Optional

from email_attachments.attachment import Attachment
from email_attachments.attachment.mime_validation import split_mime_type

logger = logging.getLogger(__name__)

_BODY_TAG_PATTERN = re.compile(r"<body[^>]*>", re.IGNORECASE)


def _is_body_part(part: MIMEPart, content_type: str) -> bool:
    return part.get_content_type() == content_type and part.get_content_disposition() != "attachment"


def find_body_parts(message: EmailMessage) -> tuple[Optional[MIMEPart], Optional[MIMEPart]]:
    """Return the first direct text/plain and text/html parts of a multipart message."""
    if not message.is_multipart():
        return None, None

    text_part = None
    html_part = None
    for part in message.iter_parts():
        if text_part is None and _is_body_part(part, "text/plain"):
            text_part = part
        elif html_part is None and _is_body_part(part, "text/html"):
            html_part = part
    return text_part, html_part


def eligible_body_parts(message: EmailMessage) -> Optional[tuple[MIMEPart, MIMEPart]]:
    """Return the text and HTML parts of a text+HTML multipart email.

    Returns None for anything else; such messages pass through the pipeline
    untouched.
    """
    if not message.is_multipart():
        logger.debug("Message is not multipart, leaving it unchanged")
        return None

    text_part, html_part = find_body_parts(message)
    if text_part is None or html_part is None:
        logger.debug(
            "Message lacks a body part (text: %s, html: %s), leaving it unchanged",
            text_part is not None,
            html_part is not None,
        )
        return None
    return text_part, html_part


def is_eligible(message: EmailMessage) -> bool:
    """Tell whether the message is a text+HTML multipart email."""
    return eligible_body_parts(message) is not None


def build_alternative(text_part: MIMEPart, html_part: MIMEPart) -> MIMEPart:
    """Build a multipart/alternative part holding the text and HTML parts, in that order."""
    alternative = MIMEPart(policy=html_part.policy)
    alternative["Content-Type"] = "multipart/alternative"
    alternative.attach(text_part)
    alternative.attach(html_part)
    return alternative


def pad_body_tag(html: str) -> str:
    """Insert a single space right after the opening body tag.

    Layout compatibility with existing notification renderers relies on it.
    """
    return _BODY_TAG_PATTERN.sub(r"\g<0> ", html, count=1)


def encodable_charset(text: str, charset: Optional[str]) -> str:
    """Return charset if it can encode text, utf-8 otherwise."""
    if not charset:
        return "utf-8"
    try:
        text.encode(charset)
    except (UnicodeEncodeError, LookupError):
        logger.warning("HTML part cannot be re-encoded as %s, using utf-8", charset)
        return "utf-8"
    return charset


def convert_to_mixed(
    message: EmailMessage, text_part: MIMEPart, html_part: MIMEPart, html: str
) -> None:
    """Turn an alternative text+HTML email into a mixed one in place.

    ``html`` is the decoded content of ``html_part``. The new HTML body and its
    charset are settled before the message is touched, so a failure there
    leaves the message as it was.

    The message content type is rewritten textually so its other parameters
    stay as declared; the boundary is regenerated when the message is
    serialized.
    """
    padded_html = pad_body_tag(html)
    charset = encodable_charset(padded_html, html_part.get_content_charset())

    alternative = build_alternative(text_part, html_part)
    message.set_payload([alternative])

    content_type = message["Content-Type"]
    mixed = content_type.replace("alternative", "mixed", 1)
    message.replace_header("Content-Type", mixed)

    html_part.set_content(padded_html, subtype="html", charset=charset)

    logger.info("Converted email to multipart/mixed (content type: %s)", message.get_content_type())


def bind_attachments(message: EmailMessage, attachments: Mapping[str, Attachment]) -> None:
    """Append one attachment part per display filename to a mixed message."""
    for filename, attachment in attachments.items():
        maintype, subtype = split_mime_type(attachment.mime_type)
        part = MIMEPart(policy=message.policy)
        part.set_content(
            attachment.content,
            maintype=maintype,
            subtype=subtype,
            disposition="attachment",
            filename=filename,
        )
        message.attach(part)
