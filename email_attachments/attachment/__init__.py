"""Attachment package for files bound to notification emails.

This package provides the Attachment class, the size budget constant and the
helpers used to turn stored issue files into email attachments.

Example:
    >>> from email_attachments.attachment import Attachment, MAX_TOTAL_ATTACHMENT_SIZE
    >>> attachment = Attachment.from_bytes(
    ...     content=pdf_bytes,
    ...     filename="../uploads/spec.pdf",
    ...     max_size=MAX_TOTAL_ATTACHMENT_SIZE,
    ... )
    >>> attachment.filename
    'spec.pdf'
"""

from email_attachments.attachment.constants import (
    MAX_TOTAL_ATTACHMENT_SIZE,
    AttachmentSizeError,
    UnsafeFilenameError,
)
from email_attachments.attachment.core import Attachment, sanitize_filename
from email_attachments.attachment.mime_validation import detect_mime_type

__all__ = [
    "Attachment",
    "AttachmentSizeError",
    "MAX_TOTAL_ATTACHMENT_SIZE",
    "UnsafeFilenameError",
    "detect_mime_type",
    "sanitize_filename",
]
