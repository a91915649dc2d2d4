"""Core Attachment class for files bound to notification emails."""

from __future__ import annotations

import logging
import ntpath
import os
from dataclasses import dataclass

from email_attachments.attachment.constants import AttachmentSizeError, UnsafeFilenameError
from email_attachments.attachment.mime_validation import detect_mime_type

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    """Remove path components from filename, returning just the basename.

    Strips trailing separators first to handle path-only inputs like "/" or "dir/",
    then extracts basename. Returns empty string for invalid inputs rather than
    preserving path separators, allowing validation to reject them.
    """
    stripped = filename.rstrip("/\\")
    basename = os.path.basename(ntpath.basename(stripped))
    if basename in (".", ".."):
        return ""
    return basename


@dataclass(frozen=True)
class Attachment:
    """A file attachment ready to be bound to an email.

    Attributes:
        filename: Name of the file (without path components).
        content: Binary content of the file.
        mime_type: MIME type of the file (e.g., 'image/png', 'application/pdf').

    Raises:
        UnsafeFilenameError: If the filename is empty after sanitization or
            contains a null byte.

    Example:
        >>> attachment = Attachment(
        ...     filename="spec.pdf",
        ...     content=pdf_bytes,
        ...     mime_type="application/pdf"
        ... )
    """

    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"

    def __post_init__(self) -> None:
        """Validate attachment data."""
        original_filename = self.filename
        sanitized = sanitize_filename(original_filename)
        if not sanitized:
            raise UnsafeFilenameError("Attachment filename cannot be empty")
        if "\x00" in sanitized:
            raise UnsafeFilenameError(f"Attachment filename {sanitized!r} contains a null byte")
        if sanitized != original_filename:
            object.__setattr__(self, "filename", sanitized)
            logger.warning(
                "Attachment filename contained path components, sanitized from '%s' to '%s'",
                original_filename,
                sanitized,
            )

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        filename: str,
        max_size: int,
        mime_type: str | None = None,
    ) -> Attachment:
        """Create an Attachment from bytes with size validation before object creation.

        Args:
            content: Binary content of the file.
            filename: Name of the file (path components will be stripped).
            max_size: Maximum allowed size in bytes.
            mime_type: MIME type of the file. If None, it is detected from the
                filename extension and the content.

        Returns:
            A validated Attachment instance.

        Raises:
            AttachmentSizeError: If content exceeds max_size.
            UnsafeFilenameError: If the filename is empty or contains a null byte.
        """
        if len(content) > max_size:
            raise AttachmentSizeError.for_file(sanitize_filename(filename), max_size, len(content))

        effective_mime_type = mime_type or detect_mime_type(content, filename)
        return cls(filename=filename, content=content, mime_type=effective_mime_type)
