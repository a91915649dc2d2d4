"""Attachment size limits and related exceptions.

Size Limits:
    The cumulative attachment payload bound to one notification email is
    capped at 30MB (MAX_TOTAL_ATTACHMENT_SIZE), the issue tracker's default
    upload limit. The cap can be overridden through AttachmentsConfig.
"""

# Maximum total size of attachments bound to a single email: 30MB
MAX_TOTAL_ATTACHMENT_SIZE = 30 * 1024 * 1024


class AttachmentSizeError(ValueError):
    """Raised when attachment content exceeds the remaining size budget.

    This is a subclass of ValueError so callers validating attachments can
    catch every construction failure in one place.
    """

    @classmethod
    def for_file(cls, filename: str, max_size: int, actual_size: int) -> "AttachmentSizeError":
        """Create an AttachmentSizeError with a formatted message."""
        message = (
            f"Attachment '{filename}' exceeds maximum size of "
            f"{max_size / (1024 * 1024):.2f}MB "
            f"(size: {actual_size / (1024 * 1024):.2f}MB)"
        )
        return cls(message)


class UnsafeFilenameError(ValueError):
    """Raised when an attachment filename cannot be used in an email."""
