"""Attach newly added issue files to outgoing notification emails."""

from email_attachments.attachment import (
    MAX_TOTAL_ATTACHMENT_SIZE,
    Attachment,
    AttachmentSizeError,
    UnsafeFilenameError,
)
from email_attachments.config import AttachmentsConfig, Config, HostSettings
from email_attachments.interceptor import EmailAttachmentsInterceptor
from email_attachments.mailer import Mailer
from email_attachments.outcome import CandidateOutcome, ResolutionResult, SkipReason

__all__ = [
    "Attachment",
    "AttachmentSizeError",
    "AttachmentsConfig",
    "CandidateOutcome",
    "Config",
    "EmailAttachmentsInterceptor",
    "HostSettings",
    "MAX_TOTAL_ATTACHMENT_SIZE",
    "Mailer",
    "ResolutionResult",
    "SkipReason",
    "UnsafeFilenameError",
]
