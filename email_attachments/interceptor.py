"""Mail interceptor that attaches newly added files to notification emails."""

from __future__ import annotations

import logging
from collections.abc import Callable
from email.message import EmailMessage
from typing import Optional

from email_attachments.config import AttachmentsConfig, HostSettings
from email_attachments.detector import LinkPatterns, detect_new_files
from email_attachments.outcome import ResolutionResult
from email_attachments.resolver import AttachmentResolver
from email_attachments.restructure import (
    bind_attachments,
    convert_to_mixed,
    eligible_body_parts,
)
from email_attachments.store import AttachmentStore, LocalStorage, Storage

logger = logging.getLogger(__name__)

SettingsProvider = Callable[[], HostSettings]


class EmailAttachmentsInterceptor:
    """Rewrite outgoing notifications so newly added files travel with them.

    The interceptor is called once per outgoing email, before delivery. Emails
    that are not text+HTML multipart, or that report no added files, are left
    untouched. Otherwise the email becomes multipart/mixed and carries every
    added file that could be resolved within the size budget.

    Host settings are read through ``settings_provider`` on every call so
    changes to the tracker's protocol or URL root apply to the next email.
    """

    def __init__(
        self,
        config: AttachmentsConfig,
        store: AttachmentStore,
        settings_provider: SettingsProvider,
        storage: Optional[Storage] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.settings_provider = settings_provider
        self.storage = storage if storage is not None else LocalStorage()

    def delivering_email(self, message: EmailMessage) -> Optional[ResolutionResult]:
        """Process one outgoing email in place.

        Args:
            message: The email about to be delivered.

        Returns:
            The per-link resolution outcomes, or None when the email was left
            unchanged.
        """
        logger.info("Interceptor called (multipart: %s)", message.is_multipart())
        body_parts = eligible_body_parts(message)
        if body_parts is None:
            return None
        text_part, html_part = body_parts

        # Captured before anything below rewrites the HTML part
        try:
            original_html = html_part.get_content()
        except LookupError as e:
            logger.warning("Cannot decode HTML part, leaving message unchanged: %s", e)
            return None
        logger.debug("Stored original HTML (%d chars)", len(original_html))

        settings = self.settings_provider()
        patterns = LinkPatterns.build(
            settings.protocol, settings.relative_url_root, self.config.added_phrases
        )

        new_files = detect_new_files(original_html, patterns)
        if not new_files:
            return None

        convert_to_mixed(message, text_part, html_part, original_html)

        resolver = AttachmentResolver(self.store, self.storage, self.config.max_total_size)
        result = resolver.resolve(original_html, new_files, patterns)

        attachments = result.attachments_by_name()
        bind_attachments(message, attachments)
        logger.info("Successfully added %d attachment(s) to email", len(attachments))
        return result
