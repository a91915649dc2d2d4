"""Resolution of attachment links into files bound to an email.

Every attachment link in the original HTML is a candidate. Candidates are
mapped to stored attachment records by ID, filtered to the files reported as
added, deduplicated, checked against the size budget and read from storage.
A failing candidate is recorded and skipped; it never stops the others.
"""

from __future__ import annotations

import logging

import humanize

from email_attachments.attachment import (
    Attachment,
    AttachmentSizeError,
    UnsafeFilenameError,
    sanitize_filename,
)
from email_attachments.detector import LinkPatterns, NewFiles, extract_attachment_id
from email_attachments.outcome import CandidateOutcome, ResolutionResult, SkipReason
from email_attachments.store import AttachmentStore, Storage

logger = logging.getLogger(__name__)


class AttachmentResolver:
    """Turn attachment links of one email into attachments within a size budget."""

    def __init__(self, store: AttachmentStore, storage: Storage, max_total_size: int) -> None:
        self.store = store
        self.storage = storage
        self.max_total_size = max_total_size

    def resolve(self, html_content: str, new_files: NewFiles, patterns: LinkPatterns) -> ResolutionResult:
        """Resolve every attachment link in the HTML, in document order.

        Args:
            html_content: The original, unmodified HTML body.
            new_files: Files reported as added by the detector.
            patterns: Link patterns for the current tracker settings.

        Returns:
            One outcome per link; bound outcomes never exceed the size budget
            in total.
        """
        result = ResolutionResult()
        accepted_keys: set[str] = set()
        total_size = 0

        for match in patterns.attachment_link.finditer(html_content):
            url = match.group(1)
            try:
                outcome = self._resolve_candidate(url, new_files, accepted_keys, total_size)
            except OSError as e:
                logger.error("Could not read attachment file for URL %s: %s", url, e)
                outcome = CandidateOutcome(url=url, skip_reason=SkipReason.READ_ERROR, detail=str(e))
            except Exception as e:
                logger.exception("Unexpected error processing attachment from URL %s", url)
                outcome = CandidateOutcome(
                    url=url, skip_reason=SkipReason.UNEXPECTED_ERROR, detail=str(e)
                )

            if outcome.attachment is not None and outcome.key is not None:
                accepted_keys.add(outcome.key)
                total_size += outcome.attachment.size
            result.outcomes.append(outcome)

        logger.info(
            "Resolved %d attachment(s) out of %d link(s) (total: %s)",
            len(result.bound),
            len(result.outcomes),
            humanize.naturalsize(total_size, binary=True),
        )
        return result

    def _resolve_candidate(
        self,
        url: str,
        new_files: NewFiles,
        accepted_keys: set[str],
        total_size: int,
    ) -> CandidateOutcome:
        attachment_id = extract_attachment_id(url)
        if attachment_id is None:
            logger.warning("Could not extract attachment ID from URL: %s", url)
            return CandidateOutcome(url=url, skip_reason=SkipReason.MALFORMED_URL)

        record = self.store.find(attachment_id)
        if record is None:
            logger.debug("No attachment record %d for URL %s", attachment_id, url)
            return CandidateOutcome(
                url=url, attachment_id=attachment_id, skip_reason=SkipReason.NOT_FOUND
            )

        name = sanitize_filename(record.filename)
        if not name or "\x00" in name:
            logger.warning("Skipping attachment %d: unsafe filename %r", attachment_id, record.filename)
            return CandidateOutcome(
                url=url, attachment_id=attachment_id, skip_reason=SkipReason.UNSAFE_FILENAME
            )

        if not new_files.includes(attachment_id, record.filename):
            logger.debug("Skipping attachment %d (%s): not newly added", attachment_id, name)
            return CandidateOutcome(url=url, attachment_id=attachment_id, skip_reason=SkipReason.NOT_NEW)

        key = f"{attachment_id}_{name}"
        if key in accepted_keys:
            logger.debug("Skipping attachment %d (%s): already attached", attachment_id, name)
            return CandidateOutcome(
                url=url, attachment_id=attachment_id, key=key, skip_reason=SkipReason.DUPLICATE
            )

        remaining = self.max_total_size - total_size
        file_size = record.filesize or 0
        if file_size > remaining:
            logger.warning(
                "Skipping %s - would exceed %s limit",
                name,
                humanize.naturalsize(self.max_total_size, binary=True),
            )
            return CandidateOutcome(
                url=url, attachment_id=attachment_id, key=key, skip_reason=SkipReason.OVER_BUDGET
            )

        file_path = record.diskfile()
        if not self.storage.exists(file_path):
            logger.warning("File not found for attachment %s: %s", name, file_path)
            return CandidateOutcome(
                url=url,
                attachment_id=attachment_id,
                key=key,
                skip_reason=SkipReason.FILE_MISSING,
                detail=file_path,
            )

        # One byte past the budget is enough to detect a file larger than its record says
        content = self.storage.read_bytes(file_path, limit=remaining + 1)
        try:
            attachment = Attachment.from_bytes(content, filename=name, max_size=remaining)
        except AttachmentSizeError as e:
            logger.warning("Skipping %s: %s", name, e)
            return CandidateOutcome(
                url=url,
                attachment_id=attachment_id,
                key=key,
                skip_reason=SkipReason.OVER_BUDGET,
                detail=str(e),
            )
        except UnsafeFilenameError as e:
            logger.warning("Skipping attachment %d: %s", attachment_id, e)
            return CandidateOutcome(
                url=url,
                attachment_id=attachment_id,
                key=key,
                skip_reason=SkipReason.UNSAFE_FILENAME,
                detail=str(e),
            )

        logger.info(
            "Adding attachment %s (ID: %d, Size: %s)",
            name,
            attachment_id,
            humanize.naturalsize(attachment.size, binary=True),
        )
        return CandidateOutcome(url=url, attachment_id=attachment_id, key=key, attachment=attachment)
