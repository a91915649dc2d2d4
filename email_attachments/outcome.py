"""Per-candidate resolution results.

This module provides the result types for attachment resolution:
- SkipReason: Why a linked file was not attached
- CandidateOutcome: Result of resolving a single attachment link
- ResolutionResult: Aggregated outcomes of one email
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from email_attachments.attachment import Attachment


class SkipReason(Enum):
    """Reason a candidate attachment link was dropped.

    Values:
        MALFORMED_URL: The link carries no numeric attachment ID.
        NOT_FOUND: No attachment record exists for the ID.
        UNSAFE_FILENAME: The stored filename cannot be used as an attachment name.
        NOT_NEW: The file was linked but not reported as added.
        DUPLICATE: The same attachment was already accepted for this email.
        OVER_BUDGET: Attaching the file would exceed the total size cap.
        FILE_MISSING: The stored file does not exist.
        READ_ERROR: The stored file could not be read.
        UNEXPECTED_ERROR: Any other failure while resolving the candidate.
    """

    MALFORMED_URL = "malformed_url"
    NOT_FOUND = "not_found"
    UNSAFE_FILENAME = "unsafe_filename"
    NOT_NEW = "not_new"
    DUPLICATE = "duplicate"
    OVER_BUDGET = "over_budget"
    FILE_MISSING = "file_missing"
    READ_ERROR = "read_error"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass
class CandidateOutcome:
    """Result of resolving one attachment link.

    Attributes:
        url: The link target found in the HTML.
        attachment_id: Numeric ID taken from the URL, if any.
        key: Composite "<id>_<name>" key used for deduplication, if computed.
        attachment: The bound attachment, None if the candidate was skipped.
        skip_reason: Why the candidate was skipped, None if it was bound.
        detail: Human-readable context for a skip.
    """

    url: str
    attachment_id: Optional[int] = None
    key: Optional[str] = None
    attachment: Optional[Attachment] = None
    skip_reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def bound(self) -> bool:
        return self.attachment is not None


@dataclass
class ResolutionResult:
    """Outcomes of all attachment links of one email, in scan order."""

    outcomes: list[CandidateOutcome] = field(default_factory=list)

    @property
    def bound(self) -> list[CandidateOutcome]:
        return [o for o in self.outcomes if o.bound]

    @property
    def skipped(self) -> list[CandidateOutcome]:
        return [o for o in self.outcomes if not o.bound]

    @property
    def total_size(self) -> int:
        return sum(o.attachment.size for o in self.outcomes if o.attachment is not None)

    def skipped_for(self, reason: SkipReason) -> list[CandidateOutcome]:
        return [o for o in self.outcomes if o.skip_reason is reason]

    def attachments_by_name(self) -> dict[str, Attachment]:
        """Map display filename to attachment.

        Two accepted attachments with the same display name but different IDs
        collapse to the one scanned last.
        """
        attachments: dict[str, Attachment] = {}
        for outcome in self.outcomes:
            if outcome.attachment is not None:
                attachments[outcome.attachment.filename] = outcome.attachment
        return attachments
