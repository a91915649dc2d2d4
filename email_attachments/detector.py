"""Detection of newly added files in notification HTML.

Notification emails list attachment changes as links to the attachment,
followed by a verb phrase such as ``added``::

    <a href="https://tracker.example/attachments/download/42/spec.pdf">spec.pdf</a> added

The patterns here work on the raw markup text rather than a parsed document so
that they match exactly the anchor shape the tracker renders. Every value that
comes from settings or configuration is escaped before it is embedded in a
pattern.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_ATTACHMENT_ID_PATTERN = re.compile(r"/attachments/(?:download/)?(\d+)")


@dataclass(frozen=True)
class LinkPatterns:
    """Compiled patterns for attachment links of one tracker configuration.

    Attributes:
        new_file: Matches a link followed by an "added" phrase; groups are the
            href, the anchor text and the phrase.
        attachment_link: Matches any link below the tracker's URL root; the
            only group is the href.
    """

    new_file: re.Pattern[str]
    attachment_link: re.Pattern[str]

    @classmethod
    def build(cls, protocol: str, url_root: str, added_phrases: tuple[str, ...]) -> LinkPatterns:
        base_url = rf"{re.escape(protocol)}://[^/\"]+{re.escape(url_root)}"
        # Longest first so "přidána" wins over its prefix "přidán"
        phrases = sorted(added_phrases, key=len, reverse=True)
        verbs = "|".join(re.escape(phrase) for phrase in phrases)

        new_file = re.compile(
            rf'<a href="({base_url}[^"]+)"[^>]*>([^<]*)</a> ({verbs})(?!\w)',
            re.IGNORECASE,
        )
        attachment_link = re.compile(rf'<a href="({base_url}[^"]+)"[^>]*>')
        return cls(new_file=new_file, attachment_link=attachment_link)


@dataclass(frozen=True)
class NewFiles:
    """Files reported as added in one notification.

    Attributes:
        hrefs: Link targets found on "added" lines, in document order.
        names: Anchor texts of those links with HTML entities decoded.
    """

    hrefs: tuple[str, ...] = ()
    names: frozenset[str] = field(default_factory=frozenset)

    def __bool__(self) -> bool:
        return bool(self.hrefs)

    def __len__(self) -> int:
        return len(self.hrefs)

    @property
    def attachment_ids(self) -> frozenset[int]:
        ids = (extract_attachment_id(href) for href in self.hrefs)
        return frozenset(i for i in ids if i is not None)

    def includes(self, attachment_id: int, filename: str) -> bool:
        """Tell whether a stored attachment was one of the added files.

        A record counts as added when an "added" line linked to its ID, or
        when its stored filename equals the text of such a link.
        """
        return attachment_id in self.attachment_ids or filename in self.names


def extract_attachment_id(url: str) -> int | None:
    """Extract the numeric attachment ID from an attachment URL.

    Accepts ``/attachments/<id>`` and ``/attachments/download/<id>/<name>``.
    Returns None when the path carries no purely numeric ID.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        return None

    match = _ATTACHMENT_ID_PATTERN.search(path)
    if match is None:
        return None

    attachment_id = match.group(1)
    if not attachment_id.isascii() or not attachment_id.isdigit():
        return None
    return int(attachment_id)


def detect_new_files(html_content: str, patterns: LinkPatterns) -> NewFiles:
    """Scan notification HTML for files reported as added.

    Args:
        html_content: The original, unmodified HTML body.
        patterns: Link patterns for the current tracker settings.

    Returns:
        The added files; empty when no "added" line was found.
    """
    hrefs: list[str] = []
    names: set[str] = set()

    for match in patterns.new_file.finditer(html_content):
        href, label, phrase = match.groups()
        logger.info("Found new file match: %s (%s)", label, phrase)
        hrefs.append(href)
        names.add(html.unescape(label).strip())

    logger.info("Found %d new file(s): %s", len(hrefs), sorted(names))
    return NewFiles(hrefs=tuple(hrefs), names=frozenset(names))
