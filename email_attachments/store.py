"""Attachment record store and file storage.

The issue tracker owns attachment metadata and the stored files; this module
defines the read-only interface the plugin needs from them together with
JSON-backed implementations.
"""

import json
import logging
import os
import typing as t
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, Field

from email_attachments.config import StoreConfig

logger = logging.getLogger(__name__)


class StoreConfigError(Exception):
    """Raised when the store configuration cannot be turned into a store."""


@t.runtime_checkable
class AttachmentRecord(t.Protocol):
    """Persisted metadata of an uploaded file."""

    id: int
    filename: str
    filesize: int

    def diskfile(self) -> str:
        """Return the storage location of the file."""
        ...


class StoredAttachment(BaseModel):
    """Attachment record as kept by the JSON stores.

    Attributes:
        id: Numeric attachment identifier
        filename: Original upload name, possibly with path components
        filesize: Size of the stored file in bytes
        disk_directory: Optional sub-directory below the storage root
        disk_filename: Name of the file on disk
        storage_path: Root directory of stored files
    """

    id: int
    filename: str
    filesize: int = 0
    disk_directory: t.Optional[str] = None
    disk_filename: str
    storage_path: str = ""

    def diskfile(self) -> str:
        parts = [self.storage_path]
        if self.disk_directory:
            parts.append(self.disk_directory)
        parts.append(self.disk_filename)
        return os.path.join(*parts)


class AttachmentStore(ABC):
    """Lookup of attachment records by numeric ID."""

    @abstractmethod
    def find(self, attachment_id: int) -> t.Optional[AttachmentRecord]:
        """Return the record with the given ID, or None if there is none."""
        pass


class JsonAttachmentStore(AttachmentStore):
    """In-memory store backed by a dict with an "attachments" list."""

    def __init__(self, data: dict[str, t.Any], storage_path: str):
        self.data = data
        self.storage_path = storage_path

    def _records(self) -> list[dict[str, t.Any]]:
        return self.data.get("attachments", [])

    def find(self, attachment_id: int) -> t.Optional[StoredAttachment]:
        for raw in self._records():
            if int(raw.get("id", -1)) == attachment_id:
                return StoredAttachment.model_validate(
                    {**raw, "storage_path": self.storage_path}
                )
        return None


class JsonFileAttachmentStore(JsonAttachmentStore):
    """JSON store whose data is loaded from a file."""

    def __init__(self, path: str, storage_path: str):
        self.data_file_path = path
        with open(self.data_file_path) as json_file:
            data = json.load(json_file)
        super().__init__(data, storage_path)


def store_from_config(config: StoreConfig) -> AttachmentStore:
    """Create an attachment store from configuration.

    Raises:
        StoreConfigError: If the store type is unknown or a required option is missing
    """
    if config.type == "json":
        return JsonAttachmentStore(config.data, config.storage_path)
    if config.type == "json_file":
        if not config.path:
            raise StoreConfigError("Store type 'json_file' requires PATH")
        return JsonFileAttachmentStore(config.path, config.storage_path)
    raise StoreConfigError(f"Unknown store type: {config.type}")


@t.runtime_checkable
class Storage(t.Protocol):
    """Read access to stored attachment files."""

    def exists(self, path: str) -> bool: ...

    def read_bytes(self, path: str, limit: t.Optional[int] = None) -> bytes: ...


class LocalStorage:
    """Storage on the local filesystem."""

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read_bytes(self, path: str, limit: t.Optional[int] = None) -> bytes:
        """Read a whole file in binary mode.

        When limit is given at most limit bytes are read, so a file that grew
        after its size was recorded never loads more than the caller allows.
        """
        with Path(path).open("rb") as f:
            if limit is None:
                return f.read()
            return f.read(limit)
