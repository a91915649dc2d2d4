"""Configuration module for the email attachments plugin.

This module defines all configuration models and parsing logic. Every model is
frozen: configuration is fixed once the plugin has been set up.
"""

import sys
import typing as t

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .attachment.constants import MAX_TOTAL_ATTACHMENT_SIZE

# Verb phrases meaning "added" that follow a file link in a notification:
# en, cs (přidán/a/o), de, fr, es, it
DEFAULT_ADDED_PHRASES: tuple[str, ...] = (
    "added",
    "přidán",
    "přidána",
    "přidáno",
    "hinzugefügt",
    "ajouté",
    "añadido",
    "aggiunto",
)


class StrictBaseModel(BaseModel):
    """Base model with immutable (frozen) configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AttachmentsConfig(StrictBaseModel):
    """Limits and vocabulary used when attaching files to an email.

    Attributes:
        max_total_size: Cumulative byte cap for all files bound to one email
        added_phrases: Exact tokens that mark a linked file as newly added
    """

    max_total_size: int = Field(default=MAX_TOTAL_ATTACHMENT_SIZE, alias="MAX_TOTAL_SIZE", gt=0)
    added_phrases: tuple[str, ...] = Field(default=DEFAULT_ADDED_PHRASES, alias="ADDED_PHRASES")

    @field_validator("added_phrases")
    @classmethod
    def validate_added_phrases(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject an empty vocabulary or blank tokens."""
        phrases = tuple(phrase.strip() for phrase in v)
        if not phrases:
            raise ValueError("ADDED_PHRASES must contain at least one phrase")
        if any(not phrase for phrase in phrases):
            raise ValueError("ADDED_PHRASES must not contain blank phrases")
        return phrases


class HostSettings(StrictBaseModel):
    """Issue tracker settings that shape the links in notification emails.

    Attributes:
        protocol: Protocol used in generated links (http or https)
        relative_url_root: Path prefix the tracker is mounted under
    """

    protocol: str = Field(default="http", alias="PROTOCOL")
    relative_url_root: str = Field(default="", alias="RELATIVE_URL_ROOT")

    @field_validator("protocol", mode="before")
    @classmethod
    def default_blank_protocol(cls, v: t.Optional[str]) -> str:
        """Fall back to http when the protocol setting is unset or blank."""
        if v is None or not str(v).strip():
            return "http"
        return str(v).strip()

    @field_validator("relative_url_root", mode="before")
    @classmethod
    def normalize_url_root(cls, v: t.Optional[str]) -> str:
        """Give a non-empty root exactly one leading and no trailing slash."""
        if v is None:
            return ""
        root = str(v).strip().strip("/")
        return f"/{root}" if root else ""


class StoreConfig(StrictBaseModel):
    """Configuration of the attachment record store.

    Attributes:
        type: Store backend, "json" (inline data) or "json_file"
        data: Inline store data for the "json" backend
        path: Path of the JSON data file for the "json_file" backend
        storage_path: Directory holding the stored attachment files
    """

    type: str = Field(default="json", alias="TYPE")
    data: dict[str, t.Any] = Field(default_factory=dict, alias="DATA")
    path: t.Optional[str] = Field(default=None, alias="PATH")
    storage_path: str = Field(default="files", alias="STORAGE_PATH")


class Config(StrictBaseModel):
    """Main plugin configuration.

    Attributes:
        app_name: Name of the host application
        attachments: Attachment limits and vocabulary
        settings: Host settings used to recognise attachment links
        store: Attachment record store configuration
    """

    app_name: str = Field(default="issue-tracker", alias="APP_NAME")
    attachments: AttachmentsConfig = Field(default_factory=AttachmentsConfig, alias="ATTACHMENTS")
    settings: HostSettings = Field(default_factory=HostSettings, alias="SETTINGS")
    store: StoreConfig = Field(default_factory=StoreConfig, alias="STORE")

    @classmethod
    def parse_yaml(cls, path: str) -> "Config":
        """Parse configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Validated Config instance

        Raises:
            SystemExit: If config file is not found
        """
        try:
            with open(path, "r") as f:
                return cls.model_validate(yaml.safe_load(f) or {})
        except FileNotFoundError:
            print(f"Config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
