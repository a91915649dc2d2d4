"""Plugin registering the attachments interceptor with a host mailer."""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from email_attachments.config import AttachmentsConfig, HostSettings, StoreConfig
from email_attachments.interceptor import EmailAttachmentsInterceptor, SettingsProvider
from email_attachments.mailer import Mailer
from email_attachments.store import LocalStorage, Storage, StoreConfigError, store_from_config

logger = logging.getLogger(__name__)


class PluginError(Exception):
    """Exception raised when the plugin cannot be applied to a mailer."""


class ConfigPluginError(PluginError):
    """Exception raised for an invalid plugin configuration."""


class EmailAttachmentsPluginConfig(BaseModel):
    """Configuration for EmailAttachmentsPlugin."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    attachments: AttachmentsConfig = Field(default_factory=AttachmentsConfig, alias="ATTACHMENTS")
    settings: HostSettings = Field(default_factory=HostSettings, alias="SETTINGS")
    store: StoreConfig = Field(default_factory=StoreConfig, alias="STORE")


class EmailAttachmentsPlugin:
    """Send attachments directly in notification emails."""

    name = "email_attachments"
    description = "Send newly added attachments directly in notification emails."
    version = "0.3.0"

    def __init__(
        self,
        config: Dict[str, Any],
        settings_provider: Optional[SettingsProvider] = None,
        storage: Optional[Storage] = None,
    ):
        try:
            self.config = EmailAttachmentsPluginConfig.model_validate(config)
        except ValidationError as e:
            raise ConfigPluginError(f"Invalid configuration: {e}") from e
        self.settings_provider = settings_provider
        self.storage = storage
        self.interceptor: Optional[EmailAttachmentsInterceptor] = None

    def _static_settings(self) -> HostSettings:
        return self.config.settings

    def process(self, mailer: Mailer) -> Mailer:
        """Open the store and register the interceptor with ``mailer``.

        Raises:
            PluginError: If the attachment store cannot be opened.
        """
        try:
            store = store_from_config(self.config.store)
        except (StoreConfigError, OSError, ValueError) as e:
            raise PluginError(f"Could not open attachment store: {e}") from e

        self.interceptor = EmailAttachmentsInterceptor(
            config=self.config.attachments,
            store=store,
            settings_provider=self.settings_provider or self._static_settings,
            storage=self.storage or LocalStorage(),
        )
        mailer.register_interceptor(self.interceptor)
        logger.info("Processed plugin: %s %s", self.name, self.version)
        return mailer
