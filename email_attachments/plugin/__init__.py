from email_attachments.plugin.email_attachments import (
    ConfigPluginError,
    EmailAttachmentsPlugin,
    EmailAttachmentsPluginConfig,
    PluginError,
)

__all__ = [
    "ConfigPluginError",
    "EmailAttachmentsPlugin",
    "EmailAttachmentsPluginConfig",
    "PluginError",
]
