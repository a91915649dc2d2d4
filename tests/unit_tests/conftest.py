from pathlib import Path

import pytest
from fake_mail import FakeStore

from email_attachments.config import AttachmentsConfig, HostSettings
from email_attachments.detector import LinkPatterns


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "files"
    directory.mkdir()
    return directory


@pytest.fixture
def store(storage_dir: Path) -> FakeStore:
    return FakeStore(storage_dir)


@pytest.fixture
def host_settings() -> HostSettings:
    return HostSettings(protocol="http", relative_url_root="/root")


@pytest.fixture
def attachments_config() -> AttachmentsConfig:
    return AttachmentsConfig()


@pytest.fixture
def patterns(host_settings: HostSettings, attachments_config: AttachmentsConfig) -> LinkPatterns:
    return LinkPatterns.build(
        host_settings.protocol, host_settings.relative_url_root, attachments_config.added_phrases
    )
