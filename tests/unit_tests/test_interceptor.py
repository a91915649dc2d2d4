"""End-to-end tests of the attachments interceptor."""

import email
from email import policy
from email.message import EmailMessage
from unittest.mock import MagicMock

import pytest
from fake_mail import FakeStore, file_link, make_message, notification_html

from email_attachments.config import AttachmentsConfig, HostSettings
from email_attachments.interceptor import EmailAttachmentsInterceptor
from email_attachments.mailer import Mailer


@pytest.fixture
def interceptor(store: FakeStore, host_settings: HostSettings) -> EmailAttachmentsInterceptor:
    return EmailAttachmentsInterceptor(
        config=AttachmentsConfig(),
        store=store,
        settings_provider=lambda: host_settings,
    )


def attachment_parts(message: EmailMessage) -> list[EmailMessage]:
    return message.get_payload()[1:]


def raw_notification(html: bytes, charset: str) -> EmailMessage:
    """Parse a wire-format notification whose HTML part declares ``charset``."""
    raw = (
        b"Subject: [Project - Bug #7] Crash on save\r\n"
        b"MIME-Version: 1.0\r\n"
        b'Content-Type: multipart/alternative; boundary="b1"\r\n'
        b"\r\n"
        b"--b1\r\n"
        b"Content-Type: text/plain; charset=us-ascii\r\n"
        b"\r\n"
        b"Issue #7 has been updated.\r\n"
        b"--b1\r\n"
        + f"Content-Type: text/html; charset={charset}\r\n".encode("ascii")
        + b"Content-Transfer-Encoding: 8bit\r\n"
        b"\r\n" + html + b"\r\n"
        b"--b1--\r\n"
    )
    return email.message_from_bytes(raw, policy=policy.default)


class TestNoOp:
    """Messages that must pass through untouched."""

    def test_single_part_message(self, interceptor: EmailAttachmentsInterceptor):
        message = EmailMessage()
        message.set_content(f"{file_link(42, 'spec.pdf')} added")
        before = message.as_bytes()

        assert interceptor.delivering_email(message) is None
        assert message.as_bytes() == before

    def test_html_only_message(self, interceptor: EmailAttachmentsInterceptor):
        message = make_message(notification_html(f"{file_link(42, 'spec.pdf')} added"), text=None)
        before = message.as_bytes()

        assert interceptor.delivering_email(message) is None
        assert message.as_bytes() == before

    def test_no_added_phrase(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(42, "spec.pdf", b"PDF-BYTES")
        message = make_message(notification_html(f"See {file_link(42, 'spec.pdf')}"))
        before = message.as_bytes()

        assert interceptor.delivering_email(message) is None
        assert message.as_bytes() == before
        assert message.get_content_type() == "multipart/alternative"

    def test_unknown_html_charset(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(1, "a.txt", b"a")
        html = notification_html(f"{file_link(1, 'a.txt')} added").encode("ascii")
        message = raw_notification(html, "x-bogus")
        before = message.as_bytes()

        assert interceptor.delivering_email(message) is None
        assert message.as_bytes() == before

    def test_unknown_html_charset_is_still_delivered(self, interceptor: EmailAttachmentsInterceptor):
        transport = MagicMock()
        mailer = Mailer(transport)
        mailer.register_interceptor(interceptor)
        html = notification_html(f"{file_link(1, 'a.txt')} added").encode("ascii")
        message = raw_notification(html, "x-bogus")

        mailer.deliver(message)

        transport.assert_called_once_with(message)
        assert message.get_content_type() == "multipart/alternative"


class TestAttaching:
    def test_added_file_attached(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(42, "spec.pdf", b"PDF-BYTES", filesize=1024)
        html = '<html><body><a href="http://host/root/attachments/42">spec.pdf</a> added</body></html>'
        message = make_message(html)

        result = interceptor.delivering_email(message)

        assert result is not None
        assert message.get_content_type() == "multipart/mixed"
        alternative = message.get_payload()[0]
        assert alternative.get_content_type() == "multipart/alternative"
        assert [p.get_content_type() for p in alternative.get_payload()] == ["text/plain", "text/html"]

        parts = attachment_parts(message)
        assert len(parts) == 1
        assert parts[0].get_filename() == "spec.pdf"
        assert parts[0].get_payload(decode=True) == b"PDF-BYTES"

    def test_html_body_gets_compat_space(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(1, "a.txt", b"a")
        message = make_message(f"<html><body>{file_link(1, 'a.txt')} added</body></html>")

        interceptor.delivering_email(message)

        html_part = message.get_payload()[0].get_payload()[1]
        assert "<body> <a href=" in html_part.get_content()

    def test_missing_record_still_restructures(
        self, interceptor: EmailAttachmentsInterceptor
    ):
        message = make_message(notification_html(f"{file_link(42, 'spec.pdf')} added"))

        result = interceptor.delivering_email(message)

        assert result is not None
        assert result.bound == []
        assert message.get_content_type() == "multipart/mixed"
        assert attachment_parts(message) == []

    def test_same_display_name_last_wins(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(1, "log.txt", b"first")
        store.add(2, "log.txt", b"second")
        message = make_message(
            notification_html(f"{file_link(1, 'log.txt')} added", f"{file_link(2, 'log.txt')} added")
        )

        interceptor.delivering_email(message)

        parts = attachment_parts(message)
        assert [p.get_filename() for p in parts] == ["log.txt"]
        assert parts[0].get_payload(decode=True) == b"second"

    def test_budget_applies(self, store: FakeStore, host_settings: HostSettings):
        store.add(1, "a.bin", b"a" * 60)
        store.add(2, "b.bin", b"b" * 60)
        interceptor = EmailAttachmentsInterceptor(
            config=AttachmentsConfig(max_total_size=100),
            store=store,
            settings_provider=lambda: host_settings,
        )
        message = make_message(
            notification_html(f"{file_link(1, 'a.bin')} added", f"{file_link(2, 'b.bin')} added")
        )

        interceptor.delivering_email(message)

        assert [p.get_filename() for p in attachment_parts(message)] == ["a.bin"]

    def test_message_still_serializes(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(1, "a.txt", b"a")
        message = make_message(notification_html(f"{file_link(1, 'a.txt')} added"))

        interceptor.delivering_email(message)

        raw = message.as_bytes()
        assert b"Content-Disposition: attachment" in raw
        assert b'filename="a.txt"' in raw


class TestSettings:
    """Host settings are read on every call."""

    def test_settings_read_per_call(self, store: FakeStore):
        store.add(1, "a.txt", b"a")
        current = {"settings": HostSettings(protocol="https", relative_url_root="/tracker")}
        interceptor = EmailAttachmentsInterceptor(
            config=AttachmentsConfig(),
            store=store,
            settings_provider=lambda: current["settings"],
        )
        html = notification_html(f"{file_link(1, 'a.txt')} added")

        first = make_message(html)
        assert interceptor.delivering_email(first) is None

        current["settings"] = HostSettings(protocol="http", relative_url_root="/root")
        second = make_message(html)
        result = interceptor.delivering_email(second)

        assert result is not None
        assert len(result.bound) == 1

    def test_url_root_with_pattern_characters(self, store: FakeStore):
        store.add(1, "a.txt", b"a")
        interceptor = EmailAttachmentsInterceptor(
            config=AttachmentsConfig(),
            store=store,
            settings_provider=lambda: HostSettings(relative_url_root="/r.*"),
        )
        lookalike = make_message(notification_html(f"{file_link(1, 'a.txt', root='/rxyz')} added"))
        literal = make_message(notification_html(f"{file_link(1, 'a.txt', root='/r.*')} added"))

        assert interceptor.delivering_email(lookalike) is None
        assert interceptor.delivering_email(literal) is not None

    @pytest.mark.parametrize("root", ["root", "root/", "/root/"])
    def test_url_root_is_normalized(self, store: FakeStore, root: str):
        store.add(1, "a.txt", b"a")
        interceptor = EmailAttachmentsInterceptor(
            config=AttachmentsConfig(),
            store=store,
            settings_provider=lambda: HostSettings(relative_url_root=root),
        )
        message = make_message(notification_html(f"{file_link(1, 'a.txt', root='/root')} added"))

        result = interceptor.delivering_email(message)

        assert result is not None
        assert len(result.bound) == 1


class TestCharsets:
    """HTML bodies whose declared charset cannot carry the rewritten content."""

    def test_eight_bit_html_declared_ascii(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        store.add(1, "a.txt", b"a")
        html = notification_html(f"Příloha {file_link(1, 'a.txt')} added").encode("utf-8")
        message = raw_notification(html, "us-ascii")

        result = interceptor.delivering_email(message)

        assert result is not None
        assert message.get_content_type() == "multipart/mixed"
        html_part = message.get_payload()[0].get_payload()[1]
        assert html_part.get_content_charset() == "utf-8"
        assert [p.get_filename() for p in attachment_parts(message)] == ["a.txt"]
        assert message.as_bytes()


class TestComposite:
    def test_eml_file_attached_as_opaque_bytes(self, interceptor: EmailAttachmentsInterceptor, store: FakeStore):
        content = b"From: a@b\r\n\r\nhi"
        store.add(1, "fwd.eml", content)
        message = make_message(notification_html(f"{file_link(1, 'fwd.eml')} added"))

        interceptor.delivering_email(message)

        raw = message.as_bytes()
        assert b"message/rfc822" not in raw
        parts = attachment_parts(message)
        assert len(parts) == 1
        assert parts[0].get_content_type() == "application/octet-stream"
        assert parts[0].get_filename() == "fwd.eml"
        assert parts[0].get_payload(decode=True) == content

        reparsed = email.message_from_bytes(raw, policy=policy.default)
        attached = [p for p in reparsed.walk() if p.get_filename()]
        assert [a.get_filename() for a in attached] == ["fwd.eml"]
        assert attached[0].get_content() == content
