"""Unit tests for SMTP sending and email text."""

from __future__ import annotations

import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from badaccounts.config import MailSettings
from badaccounts.email.smtp.sender import build_message, send_email_html
from badaccounts.email.templates import build_subject, html_body, report_date

SETTINGS = MailSettings(
    smtp_server="smtp.example.com",
    smtp_port=587,
    from_email="reports@example.com",
    email_password="pw",
    to_email="team@example.com",
)


class TestTemplates(unittest.TestCase):
    def test_report_date_is_days_back(self) -> None:
        self.assertEqual(report_date(1, datetime(2026, 3, 1, 6, 30)), "02/28/2026")
        self.assertEqual(report_date(0, datetime(2026, 3, 1)), "03/01/2026")

    def test_subject(self) -> None:
        self.assertEqual(build_subject(2, datetime(2026, 1, 10)), "ER Bad Accounts - 01/08/2026")

    def test_html_body_escapes(self) -> None:
        self.assertEqual(html_body("a < b"), "<html><body><p>a &lt; b</p></body></html>")


class TestBuildMessage(unittest.TestCase):
    def test_html_without_attachment(self) -> None:
        msg = build_message(SETTINGS, "subj", "<p>hi</p>")
        self.assertEqual(msg["To"], "team@example.com")
        self.assertEqual(msg["From"], "reports@example.com")
        parts = msg.get_payload()
        self.assertEqual(len(parts), 1)
        self.assertEqual(parts[0].get_content_type(), "text/html")

    def test_xlsx_attachment(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "output.xlsx"
            path.write_bytes(b"PK\x03\x04data")
            msg = build_message(SETTINGS, "subj", "<p>hi</p>", attachment_path=path)

        parts = msg.get_payload()
        self.assertEqual(len(parts), 2)
        self.assertEqual(parts[1].get_filename(), "output.xlsx")
        self.assertEqual(
            parts[1].get_content_type(),
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        self.assertEqual(parts[1].get_payload(decode=True), b"PK\x03\x04data")


class TestSendEmailHtml(unittest.TestCase):
    def test_starttls_submission(self) -> None:
        with patch("badaccounts.email.smtp.sender.smtplib.SMTP") as smtp_cls:
            send_email_html(SETTINGS, "subj", "<p>hi</p>")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=60)
        server = smtp_cls.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("reports@example.com", "pw")
        from_addr, to_addrs, _ = server.sendmail.call_args[0]
        self.assertEqual(from_addr, "reports@example.com")
        self.assertEqual(to_addrs, ["team@example.com"])

    def test_implicit_tls_on_465(self) -> None:
        settings = MailSettings("smtp.example.com", 465, "reports@example.com", "pw", "team@example.com")
        with patch("badaccounts.email.smtp.sender.smtplib.SMTP_SSL") as ssl_cls, \
                patch("badaccounts.email.smtp.sender.smtplib.SMTP") as plain_cls:
            send_email_html(settings, "subj", "<p>hi</p>")

        plain_cls.assert_not_called()
        ssl_cls.return_value.__enter__.return_value.login.assert_called_once_with("reports@example.com", "pw")


if __name__ == "__main__":
    unittest.main()
