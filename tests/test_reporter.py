"""Unit tests for the has-data / no-data report fork."""

from __future__ import annotations

import smtplib
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from openpyxl import load_workbook

from badaccounts.email.templates import ISSUES_FOUND_BODY, NO_ISSUES_BODY
from badaccounts.models import BadAccountRow
from badaccounts.services.reporter import send_report
from helpers import make_config

NOW = datetime(2026, 3, 2, 7, 0)


class ReporterTestCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.output = Path(tmp.name) / "Downloads" / "output.xlsx"
        self.config = make_config(self.output)

        sender = patch("badaccounts.services.reporter.send_email_html")
        self.send = sender.start()
        self.addCleanup(sender.stop)


class TestSendReport(ReporterTestCase):
    def test_rows_attached_then_deleted(self) -> None:
        seen = {}

        def capture(settings, subject, body, attachment_path=None):
            seen["exists"] = attachment_path.exists()
            ws = load_workbook(attachment_path).active
            seen["shape"] = (ws.max_row, ws.max_column)
            seen["subject"] = subject
            seen["body"] = body

        self.send.side_effect = capture
        rows = [BadAccountRow(AccountId=101, Message="Zero balance, active status")]

        self.assertTrue(send_report(rows, self.config, now=NOW))

        self.assertTrue(seen["exists"])
        self.assertEqual(seen["shape"], (2, 2))
        self.assertEqual(seen["subject"], "ER Bad Accounts - 03/01/2026")
        self.assertIn(ISSUES_FOUND_BODY, seen["body"])
        self.assertFalse(self.output.exists())

    def test_no_rows_sends_notice_only(self) -> None:
        self.assertTrue(send_report([], self.config, now=NOW))

        self.send.assert_called_once()
        _, _, body = self.send.call_args[0]
        self.assertIn(NO_ISSUES_BODY, body)
        self.assertIsNone(self.send.call_args[1]["attachment_path"])
        self.assertFalse(self.output.parent.exists())

    def test_send_failure_logged_and_file_removed(self) -> None:
        self.send.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        rows = [BadAccountRow(AccountId=1, Message="x")]

        with self.assertLogs("badaccounts.services.reporter", level="ERROR"):
            self.assertFalse(send_report(rows, self.config, now=NOW))

        self.assertFalse(self.output.exists())

    def test_connection_refused_is_not_fatal(self) -> None:
        self.send.side_effect = ConnectionRefusedError("smtp down")
        with self.assertLogs("badaccounts.services.reporter", level="ERROR"):
            self.assertFalse(send_report([], self.config, now=NOW))

    def test_render_failure_propagates(self) -> None:
        rows = [BadAccountRow(AccountId=1, Message="x")]
        with patch("badaccounts.services.reporter.write_rows_xlsx", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                send_report(rows, self.config, now=NOW)
        self.send.assert_not_called()

    def test_partial_file_removed_when_render_fails(self) -> None:
        def write_then_fail(rows, path):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"PK\x03\x04 truncated")
            raise OSError("disk full")

        rows = [BadAccountRow(AccountId=1, Message="x")]
        with patch("badaccounts.services.reporter.write_rows_xlsx", side_effect=write_then_fail):
            with self.assertRaises(OSError):
                send_report(rows, self.config, now=NOW)

        self.send.assert_not_called()
        self.assertTrue(self.output.parent.exists())
        self.assertFalse(self.output.exists())


if __name__ == "__main__":
    unittest.main()
