# badaccounts/services/reporter.py

from __future__ import annotations

import smtplib
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from badaccounts.config import BadAccountsConfig
from badaccounts.email.smtp.sender import send_email_html
from badaccounts.email.templates import (
    ISSUES_FOUND_BODY,
    NO_ISSUES_BODY,
    build_subject,
    html_body,
)
from badaccounts.models import BadAccountRow
from badaccounts.services.reporting.excel_formatter import write_rows_xlsx

logger = logging.getLogger(__name__)


def _send(config: BadAccountsConfig, subject: str, body: str, attachment: Optional[Path]) -> bool:
    try:
        send_email_html(config.mail, subject, html_body(body), attachment_path=attachment)
    except (smtplib.SMTPException, OSError) as e:
        logger.exception(f"[email] send to {config.mail.to_email} failed: {e}")
        return False

    logger.info(
        f"[email] sent to {config.mail.to_email} subject={subject!r} "
        f"attachment={attachment.name if attachment else None}"
    )
    return True


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[report] could not delete {path}: {e}")


def send_report(rows: List[BadAccountRow], config: BadAccountsConfig, now: Optional[datetime] = None) -> bool:
    """
    Has rows -> write xlsx, mail it, delete it.
    No rows  -> mail the "no issues" notice, nothing written.

    A render failure propagates; a send failure is logged and returns False.
    """
    subject = build_subject(config.trx_day, now)

    if not rows:
        logger.info("[report] no bad accounts; sending notice")
        return _send(config, subject, NO_ISSUES_BODY, None)

    path = Path(config.output_path)
    try:
        write_rows_xlsx(rows, path)
        logger.info(f"[report] wrote {len(rows)} rows to {path}")
        return _send(config, subject, ISSUES_FOUND_BODY, path)
    finally:
        _remove_quietly(path)
