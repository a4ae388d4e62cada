# badaccounts/email/templates.py

import html
from datetime import datetime, timedelta
from typing import Optional

SUBJECT_PREFIX = "ER Bad Accounts"
ISSUES_FOUND_BODY = "Please find attached ER bad accounts"
NO_ISSUES_BODY = "No bad account found"


def report_date(days_back: int, now: Optional[datetime] = None) -> str:
    """now - days_back, as MM/DD/YYYY (no locale lookups)."""
    d = (now or datetime.now()) - timedelta(days=int(days_back))
    return f"{d.month:02d}/{d.day:02d}/{d.year:04d}"


def build_subject(days_back: int, now: Optional[datetime] = None) -> str:
    return f"{SUBJECT_PREFIX} - {report_date(days_back, now)}"


def html_body(text: str) -> str:
    return f"<html><body><p>{html.escape(text)}</p></body></html>"
