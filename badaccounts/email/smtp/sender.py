# badaccounts/email/smtp/sender.py

import smtplib
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Optional, Union

from badaccounts.config import MailSettings

SMTP_TIMEOUT = 60
XLSX_MIME = ("application", "vnd.openxmlformats-officedocument.spreadsheetml.sheet")


def build_message(
    settings: MailSettings,
    subject: str,
    body_html: str,
    attachment_path: Optional[Union[str, Path]] = None,
) -> MIMEMultipart:
    msg = MIMEMultipart()
    msg["From"] = settings.from_email
    msg["To"] = settings.to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(body_html, "html", "utf-8"))

    if attachment_path is not None:
        path = Path(attachment_path)
        maintype, subtype = XLSX_MIME if path.suffix.lower() == ".xlsx" else ("application", "octet-stream")
        part = MIMEBase(maintype, subtype)
        part.set_payload(path.read_bytes())
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{path.name}"')
        msg.attach(part)

    return msg


def send_email_html(
    settings: MailSettings,
    subject: str,
    body_html: str,
    attachment_path: Optional[Union[str, Path]] = None,
) -> None:
    """
    Send one HTML email (optionally with one attachment) over authenticated SMTP.
    Port 465 -> implicit TLS, anything else -> STARTTLS. Errors propagate.
    """
    msg = build_message(settings, subject, body_html, attachment_path)

    if settings.smtp_port == 465:
        with smtplib.SMTP_SSL(settings.smtp_server, settings.smtp_port, timeout=SMTP_TIMEOUT) as server:
            server.login(settings.from_email, settings.email_password)
            server.sendmail(settings.from_email, [settings.to_email], msg.as_string())
    else:
        with smtplib.SMTP(settings.smtp_server, settings.smtp_port, timeout=SMTP_TIMEOUT) as server:
            server.starttls()
            server.login(settings.from_email, settings.email_password)
            server.sendmail(settings.from_email, [settings.to_email], msg.as_string())
