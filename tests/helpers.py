from __future__ import annotations

from pathlib import Path

from badaccounts.config import BadAccountsConfig, MailSettings


def make_config(output_path: Path, **overrides) -> BadAccountsConfig:
    values = dict(
        connection_string="Driver={x};Server=db;Database=ER",
        find_procedure="[dbo].[FindBadAccounts]",
        correct_procedure="[dbo].[CorrectAccountStatus]",
        trx_day=1,
        mail=MailSettings(
            smtp_server="smtp.example.com",
            smtp_port=587,
            from_email="reports@example.com",
            email_password="pw",
            to_email="team@example.com",
        ),
        output_path=output_path,
    )
    values.update(overrides)
    return BadAccountsConfig(**values)
