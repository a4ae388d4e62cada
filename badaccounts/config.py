# badaccounts/config.py

from __future__ import annotations

import os
import re
import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "BADACCOUNTS_"
MAIN_SECTION = "BAD_ACCOUNTS"
EMAIL_SECTION = "EMAIL_SETTINGS"

DEFAULT_ENV_PATH = "badaccounts.ini"
DEFAULT_COMMAND_TIMEOUT = 300
DEFAULT_OUTPUT_PATH = Path.home() / "Downloads" / "output.xlsx"


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class MailSettings:
    smtp_server: str
    smtp_port: int
    from_email: str
    email_password: str
    to_email: str


@dataclass(frozen=True)
class BadAccountsConfig:
    connection_string: str
    find_procedure: str
    correct_procedure: Optional[str]
    trx_day: int
    mail: MailSettings
    command_timeout: int = DEFAULT_COMMAND_TIMEOUT
    output_path: Path = DEFAULT_OUTPUT_PATH
    correct_status: bool = True
    restrict_to_recent_trx: bool = False


# ------------------------
# Small helpers
# ------------------------

_INLINE_COMMENT_RE = re.compile(r"(?:^|\s+);.*$")


def _strip(s: str | None) -> str:
    """Drop a trailing ' ; comment'. A bare ';' is kept (ODBC connection strings use it)."""
    if not s:
        return ""
    return _INLINE_COMMENT_RE.sub("", s.strip()).strip()


def _section(cfg: configparser.ConfigParser, name: str) -> Optional[configparser.SectionProxy]:
    return cfg[name] if cfg.has_section(name) else None


def _get(section: Optional[configparser.SectionProxy], key: str, fallback: str = "") -> str:
    """Env var BADACCOUNTS_<KEY> wins over the INI value."""
    env_val = os.getenv(f"{ENV_PREFIX}{key}")
    if env_val is not None and env_val.strip():
        return _strip(env_val)
    if section is None:
        return fallback
    return _strip(section.get(key, fallback=fallback)) or fallback


def _to_bool(v: str, fallback: bool) -> bool:
    if not v:
        return fallback
    return v.lower() in {"1", "true", "yes", "y", "on"}


def _to_int(v: str, key: str, errors: List[str]) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        errors.append(f"{key} must be an integer (got {v!r})")
        return 0


def _load_cfg(env_path: str) -> configparser.ConfigParser:
    cfg = configparser.ConfigParser(interpolation=None)  # passwords may contain %
    cfg.optionxform = str  # keep keys upper-case as written
    cfg.read(env_path)
    return cfg


# ------------------------
# Public
# ------------------------

def load_config(env_path: Optional[str] = None) -> BadAccountsConfig:
    """
    Read the INI config once (secrets may come from .env) and build an immutable config.

    Every key can be overridden by an env var prefixed BADACCOUNTS_.
    Raises ConfigError naming every missing/invalid key.
    """
    load_dotenv()
    env_path = env_path or os.getenv(f"{ENV_PREFIX}ENV_PATH") or DEFAULT_ENV_PATH
    cfg = _load_cfg(env_path)

    main = _section(cfg, MAIN_SECTION)
    mail = _section(cfg, EMAIL_SECTION)

    errors: List[str] = []

    def required(section, key: str) -> str:
        v = _get(section, key)
        if not v:
            errors.append(f"missing {key}")
        return v

    connection_string = required(main, "CONNECTION_STRING")
    find_procedure = required(main, "FIND_PROCEDURE")
    trx_day_raw = required(main, "TRX_DAY")

    correct_status = _to_bool(_get(main, "CORRECT_STATUS"), True)
    correct_procedure = _get(main, "CORRECT_PROCEDURE") or None
    if correct_status and not correct_procedure:
        errors.append("missing CORRECT_PROCEDURE (required when CORRECT_STATUS is on)")

    restrict = _to_bool(_get(main, "RESTRICT_TO_RECENT_TRX"), False)
    timeout_raw = _get(main, "COMMAND_TIMEOUT", str(DEFAULT_COMMAND_TIMEOUT))
    output_raw = _get(main, "OUTPUT_PATH")

    smtp_server = required(mail, "SMTP_SERVER")
    smtp_port_raw = required(mail, "SMTP_PORT")
    from_email = required(mail, "FROM_EMAIL")
    email_password = required(mail, "EMAIL_PASSWORD")
    to_email = required(mail, "TO_EMAIL")

    trx_day = _to_int(trx_day_raw, "TRX_DAY", errors) if trx_day_raw else 0
    if trx_day < 0:
        errors.append("TRX_DAY must be >= 0")
    smtp_port = _to_int(smtp_port_raw, "SMTP_PORT", errors) if smtp_port_raw else 0
    command_timeout = _to_int(timeout_raw, "COMMAND_TIMEOUT", errors)

    if errors:
        raise ConfigError(f"Invalid configuration in {env_path}: " + "; ".join(errors))

    return BadAccountsConfig(
        connection_string=connection_string,
        find_procedure=find_procedure,
        correct_procedure=correct_procedure,
        trx_day=trx_day,
        mail=MailSettings(
            smtp_server=smtp_server,
            smtp_port=smtp_port,
            from_email=from_email,
            email_password=email_password,
            to_email=to_email,
        ),
        command_timeout=command_timeout,
        output_path=Path(output_raw).expanduser() if output_raw else DEFAULT_OUTPUT_PATH,
        correct_status=correct_status,
        restrict_to_recent_trx=restrict,
    )
