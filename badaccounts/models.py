# badaccounts/models.py

from dataclasses import dataclass
from typing import Optional

EXPORT_COLUMNS = ["AccountId", "Message"]


@dataclass
class MismatchRow:
    account_id: Optional[int] = None
    mismatch_reason: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BadAccountRow:
    AccountId: int
    Message: str


@dataclass
class CorrectionResult:
    account_id: int
    ok: bool
    error: Optional[str] = None
