# badaccounts/services/reconciler.py

from __future__ import annotations

import math
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set

import pandas as pd

from badaccounts.models import BadAccountRow, MismatchRow

logger = logging.getLogger(__name__)

ID_COL = "AccountId"
REASON_COL = "MismatchReason"


def _is_null(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and math.isnan(v):
        return True
    return v is pd.NA or v is pd.NaT


def _decode_account_id(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError(f"boolean is not an account id: {v!r}")
    if isinstance(v, int):
        return v
    if isinstance(v, (float, Decimal)):
        if v != int(v):
            raise ValueError(f"non-integral account id: {v!r}")
        return int(v)
    if isinstance(v, str) and v.strip().lstrip("-").isdigit():
        return int(v.strip())
    # numpy scalars
    if hasattr(v, "item"):
        return _decode_account_id(v.item())
    raise ValueError(f"unsupported account id: {v!r}")


def decode_mismatch_row(record: Dict[str, Any]) -> MismatchRow:
    """
    Single typed decode of one raw result-set row. Never raises;
    problems land in `error`.
    """
    raw_id = record.get(ID_COL)
    raw_reason = record.get(REASON_COL)

    reason = "" if _is_null(raw_reason) else str(raw_reason)

    if _is_null(raw_id):
        return MismatchRow(account_id=None, mismatch_reason=reason)

    try:
        account_id = _decode_account_id(raw_id)
    except (ValueError, OverflowError) as e:
        return MismatchRow(account_id=None, mismatch_reason=reason, error=str(e))

    return MismatchRow(account_id=account_id, mismatch_reason=reason)


def _records(df: pd.DataFrame) -> Iterable[Dict[str, Any]]:
    if df is None or df.empty:
        return []

    missing = [c for c in (ID_COL, REASON_COL) if c not in df.columns]
    if missing:
        raise KeyError(f"Result set is missing column(s): {missing}; got {list(df.columns)}")

    # object dtype keeps ints as ints (no float upcast on NULLs)
    return df[[ID_COL, REASON_COL]].astype(object).to_dict("records")


def reconcile(df: pd.DataFrame, allowed_ids: Optional[Set[int]] = None) -> List[BadAccountRow]:
    """
    AccountId + MismatchReason -> AccountId + Message.

    - null AccountId rows are dropped
    - undecodable rows are logged and dropped
    - allowed_ids (when given) restricts the output to those accounts
    - first occurrence of an AccountId wins; database order is kept
    """
    out: List[BadAccountRow] = []
    seen: Set[int] = set()
    dropped_null = dropped_bad = dropped_filter = dropped_dup = 0

    for i, rec in enumerate(_records(df)):
        row = decode_mismatch_row(rec)

        if row.error:
            dropped_bad += 1
            logger.warning(f"[reconcile] skip row {i}: {row.error}")
            continue

        if row.account_id is None:
            dropped_null += 1
            continue

        if allowed_ids is not None and row.account_id not in allowed_ids:
            dropped_filter += 1
            continue

        if row.account_id in seen:
            dropped_dup += 1
            logger.debug(f"[reconcile] duplicate AccountId={row.account_id} dropped")
            continue

        seen.add(row.account_id)
        out.append(BadAccountRow(AccountId=row.account_id, Message=row.mismatch_reason or ""))

    logger.info(
        f"[reconcile] kept={len(out)} null_id={dropped_null} undecodable={dropped_bad} "
        f"filtered={dropped_filter} duplicates={dropped_dup}"
    )
    return out
