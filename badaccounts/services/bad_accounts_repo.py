# badaccounts/services/bad_accounts_repo.py

import logging
from typing import Set

import pandas as pd

logger = logging.getLogger(__name__)

RECENT_TRX_SQL = """
SELECT DISTINCT ClientCustomerAccountID
FROM ARTrx
WHERE TrxTypeID <> 1
  AND CAST(CreatedOn AS date) = CAST(GETDATE() - 1 AS date);
"""


def fetch_bad_accounts(gw, procedure: str, days_back: int) -> pd.DataFrame:
    """
    Run the "find mismatches" procedure for every account.

    clientCustomerAccountId=0 means all accounts; the status-check flag and year are
    left at 0 so the procedure reports every mismatch class for the last `days_back` days.
    Database errors propagate.
    """
    params = {
        "clientCustomerAccountId": 0,
        "checkForStatusIssue": 0,
        "transactionyear": 0,
        "trxday": int(days_back),
    }
    df = gw.call_procedure_df(procedure, params)
    logger.info(f"[fetch] {procedure} trxday={days_back} -> {len(df)} rows")
    return df


def fetch_recent_trx_account_ids(gw) -> Set[int]:
    """Accounts with a non-payment transaction created yesterday."""
    df = gw.query_df(RECENT_TRX_SQL)
    if df.empty:
        return set()

    ids = {int(v) for v in df.iloc[:, 0] if not pd.isna(v)}
    logger.info(f"[fetch] recent trx accounts -> {len(ids)}")
    return ids


def correct_account_status(gw, procedure: str, account_id: int) -> None:
    gw.execute_procedure(procedure, {"ClientCustomerAccountID": int(account_id)})
