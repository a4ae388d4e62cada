# badaccounts/pipeline.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from badaccounts.config import BadAccountsConfig
from badaccounts.models import CorrectionResult
from badaccounts.services.sqlserver import SqlServerGateway
from badaccounts.services.bad_accounts_repo import fetch_bad_accounts, fetch_recent_trx_account_ids
from badaccounts.services.reconciler import reconcile
from badaccounts.services.corrector import correct_accounts
from badaccounts.services.reporter import send_report

logger = logging.getLogger(__name__)


def _gateway(config: BadAccountsConfig) -> SqlServerGateway:
    return SqlServerGateway(config.connection_string, timeout=config.command_timeout)


def run_once(config: BadAccountsConfig, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    fetch -> reconcile -> (correct) -> report, strictly in sequence.

    Database errors while fetching and spreadsheet errors propagate.
    Correction errors (per account or for the whole phase) and email errors
    are counted, not raised.
    """
    # 1) fetch (one connection for the whole phase)
    allowed_ids = None
    with _gateway(config) as gw:
        df = fetch_bad_accounts(gw, config.find_procedure, config.trx_day)
        if config.restrict_to_recent_trx:
            allowed_ids = fetch_recent_trx_account_ids(gw)

    # 2) reconcile
    rows = reconcile(df, allowed_ids=allowed_ids)

    # 3) correct
    corrections: List[CorrectionResult] = []
    if config.correct_status and rows:
        account_ids = [r.AccountId for r in rows]
        try:
            with _gateway(config) as gw:
                corrections = correct_accounts(gw, config.correct_procedure, account_ids)
        except Exception as e:
            # the report still goes out; every account counts as not corrected
            logger.exception(f"[correct] phase failed: {e}")
            corrections = [CorrectionResult(account_id=i, ok=False, error=str(e)) for i in account_ids]
    elif not config.correct_status:
        logger.info("[correct] disabled (CORRECT_STATUS=false)")

    corrections_failed = sum(1 for c in corrections if not c.ok)
    if corrections_failed:
        failed_ids = [c.account_id for c in corrections if not c.ok]
        logger.warning(f"[run] {corrections_failed} correction(s) failed: {failed_ids}")

    # 4) report
    email_sent = send_report(rows, config, now=now)

    return {
        "rows_fetched": len(df),
        "rows_reconciled": len(rows),
        "corrections_ok": len(corrections) - corrections_failed,
        "corrections_failed": corrections_failed,
        "email_sent": email_sent,
    }
