# badaccounts/services/corrector.py

import logging
from typing import Iterable, List

from badaccounts.models import CorrectionResult
from badaccounts.services.bad_accounts_repo import correct_account_status

logger = logging.getLogger(__name__)


def correct_accounts(gw, procedure: str, account_ids: Iterable[int]) -> List[CorrectionResult]:
    """
    Call the status-correction procedure once per id over the gateway's single open
    connection. A failing id is logged and recorded; the loop keeps going. No retry.
    """
    results: List[CorrectionResult] = []

    for account_id in account_ids:
        try:
            correct_account_status(gw, procedure, account_id)
            results.append(CorrectionResult(account_id=account_id, ok=True))
        except Exception as e:
            logger.error(f"[correct] AccountId={account_id} failed: {e}")
            results.append(CorrectionResult(account_id=account_id, ok=False, error=str(e)))

    failed = sum(1 for r in results if not r.ok)
    logger.info(f"[correct] {procedure}: ok={len(results) - failed} failed={failed}")
    return results
