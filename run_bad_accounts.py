# run_bad_accounts.py

import os
import logging

from badaccounts.config import ConfigError, load_config
from badaccounts.pipeline import run_once

logging.basicConfig(
    level=os.getenv("BADACCOUNTS_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(message)s",
)

logger = logging.getLogger("badaccounts")


def main():
    # badaccounts.ini (or BADACCOUNTS_ENV_PATH) resolves against the caller's cwd
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"[run] {e}")
        return

    logger.info(
        f"[run] started. find={config.find_procedure} trxday={config.trx_day} "
        f"correct={config.correct_status} restrict_to_recent_trx={config.restrict_to_recent_trx}"
    )

    try:
        stats = run_once(config)
        logger.info(f"[run] done stats={stats}")
    except Exception as e:
        # single attempt per schedule; the next scheduled run starts clean
        logger.exception(f"[run] failed: {e}")


if __name__ == "__main__":
    main()
