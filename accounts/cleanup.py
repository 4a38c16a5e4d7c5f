"""
Sweep expired email verification and password reset tokens.

Expired tokens are already refused at lookup; the sweep only nulls the stale
(digest, expiry) pairs. Schedule it next to the API, e.g. every hour:

  0 * * * * cd /srv/accounts && .venv/bin/accounts-cleanup
"""

import logging
import sys

from accounts.core.config import get_settings
from accounts.core.database import SessionLocal
from accounts.core.logging_config import setup_logging
from accounts.services.token_cleanup import clear_expired_tokens

logger = logging.getLogger(__name__)


def main() -> int:
    setup_logging(get_settings().LOG_LEVEL)
    with SessionLocal() as db:
        try:
            cleared = clear_expired_tokens(db)
        except Exception:
            logger.exception("Token sweep failed")
            return 1
    logger.info("Token sweep finished: pairs_cleared=%s", cleared)
    return 0


if __name__ == "__main__":
    sys.exit(main())
