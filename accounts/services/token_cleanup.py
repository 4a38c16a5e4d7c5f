"""Expired token sweep: clear one-time token pairs whose expiry has passed."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from accounts.models import User
from accounts.services.credential_store import TOKEN_COLUMNS, token_pair

logger = logging.getLogger(__name__)


def clear_expired_tokens(session: Session, now: datetime | None = None) -> int:
    """
    Null out expired (digest, expiry) pairs, both columns together.

    Returns the number of pairs cleared. Idempotent: safe to run repeatedly.
    Expired tokens are already rejected at lookup; this only tidies the rows.
    """
    now = now or datetime.now(UTC)
    cleared = 0
    for kind, (_, expiry_attr) in TOKEN_COLUMNS.items():
        expiry_col = getattr(User, expiry_attr)
        count = (
            session.query(User)
            .filter(expiry_col.is_not(None), expiry_col < now)
            .update(token_pair(kind, None, None), synchronize_session=False)
        )
        cleared += count
    session.commit()

    if cleared > 0:
        logger.info("Token sweep: cutoff=%s, pairs_cleared=%s", now.isoformat(), cleared)
    return cleared
