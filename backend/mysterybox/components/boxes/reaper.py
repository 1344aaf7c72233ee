"""Background expiry of boxes that were bought and never opened."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...models.box_transaction import BoxStatus, BoxTransaction
from ...platform.config import settings
from ...shared.utils import ensure_utc, utcnow
from .machine import apply_transition

logger = logging.getLogger(__name__)


def overdue_ids(db: Session, *, now: datetime, limit: int) -> List[int]:
    return list(
        db.execute(
            select(BoxTransaction.id)
            .where(
                BoxTransaction.status == BoxStatus.PURCHASED,
                BoxTransaction.expires_at <= now,
            )
            .order_by(BoxTransaction.expires_at.asc(), BoxTransaction.id.asc())
            .limit(limit)
        ).scalars()
    )


def expire_one(db: Session, transaction_id: int, now: datetime | None = None) -> bool:
    """Expire a single overdue box. False when it was already opened or expired."""
    now = ensure_utc(now) or utcnow()
    transaction = db.get(BoxTransaction, transaction_id)
    if transaction is None or transaction.status != BoxStatus.PURCHASED:
        return False
    if ensure_utc(transaction.expires_at) > now:
        return False
    try:
        changed = apply_transition(db, transaction_id, BoxStatus.EXPIRED)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return changed


def expire_overdue(db: Session, *, now: datetime | None = None, batch_size: int | None = None) -> int:
    """Move every overdue PURCHASED box to EXPIRED. Safe to run concurrently and repeatedly.

    Each row commits on its own, so a failure part-way through keeps the rows
    already expired; the next run picks up the rest.
    """
    now = ensure_utc(now) or utcnow()
    batch_size = batch_size or settings.EXPIRY_REAPER_BATCH_SIZE

    expired = 0
    seen: set[int] = set()
    while True:
        ids = [i for i in overdue_ids(db, now=now, limit=batch_size) if i not in seen]
        if not ids:
            break
        for transaction_id in ids:
            seen.add(transaction_id)
            if expire_one(db, transaction_id, now=now):
                expired += 1
    if expired:
        logger.info("Expired %d overdue boxes (cutoff %s)", expired, now.isoformat())
    else:
        logger.debug("No overdue boxes (cutoff %s)", now.isoformat())
    return expired
