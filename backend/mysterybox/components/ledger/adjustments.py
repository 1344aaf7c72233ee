"""Staff topups and manual debits, written straight to the ledger."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ...models.credit_ledger import LedgerKind
from ...platform.errors import InvalidAmount
from .service import apply_delta

logger = logging.getLogger(__name__)


def _positive_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount("Amount must be a positive integer", amount=amount)
    return amount


def _apply_and_commit(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    delta: int,
    kind: LedgerKind,
    description: str | None,
    actor_id: int | None,
) -> int:
    try:
        new_balance = apply_delta(
            db,
            tenant_id=tenant_id,
            member_id=member_id,
            delta=delta,
            kind=kind,
            description=description,
            actor_id=actor_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(
        "Credit %s member_id=%s delta=%d new_balance=%d actor_id=%s",
        kind.value.lower(),
        member_id,
        delta,
        new_balance,
        actor_id,
    )
    return new_balance


def topup(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    amount: int,
    description: str | None = None,
    actor_id: int | None = None,
) -> int:
    return _apply_and_commit(
        db,
        tenant_id=tenant_id,
        member_id=member_id,
        delta=_positive_amount(amount),
        kind=LedgerKind.TOPUP,
        description=description,
        actor_id=actor_id,
    )


def adjust_down(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    amount: int,
    description: str | None = None,
    actor_id: int | None = None,
) -> int:
    """Manual debit. Never drives a balance negative (InsufficientBalance instead)."""
    return _apply_and_commit(
        db,
        tenant_id=tenant_id,
        member_id=member_id,
        delta=-_positive_amount(amount),
        kind=LedgerKind.ADJUSTMENT,
        description=description,
        actor_id=actor_id,
    )
