"""Credit ledger: the only code path allowed to change a member's balance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...models.credit_ledger import CreditLedgerEntry, LedgerKind
from ...models.profile import Profile, ProfileRole
from ...platform.errors import InsufficientBalance, InvalidAmount, NotFound
from ...shared.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class LedgerCheck:
    member_id: int
    consistent: bool
    credit_balance: int
    last_balance_after: int
    entries: int
    first_broken_entry_id: int | None = None


def apply_delta(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    delta: int,
    kind: LedgerKind,
    description: str | None = None,
    actor_id: int | None = None,
) -> int:
    """Apply ``delta`` to a member balance and append the matching ledger row.

    The conditional UPDATE is the serialization point: it holds the member row
    lock (PostgreSQL) or the database write lock (SQLite) until the caller
    commits, so two writers never apply against the same starting balance.
    Flushes but never commits; the caller owns the transaction.
    """
    delta = int(delta)
    if delta == 0:
        raise InvalidAmount("Ledger delta must be non-zero")

    result = db.execute(
        update(Profile)
        .where(
            Profile.id == member_id,
            Profile.tenant_id == tenant_id,
            Profile.role == ProfileRole.MEMBER,
            Profile.credit_balance + delta >= 0,
        )
        .values(credit_balance=Profile.credit_balance + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = db.execute(
            select(Profile.credit_balance).where(
                Profile.id == member_id,
                Profile.tenant_id == tenant_id,
                Profile.role == ProfileRole.MEMBER,
            )
        ).scalar_one_or_none()
        if current is None:
            raise NotFound("Member not found", member_id=member_id)
        raise InsufficientBalance(
            "Insufficient credit balance",
            balance=int(current),
            required=-delta,
        )

    new_balance = int(
        db.execute(select(Profile.credit_balance).where(Profile.id == member_id)).scalar_one()
    )
    entry = CreditLedgerEntry(
        tenant_id=tenant_id,
        member_id=member_id,
        delta=delta,
        balance_after=new_balance,
        kind=kind,
        description=description,
        created_by=actor_id,
        # Stamped after the lock is held so created_at order matches the balance chain.
        created_at=utcnow(),
    )
    db.add(entry)
    db.flush()
    logger.info(
        "Ledger entry member_id=%s kind=%s delta=%d balance_after=%d",
        member_id,
        kind.value,
        delta,
        new_balance,
    )
    return new_balance


def check_ledger_consistency(db: Session, member_id: int) -> LedgerCheck:
    """Walk a member's ledger chain and compare it with the materialized balance."""
    balance = db.execute(
        select(Profile.credit_balance).where(Profile.id == member_id)
    ).scalar_one_or_none()
    if balance is None:
        raise NotFound("Member not found", member_id=member_id)

    entries = (
        db.query(CreditLedgerEntry)
        .filter(CreditLedgerEntry.member_id == member_id)
        .order_by(CreditLedgerEntry.created_at.asc(), CreditLedgerEntry.id.asc())
        .all()
    )
    running = 0
    broken_id = None
    for entry in entries:
        running += entry.delta
        if entry.balance_after != running or entry.balance_after < 0:
            broken_id = entry.id
            break

    last_balance_after = entries[-1].balance_after if entries else 0
    balance = int(balance)
    return LedgerCheck(
        member_id=member_id,
        consistent=broken_id is None and balance == last_balance_after and balance >= 0,
        credit_balance=balance,
        last_balance_after=last_balance_after,
        entries=len(entries),
        first_broken_entry_id=broken_id,
    )
