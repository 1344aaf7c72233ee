"""Read side of the credit ledger for staff views."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from ...models.credit_ledger import CreditLedgerEntry
from ...platform.config import settings
from ...shared.utils import ensure_utc


def list_ledger_entries(
    db: Session,
    *,
    tenant_id: int,
    member_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[CreditLedgerEntry]:
    """Newest first, capped at LEDGER_LIST_LIMIT."""
    cap = settings.LEDGER_LIST_LIMIT
    limit = cap if limit is None else max(1, min(int(limit), cap))
    query = (
        db.query(CreditLedgerEntry)
        .options(joinedload(CreditLedgerEntry.member), joinedload(CreditLedgerEntry.creator))
        .filter(CreditLedgerEntry.tenant_id == tenant_id)
    )
    if member_id is not None:
        query = query.filter(CreditLedgerEntry.member_id == member_id)
    return (
        query.order_by(CreditLedgerEntry.created_at.desc(), CreditLedgerEntry.id.desc())
        .limit(limit)
        .all()
    )


def entry_to_dict(entry: CreditLedgerEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "member_id": entry.member_id,
        "member_username": entry.member.username if entry.member else "",
        "delta": entry.delta,
        "balance_after": entry.balance_after,
        "kind": entry.kind.value,
        "description": entry.description,
        "created_by": entry.created_by,
        "created_by_username": entry.creator.username if entry.creator else None,
        "created_at": ensure_utc(entry.created_at),
    }
