"""Box transaction queries and serialization for member and staff views."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from ...models.box_transaction import BoxStatus, BoxTransaction
from ...platform.config import settings
from ...shared.utils import ensure_utc, utcnow
from .service import OpenOutcome, PurchaseOutcome


def _clamp_limit(limit: Optional[int], default: int) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), default))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_member_inventory(
    db: Session,
    *,
    tenant_id: int,
    member_id: int,
    now: datetime | None = None,
) -> List[BoxTransaction]:
    """Unopened boxes that can still be opened, soonest expiry first."""
    now = ensure_utc(now) or utcnow()
    return (
        db.query(BoxTransaction)
        .options(joinedload(BoxTransaction.rarity))
        .filter(
            BoxTransaction.tenant_id == tenant_id,
            BoxTransaction.member_id == member_id,
            BoxTransaction.status == BoxStatus.PURCHASED,
            BoxTransaction.expires_at > now,
        )
        .order_by(BoxTransaction.expires_at.asc(), BoxTransaction.id.asc())
        .all()
    )


def list_box_transactions(
    db: Session,
    *,
    tenant_id: int,
    status: Optional[BoxStatus] = None,
    member_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[BoxTransaction]:
    query = (
        db.query(BoxTransaction)
        .options(
            joinedload(BoxTransaction.member),
            joinedload(BoxTransaction.processor),
            joinedload(BoxTransaction.rarity),
            joinedload(BoxTransaction.reward),
        )
        .filter(BoxTransaction.tenant_id == tenant_id)
    )
    if status is not None:
        query = query.filter(BoxTransaction.status == BoxStatus(status))
    if member_id is not None:
        query = query.filter(BoxTransaction.member_id == member_id)
    return (
        query.order_by(BoxTransaction.created_at.desc(), BoxTransaction.id.desc())
        .limit(_clamp_limit(limit, settings.HISTORY_LIST_LIMIT))
        .all()
    )


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------

def purchase_to_dict(outcome: PurchaseOutcome) -> Dict[str, Any]:
    transaction = outcome.transaction
    return {
        "transaction_id": transaction.id,
        "status": transaction.status.value,
        "credit_tier": transaction.credit_tier,
        "credit_spent": transaction.credit_spent,
        "rarity_id": outcome.rarity.id,
        "rarity_code": outcome.rarity.code.value,
        "rarity_name": outcome.rarity.name,
        "credits_before": outcome.credits_before,
        "credits_after": outcome.credits_after,
        "expires_at": ensure_utc(transaction.expires_at),
    }


def open_to_dict(outcome: OpenOutcome) -> Dict[str, Any]:
    transaction = outcome.transaction
    reward = outcome.reward
    return {
        "transaction_id": transaction.id,
        "status": transaction.status.value,
        "rarity_id": outcome.rarity.id,
        "rarity_code": outcome.rarity.code.value,
        "rarity_name": outcome.rarity.name,
        "reward_id": reward.id,
        "reward_label": reward.label,
        "reward_type": reward.reward_type.value,
        "reward_amount": reward.amount,
        "opened_at": ensure_utc(transaction.opened_at),
        "expires_at": ensure_utc(transaction.expires_at),
    }


def inventory_item_to_dict(transaction: BoxTransaction) -> Dict[str, Any]:
    rarity = transaction.rarity
    return {
        "transaction_id": transaction.id,
        "credit_tier": transaction.credit_tier,
        "rarity_id": rarity.id,
        "rarity_code": rarity.code.value,
        "rarity_name": rarity.name,
        "rarity_color_key": rarity.color_key,
        "created_at": ensure_utc(transaction.created_at),
        "expires_at": ensure_utc(transaction.expires_at),
    }


def transaction_to_dict(transaction: BoxTransaction) -> Dict[str, Any]:
    reward = transaction.reward
    return {
        "id": transaction.id,
        "member_id": transaction.member_id,
        "member_username": transaction.member.username if transaction.member else "",
        "credit_tier": transaction.credit_tier,
        "credit_spent": transaction.credit_spent,
        "status": transaction.status.value,
        "rarity_code": transaction.rarity.code.value,
        "rarity_name": transaction.rarity.name,
        "reward_id": transaction.reward_id,
        "reward_label": reward.label if reward else None,
        "reward_type": reward.reward_type.value if reward else None,
        "reward_amount": reward.amount if reward else None,
        "processed": bool(transaction.processed),
        "processed_at": ensure_utc(transaction.processed_at),
        "processed_by_username": transaction.processor.username if transaction.processor else None,
        "created_at": ensure_utc(transaction.created_at),
        "opened_at": ensure_utc(transaction.opened_at),
        "expires_at": ensure_utc(transaction.expires_at),
    }
