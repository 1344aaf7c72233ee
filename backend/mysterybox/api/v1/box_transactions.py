"""Staff view of box history and fulfilment marking."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...components.boxes.repository import list_box_transactions, transaction_to_dict
from ...components.boxes.schemas import BoxTransactionList, BoxTransactionRow, ProcessedUpdate
from ...components.boxes.service import set_processed
from ...deps import require_staff
from ...models.box_transaction import BoxStatus
from ...models.profile import Profile
from ...platform.database import get_db

router = APIRouter(prefix="/box-transactions", tags=["Box transactions"])


@router.get("", response_model=BoxTransactionList)
def get_box_transactions(
    status: Optional[BoxStatus] = Query(default=None),
    member_id: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    rows = list_box_transactions(
        db,
        tenant_id=current_staff.tenant_id,
        status=status,
        member_id=member_id,
        limit=limit,
    )
    return {"items": [transaction_to_dict(row) for row in rows]}


@router.patch("/{transaction_id}/processed", response_model=BoxTransactionRow)
def mark_processed(
    transaction_id: int,
    data: ProcessedUpdate,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    transaction = set_processed(
        db,
        tenant_id=current_staff.tenant_id,
        transaction_id=transaction_id,
        processed=data.processed,
        actor_id=current_staff.id,
    )
    return transaction_to_dict(transaction)
