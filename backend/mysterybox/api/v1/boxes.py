"""Member box endpoints: purchase, open, inventory."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.boxes import repository as box_repository
from ...components.boxes.schemas import (
    InventoryResponse,
    OpenResponse,
    PurchaseRequest,
    PurchaseResponse,
)
from ...components.boxes.service import open_box, purchase_box
from ...deps import require_member
from ...models.profile import Profile
from ...platform.config import settings
from ...platform.database import get_db

router = APIRouter(prefix="/boxes", tags=["Boxes"])


@router.post("/purchase", response_model=PurchaseResponse)
def purchase(
    data: PurchaseRequest,
    db: Session = Depends(get_db),
    current_member: Profile = Depends(require_member),
):
    outcome = purchase_box(
        db,
        tenant_id=current_member.tenant_id,
        member_id=current_member.id,
        credit_tier=data.credit_tier,
        track=settings.DRAW_TRACK,
    )
    return box_repository.purchase_to_dict(outcome)


@router.post("/{transaction_id}/open", response_model=OpenResponse)
def open_(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_member: Profile = Depends(require_member),
):
    outcome = open_box(
        db,
        tenant_id=current_member.tenant_id,
        member_id=current_member.id,
        transaction_id=transaction_id,
        track=settings.DRAW_TRACK,
    )
    return box_repository.open_to_dict(outcome)


@router.get("/inventory", response_model=InventoryResponse)
def inventory(
    db: Session = Depends(get_db),
    current_member: Profile = Depends(require_member),
):
    """Boxes the member bought and can still open."""
    rows = box_repository.list_member_inventory(
        db, tenant_id=current_member.tenant_id, member_id=current_member.id
    )
    return {"items": [box_repository.inventory_item_to_dict(row) for row in rows]}
