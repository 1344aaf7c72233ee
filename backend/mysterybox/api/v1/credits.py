from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...components.ledger.adjustments import adjust_down, topup
from ...components.ledger.schemas import CreditChangeRequest, CreditChangeResponse
from ...deps import require_staff
from ...models.profile import Profile
from ...platform.database import get_db

router = APIRouter(prefix="/credits", tags=["Credits"])


@router.post("/topup", response_model=CreditChangeResponse)
def topup_credits(
    data: CreditChangeRequest,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    new_balance = topup(
        db,
        tenant_id=current_staff.tenant_id,
        member_id=data.member_id,
        amount=data.amount,
        description=data.description,
        actor_id=current_staff.id,
    )
    return {"member_id": data.member_id, "new_balance": new_balance}


@router.post("/adjust-down", response_model=CreditChangeResponse)
def adjust_down_credits(
    data: CreditChangeRequest,
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    """Manual debit; refused with 409 when the member balance is too low."""
    new_balance = adjust_down(
        db,
        tenant_id=current_staff.tenant_id,
        member_id=data.member_id,
        amount=data.amount,
        description=data.description,
        actor_id=current_staff.id,
    )
    return {"member_id": data.member_id, "new_balance": new_balance}
