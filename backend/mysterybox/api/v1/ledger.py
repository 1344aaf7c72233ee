from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...components.ledger.repository import entry_to_dict, list_ledger_entries
from ...components.ledger.schemas import LedgerListResponse
from ...deps import require_staff
from ...models.profile import Profile
from ...platform.database import get_db

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("", response_model=LedgerListResponse)
def get_ledger(
    member_id: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    current_staff: Profile = Depends(require_staff),
):
    entries = list_ledger_entries(
        db, tenant_id=current_staff.tenant_id, member_id=member_id, limit=limit
    )
    return {"items": [entry_to_dict(entry) for entry in entries]}
