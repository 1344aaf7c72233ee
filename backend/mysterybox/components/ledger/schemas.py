from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CreditChangeRequest(BaseModel):
    member_id: int
    amount: int = Field(..., gt=0)
    description: Optional[str] = Field(default=None, max_length=500)


class CreditChangeResponse(BaseModel):
    member_id: int
    new_balance: int


class LedgerEntryResponse(BaseModel):
    id: int
    member_id: int
    member_username: str
    delta: int
    balance_after: int
    kind: str
    description: Optional[str] = None
    created_by: Optional[int] = None
    created_by_username: Optional[str] = None
    created_at: datetime


class LedgerListResponse(BaseModel):
    items: List[LedgerEntryResponse]
