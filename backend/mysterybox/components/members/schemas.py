from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MemberCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    initial_credit: int = Field(default=0, ge=0)


class MemberResponse(BaseModel):
    id: int
    username: str
    credit_balance: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MemberListResponse(BaseModel):
    items: List[MemberResponse]


class ProfileResponse(BaseModel):
    id: int
    tenant_id: int
    username: str
    role: str
    credit_balance: int
