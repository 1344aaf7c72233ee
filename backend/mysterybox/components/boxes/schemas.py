from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class PurchaseRequest(BaseModel):
    credit_tier: int


class PurchaseResponse(BaseModel):
    transaction_id: int
    status: str
    credit_tier: int
    credit_spent: int
    rarity_id: int
    rarity_code: str
    rarity_name: str
    credits_before: int
    credits_after: int
    expires_at: datetime


class OpenResponse(BaseModel):
    transaction_id: int
    status: str
    rarity_id: int
    rarity_code: str
    rarity_name: str
    reward_id: int
    reward_label: str
    reward_type: str
    reward_amount: Decimal
    opened_at: datetime
    expires_at: datetime


class InventoryItem(BaseModel):
    transaction_id: int
    credit_tier: int
    rarity_id: int
    rarity_code: str
    rarity_name: str
    rarity_color_key: Optional[str] = None
    created_at: datetime
    expires_at: datetime


class InventoryResponse(BaseModel):
    items: List[InventoryItem]


class BoxTransactionRow(BaseModel):
    id: int
    member_id: int
    member_username: str
    credit_tier: int
    credit_spent: int
    status: str
    rarity_code: str
    rarity_name: str
    reward_id: Optional[int] = None
    reward_label: Optional[str] = None
    reward_type: Optional[str] = None
    reward_amount: Optional[Decimal] = None
    processed: bool = False
    processed_at: Optional[datetime] = None
    processed_by_username: Optional[str] = None
    created_at: datetime
    opened_at: Optional[datetime] = None
    expires_at: datetime


class BoxTransactionList(BaseModel):
    items: List[BoxTransactionRow]


class ProcessedUpdate(BaseModel):
    processed: bool
