from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from drugstock.models.stock_transaction import TransactionType


class TransactionResponse(BaseModel):
    id: int
    drug_id: int
    drug_name: str
    type: TransactionType
    quantity_change: int
    quantity_after: int
    reason: Optional[str] = None
    timestamp: datetime
    user: str

    class Config:
        from_attributes = True
