from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from drugstock.models.disbursement import DisbursementStatus


class DisbursementCreate(BaseModel):
    drug_id: int
    quantity: int


class DisbursementDatesUpdate(BaseModel):
    request_date: datetime
    approval_date: Optional[datetime] = None


class DisbursementResponse(BaseModel):
    id: int
    drug_id: int
    drug_name: str
    quantity_disbursed: int
    unit: str
    request_date: datetime
    requested_by: str
    status: DisbursementStatus
    approval_date: Optional[datetime] = None
    approved_by: Optional[str] = None

    class Config:
        from_attributes = True
