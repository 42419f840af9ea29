from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class DrugBase(BaseModel):
    name: str
    quantity: int = Field(ge=0)
    unit: str
    expiry_date: date
    location: str
    notes: Optional[str] = None
    image: Optional[str] = None


class DrugCreate(DrugBase):
    pass


class DrugUpdate(DrugBase):
    """Full replacement of a drug record."""
    pass


class StockAdjustment(BaseModel):
    change: int  # signed: positive adds stock, negative removes
    reason: str


class DrugResponse(DrugBase):
    id: int
    status: str
    days_until_expiry: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ImportRow(BaseModel):
    """One validated spreadsheet row."""
    row_number: int
    name: str
    quantity: int
    unit: str
    expiry_date: date
    location: str
    notes: Optional[str] = None


class ImportResult(BaseModel):
    imported: int
    drugs: list[DrugResponse]


def drug_to_response(drug, today: Optional[date] = None) -> DrugResponse:
    from drugstock.services.stock_status import days_until_expiry, get_stock_status

    return DrugResponse(
        id=drug.id,
        name=drug.name,
        quantity=drug.quantity,
        unit=drug.unit,
        expiry_date=drug.expiry_date,
        location=drug.location,
        notes=drug.notes,
        image=drug.image,
        status=get_stock_status(drug, today).value,
        days_until_expiry=days_until_expiry(drug, today),
        created_at=drug.created_at,
    )
