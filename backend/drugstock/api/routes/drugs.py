"""Drugs: inventory list, CRUD, stock adjustment and spreadsheet import."""
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.permissions import ensure_admin
from drugstock.models.user import User
from drugstock.schemas.drug import (
    DrugCreate,
    DrugResponse,
    DrugUpdate,
    ImportResult,
    ImportRow,
    StockAdjustment,
    drug_to_response,
)
from drugstock.services import inventory_service, spreadsheet_service
from drugstock.services.stock_status import StockStatus

router = APIRouter()


@router.get("", response_model=list[DrugResponse])
def list_drugs(
    search: Optional[str] = Query(None),
    status: Optional[StockStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Inventory list with derived stock status."""
    return [drug_to_response(d) for d in inventory_service.list_drugs(db, search=search, status=status)]


@router.get("/{drug_id}", response_model=DrugResponse)
def get_drug(drug_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return drug_to_response(inventory_service.get_drug(db, drug_id))


@router.post("", response_model=DrugResponse, status_code=201)
def create_drug(data: DrugCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return drug_to_response(inventory_service.add_drug(db, data, current_user))


@router.put("/{drug_id}", response_model=DrugResponse)
def update_drug(
    drug_id: int,
    data: DrugUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return drug_to_response(inventory_service.update_drug(db, drug_id, data, current_user))


@router.post("/{drug_id}/adjust", response_model=DrugResponse)
def adjust_stock(
    drug_id: int,
    data: StockAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    drug = inventory_service.adjust_stock(db, drug_id, data.change, data.reason, current_user)
    return drug_to_response(drug)


@router.delete("/{drug_id}")
def delete_drug(drug_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    inventory_service.delete_drug(db, drug_id, current_user)
    return {"message": "Drug deleted", "id": drug_id}


@router.post("/import/preview", response_model=list[ImportRow])
def preview_import(file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    """Parse and validate a spreadsheet without writing anything."""
    ensure_admin(current_user, "import", "drug")
    return spreadsheet_service.parse_drug_rows(file.file.read())


@router.post("/import", response_model=ImportResult, status_code=201)
def import_drugs(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_admin(current_user, "import", "drug")
    rows = spreadsheet_service.parse_drug_rows(file.file.read())
    drugs = inventory_service.bulk_import(db, rows, current_user)
    return ImportResult(imported=len(drugs), drugs=[drug_to_response(d) for d in drugs])
