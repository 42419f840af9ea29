"""Audit trail: read-only view of the stock ledger."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.permissions import ensure_admin
from drugstock.models.stock_transaction import TransactionType
from drugstock.models.user import User
from drugstock.schemas.transaction import TransactionResponse
from drugstock.services import ledger_service

router = APIRouter()


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    search: Optional[str] = Query(None, description="Matches drug name, user or reason"),
    type: Optional[TransactionType] = Query(None),
    drug_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_admin(current_user, "read", "audit trail")
    q = ledger_service.query_transactions(db, search=search, type=type, drug_id=drug_id)
    return q.offset(offset).limit(limit).all()
