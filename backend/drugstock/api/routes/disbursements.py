"""
Disbursement requests: create, list, approve, reject, date corrections.
Stock leaves the shelf only on admin approval.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.permissions import ensure_admin
from drugstock.models.disbursement import DisbursementStatus
from drugstock.models.user import User
from drugstock.schemas.disbursement import (
    DisbursementCreate,
    DisbursementDatesUpdate,
    DisbursementResponse,
)
from drugstock.services import disbursement_service

router = APIRouter()


@router.post("", response_model=DisbursementResponse, status_code=201)
def create_request(
    data: DisbursementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return disbursement_service.create_request(db, data.drug_id, data.quantity, current_user)


@router.get("", response_model=list[DisbursementResponse])
def list_requests(
    status: Optional[DisbursementStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All requests for admins; a regular user sees their own history."""
    return disbursement_service.list_requests(db, current_user, status=status)


@router.get("/pending", response_model=list[DisbursementResponse])
def list_pending(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Notification feed of requests awaiting approval."""
    ensure_admin(current_user, "list", "pending disbursements")
    return disbursement_service.pending_requests(db)


@router.post("/{record_id}/approve", response_model=DisbursementResponse)
def approve_request(record_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return disbursement_service.approve_request(db, record_id, current_user)


@router.post("/{record_id}/reject", response_model=DisbursementResponse)
def reject_request(record_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return disbursement_service.reject_request(db, record_id, current_user)


@router.patch("/{record_id}/dates", response_model=DisbursementResponse)
def edit_dates(
    record_id: int,
    data: DisbursementDatesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return disbursement_service.edit_dates(db, record_id, data.request_date, data.approval_date, current_user)
