"""
Disbursement requests: PENDING -> APPROVED | REJECTED.

Any user can request stock; only admins settle requests. Approval is a single
check-then-commit step on a row-locked drug: either quantity, ledger entry and
status all change together, or nothing does and the request stays PENDING.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from drugstock.core.audit import AuditLog
from drugstock.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from drugstock.core.permissions import ensure_admin, is_admin
from drugstock.db.session import commit_or_rollback
from drugstock.models.disbursement import Disbursement, DisbursementStatus
from drugstock.models.drug import Drug
from drugstock.models.stock_transaction import TransactionType
from drugstock.models.user import User
from drugstock.services.inventory_service import get_drug
from drugstock.services.ledger_service import append_transaction

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_request(db: Session, record_id: int) -> Disbursement:
    record = db.query(Disbursement).filter(Disbursement.id == record_id).first()
    if not record:
        raise NotFoundError("Disbursement request", record_id)
    return record


def _get_pending(db: Session, record_id: int) -> Disbursement:
    record = get_request(db, record_id)
    if record.status != DisbursementStatus.PENDING:
        raise ConflictError(
            f"Disbursement request {record_id} is already {record.status.value.lower()}"
        )
    return record


def create_request(db: Session, drug_id: int, quantity: int, actor: User) -> Disbursement:
    """Open a PENDING request. Requesting the whole remaining stock is allowed."""
    if quantity is None or quantity <= 0:
        raise ValidationError("Requested quantity must be greater than zero")

    drug = db.query(Drug).filter(Drug.id == drug_id).first()
    if not drug:
        raise ValidationError(f"Drug {drug_id} does not exist")
    if quantity > drug.quantity:
        raise InsufficientStockError(drug.name, drug.quantity, quantity)

    record = Disbursement(
        drug_id=drug.id,
        drug_name=drug.name,
        quantity_disbursed=quantity,
        unit=drug.unit,
        request_date=_now(),
        requested_by=actor.username,
        status=DisbursementStatus.PENDING,
    )
    db.add(record)
    commit_or_rollback(db, "create disbursement request")
    db.refresh(record)

    AuditLog.log_action("create", "disbursement", record.id, actor, changes={"drug_id": drug.id, "quantity": quantity})
    logger.info(f"Disbursement request {record.id}: {actor.username} requested {quantity} {drug.unit} of {drug.name}")
    return record


def approve_request(db: Session, record_id: int, actor: User) -> Disbursement:
    """Approve a PENDING request and withdraw the stock.

    Raises InsufficientStockError without writing anything if the drug no
    longer holds enough units; the request remains PENDING.
    """
    ensure_admin(actor, "approve", "disbursement", record_id)
    record = _get_pending(db, record_id)
    drug = get_drug(db, record.drug_id, for_update=True)

    new_quantity = drug.quantity - record.quantity_disbursed
    if new_quantity < 0:
        logger.warning(
            f"Approval of request {record.id} refused: {drug.name} has {drug.quantity}, "
            f"request needs {record.quantity_disbursed}"
        )
        raise InsufficientStockError(drug.name, drug.quantity, record.quantity_disbursed)

    approved_at = _now()
    drug.quantity = new_quantity
    append_transaction(
        db,
        drug,
        TransactionType.DISBURSEMENT,
        quantity_change=-record.quantity_disbursed,
        quantity_after=new_quantity,
        user=actor.username,
        reason=f"Disbursement request #{record.id} (requested by {record.requested_by})",
        timestamp=approved_at,
    )
    record.status = DisbursementStatus.APPROVED
    record.approval_date = approved_at
    record.approved_by = actor.username
    commit_or_rollback(db, "approve disbursement")
    db.refresh(record)

    AuditLog.log_action("approve", "disbursement", record.id, actor, changes={"quantity_after": new_quantity})
    logger.info(f"Approved disbursement {record.id}; {drug.name} now {new_quantity}")
    return record


def reject_request(db: Session, record_id: int, actor: User) -> Disbursement:
    """Reject a PENDING request. Inventory and ledger are untouched."""
    ensure_admin(actor, "reject", "disbursement", record_id)
    record = _get_pending(db, record_id)

    record.status = DisbursementStatus.REJECTED
    record.approval_date = _now()
    record.approved_by = actor.username
    commit_or_rollback(db, "reject disbursement")
    db.refresh(record)

    AuditLog.log_action("reject", "disbursement", record.id, actor)
    return record


def edit_dates(
    db: Session,
    record_id: int,
    request_date: datetime,
    approval_date: Optional[datetime],
    actor: User,
) -> Disbursement:
    """Administrative date correction; status and inventory stay as they are."""
    ensure_admin(actor, "edit", "disbursement", record_id)
    record = get_request(db, record_id)

    if request_date is None:
        raise ValidationError("Request date is required")
    if record.status == DisbursementStatus.PENDING:
        if approval_date is not None:
            raise ValidationError("A pending request has no approval date")
    elif approval_date is None:
        raise ValidationError("Approval date is required for settled requests")

    record.request_date = request_date
    record.approval_date = approval_date
    commit_or_rollback(db, "edit disbursement dates")
    db.refresh(record)

    AuditLog.log_action(
        "edit_dates",
        "disbursement",
        record.id,
        actor,
        changes={"request_date": request_date, "approval_date": approval_date},
    )
    return record


def list_requests(
    db: Session,
    actor: User,
    status: Optional[DisbursementStatus] = None,
) -> list[Disbursement]:
    """Admins see every request; regular users see their own."""
    q = db.query(Disbursement)
    if not is_admin(actor):
        q = q.filter(Disbursement.requested_by == actor.username)
    if status is not None:
        q = q.filter(Disbursement.status == status)
    return q.order_by(Disbursement.request_date.desc(), Disbursement.id.desc()).all()


def pending_requests(db: Session) -> list[Disbursement]:
    """Notification feed for admins, newest first."""
    return (
        db.query(Disbursement)
        .filter(Disbursement.status == DisbursementStatus.PENDING)
        .order_by(Disbursement.request_date.desc(), Disbursement.id.desc())
        .all()
    )


def approved_in_month(db: Session, year: int, month: int) -> list[Disbursement]:
    """Approved requests whose approval date falls in the given month, oldest first."""
    records = (
        db.query(Disbursement)
        .filter(Disbursement.status == DisbursementStatus.APPROVED)
        .filter(Disbursement.approval_date.isnot(None))
        .order_by(Disbursement.approval_date.asc())
        .all()
    )
    return [r for r in records if r.approval_date.year == year and r.approval_date.month == month]
