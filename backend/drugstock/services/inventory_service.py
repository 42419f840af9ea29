"""
Drug inventory mutations and queries.

Every quantity change here writes exactly one ledger entry in the same
commit, so a drug's quantity always equals the sum of its ledger changes.
All mutators are admin-only.
"""
import logging
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from drugstock.core.audit import AuditLog
from drugstock.core.exceptions import NotFoundError, ValidationError
from drugstock.core.permissions import ensure_admin
from drugstock.db.session import commit_or_rollback, flush_or_rollback
from drugstock.models.drug import Drug
from drugstock.models.stock_transaction import TransactionType
from drugstock.models.user import User
from drugstock.schemas.drug import DrugCreate, DrugUpdate, ImportRow
from drugstock.services.drug_repository import load_all
from drugstock.services.ledger_service import append_transaction
from drugstock.services.stock_status import StockStatus, get_stock_status

logger = logging.getLogger(__name__)

REASON_NEW_DRUG = "New drug added"
REASON_RECORD_EDITED = "Drug record edited"
REASON_DRUG_DELETED = "Drug deleted"
REASON_IMPORTED = "Imported from spreadsheet"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_drug_fields(data: DrugCreate | DrugUpdate | ImportRow) -> None:
    if not _clean(data.name):
        raise ValidationError("Drug name cannot be empty")
    if not _clean(data.unit):
        raise ValidationError("Unit cannot be empty")
    if not _clean(data.location):
        raise ValidationError("Storage location cannot be empty")
    if data.expiry_date is None:
        raise ValidationError("Expiry date is required")
    if data.quantity is None or data.quantity < 0:
        raise ValidationError("Quantity cannot be negative")


def get_drug(db: Session, drug_id: int, for_update: bool = False) -> Drug:
    q = db.query(Drug).filter(Drug.id == drug_id)
    if for_update:
        # Serializes concurrent quantity changes on the same drug (no-op on SQLite)
        q = q.with_for_update()
    drug = q.first()
    if not drug:
        raise NotFoundError("Drug", drug_id)
    return drug


def list_drugs(
    db: Session,
    search: Optional[str] = None,
    status: Optional[StockStatus] = None,
    today: Optional[date] = None,
) -> list[Drug]:
    """All drugs by name, optionally narrowed by a text search and a stock status."""
    drugs = sorted(load_all(db), key=lambda d: d.name.lower())
    if search and search.strip():
        needle = search.strip().lower()
        drugs = [d for d in drugs if needle in d.name.lower() or needle in d.location.lower()]
    if status is not None:
        drugs = [d for d in drugs if get_stock_status(d, today) == status]
    return drugs


def add_drug(db: Session, data: DrugCreate, actor: User) -> Drug:
    """Store a new drug and open its ledger with an INITIAL entry."""
    ensure_admin(actor, "create", "drug")
    _validate_drug_fields(data)

    drug = Drug(
        name=_clean(data.name),
        quantity=data.quantity,
        unit=_clean(data.unit),
        expiry_date=data.expiry_date,
        location=_clean(data.location),
        notes=_clean(data.notes),
        image=_clean(data.image),
    )
    db.add(drug)
    flush_or_rollback(db, "add drug")
    append_transaction(
        db,
        drug,
        TransactionType.INITIAL,
        quantity_change=drug.quantity,
        quantity_after=drug.quantity,
        user=actor.username,
        reason=REASON_NEW_DRUG,
    )
    commit_or_rollback(db, "add drug")
    db.refresh(drug)

    AuditLog.log_action("create", "drug", drug.id, actor, changes={"name": drug.name, "quantity": drug.quantity})
    logger.info(f"Added drug {drug.id} ({drug.name}) with quantity {drug.quantity}")
    return drug


def update_drug(db: Session, drug_id: int, data: DrugUpdate, actor: User) -> Drug:
    """Replace a drug's fields.

    A quantity change made through this generic edit is recorded as an
    ADJUSTMENT with a fixed reason, so it stays distinguishable from
    adjust_stock entries, which carry the operator's own reason.
    """
    ensure_admin(actor, "update", "drug", drug_id)
    _validate_drug_fields(data)
    drug = get_drug(db, drug_id, for_update=True)

    previous_quantity = drug.quantity
    drug.name = _clean(data.name)
    drug.quantity = data.quantity
    drug.unit = _clean(data.unit)
    drug.expiry_date = data.expiry_date
    drug.location = _clean(data.location)
    drug.notes = _clean(data.notes)
    drug.image = _clean(data.image)

    delta = drug.quantity - previous_quantity
    if delta != 0:
        append_transaction(
            db,
            drug,
            TransactionType.ADJUSTMENT,
            quantity_change=delta,
            quantity_after=drug.quantity,
            user=actor.username,
            reason=REASON_RECORD_EDITED,
        )
    commit_or_rollback(db, "update drug")
    db.refresh(drug)

    AuditLog.log_action("update", "drug", drug.id, actor, changes={"quantity_delta": delta})
    return drug


def adjust_stock(db: Session, drug_id: int, change: int, reason: str, actor: User) -> Drug:
    """Apply a signed correction with a mandatory reason."""
    ensure_admin(actor, "adjust", "drug", drug_id)
    reason = _clean(reason)
    if not reason:
        raise ValidationError("A reason is required for stock adjustments")
    if not change:
        raise ValidationError("Adjustment must change the quantity")

    drug = get_drug(db, drug_id, for_update=True)
    new_quantity = drug.quantity + change
    if new_quantity < 0:
        raise ValidationError(
            f"Adjustment would make {drug.name} negative (current {drug.quantity}, change {change})"
        )

    drug.quantity = new_quantity
    append_transaction(
        db,
        drug,
        TransactionType.ADJUSTMENT,
        quantity_change=change,
        quantity_after=new_quantity,
        user=actor.username,
        reason=reason,
    )
    commit_or_rollback(db, "adjust stock")
    db.refresh(drug)

    AuditLog.log_action("adjust", "drug", drug.id, actor, changes={"change": change, "reason": reason})
    logger.info(f"Adjusted drug {drug.id} by {change} -> {new_quantity}")
    return drug


def delete_drug(db: Session, drug_id: int, actor: User) -> None:
    """Close the drug's ledger at zero and remove it.

    Ledger entries and disbursement records that reference the id are kept.
    """
    ensure_admin(actor, "delete", "drug", drug_id)
    drug = get_drug(db, drug_id, for_update=True)
    closing_quantity = drug.quantity
    drug_name = drug.name

    append_transaction(
        db,
        drug,
        TransactionType.ADJUSTMENT,
        quantity_change=-closing_quantity,
        quantity_after=0,
        user=actor.username,
        reason=REASON_DRUG_DELETED,
    )
    db.delete(drug)
    commit_or_rollback(db, "delete drug")

    AuditLog.log_action("delete", "drug", drug_id, actor, changes={"name": drug_name, "quantity": closing_quantity})
    logger.info(f"Deleted drug {drug_id} ({drug_name}), closed at {closing_quantity}")


def bulk_import(db: Session, rows: Iterable[ImportRow], actor: User) -> list[Drug]:
    """Insert validated spreadsheet rows in one commit.

    Each drug gets a STOCK_IN entry; all entries share the importing user and
    one import timestamp.
    """
    ensure_admin(actor, "import", "drug")
    rows = list(rows)
    if not rows:
        raise ValidationError("No rows to import")
    for row in rows:
        try:
            _validate_drug_fields(row)
        except ValidationError as e:
            raise ValidationError(f"Row {row.row_number}: {e.message}") from e

    imported_at = datetime.now(timezone.utc)
    drugs = []
    for row in rows:
        drug = Drug(
            name=_clean(row.name),
            quantity=row.quantity,
            unit=_clean(row.unit),
            expiry_date=row.expiry_date,
            location=_clean(row.location),
            notes=_clean(row.notes),
        )
        db.add(drug)
        flush_or_rollback(db, "bulk import")
        append_transaction(
            db,
            drug,
            TransactionType.STOCK_IN,
            quantity_change=drug.quantity,
            quantity_after=drug.quantity,
            user=actor.username,
            reason=REASON_IMPORTED,
            timestamp=imported_at,
        )
        drugs.append(drug)

    commit_or_rollback(db, "bulk import")
    for drug in drugs:
        db.refresh(drug)

    AuditLog.log_action("import", "drug", None, actor, changes={"count": len(drugs)})
    logger.info(f"Imported {len(drugs)} drugs from spreadsheet")
    return drugs
