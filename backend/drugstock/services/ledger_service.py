"""Stock ledger. Used by inventory and disbursement services; read by audit trail, dashboard and assistant."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from drugstock.db.session import flush_or_rollback
from drugstock.models.drug import Drug
from drugstock.models.stock_transaction import StockTransaction, TransactionType


def append_transaction(
    db: Session,
    drug: Drug,
    type: TransactionType,
    quantity_change: int,
    quantity_after: int,
    user: str,
    reason: str | None = None,
    timestamp: datetime | None = None,
) -> StockTransaction:
    """Add one ledger entry to the caller's unit of work.

    The caller has already computed quantity_change and quantity_after.
    Flushes so the entry gets an id, but never commits.
    """
    entry = StockTransaction(
        drug_id=drug.id,
        drug_name=drug.name,
        type=type,
        quantity_change=quantity_change,
        quantity_after=quantity_after,
        reason=reason,
        timestamp=timestamp or datetime.now(timezone.utc),
        user=user,
    )
    db.add(entry)
    flush_or_rollback(db, "append ledger entry")
    return entry


def query_transactions(
    db: Session,
    search: Optional[str] = None,
    type: Optional[TransactionType] = None,
    drug_id: Optional[int] = None,
) -> Query:
    """Filtered view over the ledger, most recent first.

    Returns an unevaluated Query: every iteration hits the table again, so
    entries appended after the call are included.
    """
    q = db.query(StockTransaction)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                StockTransaction.drug_name.ilike(pattern),
                StockTransaction.user.ilike(pattern),
                StockTransaction.reason.ilike(pattern),
            )
        )
    if type is not None:
        q = q.filter(StockTransaction.type == type)
    if drug_id is not None:
        q = q.filter(StockTransaction.drug_id == drug_id)
    return q.order_by(StockTransaction.id.desc())


def recent_transactions(db: Session, limit: int = 5) -> list[StockTransaction]:
    return query_transactions(db).limit(limit).all()


def ledger_balance(db: Session, drug_id: int) -> int:
    """Sum of all quantity changes recorded for a drug."""
    total = (
        db.query(func.sum(StockTransaction.quantity_change))
        .filter(StockTransaction.drug_id == drug_id)
        .scalar()
    )
    return int(total or 0)
