"""Dashboard aggregates, recomputed from current state on every call."""
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from drugstock.services import disbursement_service, ledger_service
from drugstock.services.drug_repository import load_all
from drugstock.services.stock_status import StockStatus, get_stock_status

RECENT_TRANSACTION_COUNT = 5


def stock_summary(drugs, today: Optional[date] = None) -> dict:
    counts = {status: 0 for status in StockStatus}
    for drug in drugs:
        counts[get_stock_status(drug, today)] += 1
    return {
        "total_items": len(drugs),
        "low_stock_count": counts[StockStatus.LOW_STOCK],
        "expiring_soon_count": counts[StockStatus.EXPIRING_SOON],
        "expired_count": counts[StockStatus.EXPIRED],
        "out_of_stock_count": counts[StockStatus.OUT_OF_STOCK],
    }


def low_stock_drugs(drugs, today: Optional[date] = None) -> list:
    return [d for d in drugs if get_stock_status(d, today) == StockStatus.LOW_STOCK]


def expiring_or_expired_drugs(drugs, today: Optional[date] = None) -> list:
    """Expired and expiring-soon drugs, soonest expiry first."""
    flagged = [
        d for d in drugs
        if get_stock_status(d, today) in (StockStatus.EXPIRING_SOON, StockStatus.EXPIRED)
    ]
    return sorted(flagged, key=lambda d: d.expiry_date)


def build_dashboard(db: Session, today: Optional[date] = None) -> dict:
    drugs = load_all(db)
    return {
        "stats": stock_summary(drugs, today),
        "low_stock": low_stock_drugs(drugs, today),
        "expiring": expiring_or_expired_drugs(drugs, today),
        "recent_transactions": ledger_service.recent_transactions(db, RECENT_TRANSACTION_COUNT),
        "pending_requests": disbursement_service.pending_requests(db),
    }
