"""
Whole-collection persistence for drugs.

Two primitives only: load_all (seeds the default catalogue on first read of an
empty table) and replace_all. There is no partial update here; per-drug
mutations go through inventory_service.
"""
import logging
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from drugstock.core.audit import AuditLog
from drugstock.core.config import settings
from drugstock.core.exceptions import IntegrationError
from drugstock.models.drug import Drug
from drugstock.models.stock_transaction import TransactionType
from drugstock.services.ledger_service import append_transaction

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"
SEED_REASON = "Initial catalogue"
REPLACED_REASON = "Catalogue replaced"


def default_drugs(today: date | None = None) -> list[dict]:
    """Starter catalogue: one drug per stock status, relative to today."""
    today = today or date.today()
    return [
        {
            "name": "Paracetamol 500mg",
            "quantity": 150,
            "unit": "tablet",
            "expiry_date": today + timedelta(days=540),
            "location": "Cabinet A1, shelf 1",
            "notes": "Fever and pain relief",
        },
        {
            "name": "Ibuprofen 400mg",
            "quantity": 18,
            "unit": "tablet",
            "expiry_date": today + timedelta(days=400),
            "location": "Cabinet A2, shelf 2",
            "notes": "Pain relief, anti-inflammatory",
        },
        {
            "name": "Cetirizine 10mg",
            "quantity": 60,
            "unit": "tablet",
            "expiry_date": today + timedelta(days=60),
            "location": "Cabinet B1, shelf 1",
        },
        {
            "name": "Mist. Carminative",
            "quantity": 30,
            "unit": "bottle",
            "expiry_date": today + timedelta(days=300),
            "location": "Cabinet C1, shelf 3",
        },
        {
            "name": "Alcohol 70%",
            "quantity": 0,
            "unit": "bottle",
            "expiry_date": today + timedelta(days=450),
            "location": "Cabinet C2, shelf 3",
        },
        {
            "name": "ORS sachet",
            "quantity": 100,
            "unit": "sachet",
            "expiry_date": today - timedelta(days=30),
            "location": "Cabinet B2, shelf 2",
        },
    ]


def replace_all(db: Session, drugs: Iterable[dict], user: str = SYSTEM_USER) -> list[Drug]:
    """Replace the entire drug collection.

    Existing drugs are closed at zero with an ADJUSTMENT, like a single
    delete; each stored drug opens its ledger with an INITIAL entry. The
    quantity invariant therefore holds on both sides of the swap.
    """
    try:
        for old in db.query(Drug).order_by(Drug.id).all():
            append_transaction(
                db,
                old,
                TransactionType.ADJUSTMENT,
                quantity_change=-old.quantity,
                quantity_after=0,
                user=user,
                reason=REPLACED_REASON,
            )
            db.delete(old)
        db.flush()
        stored = []
        for data in drugs:
            drug = Drug(**data)
            db.add(drug)
            db.flush()
            append_transaction(
                db,
                drug,
                TransactionType.INITIAL,
                quantity_change=drug.quantity,
                quantity_after=drug.quantity,
                user=user,
                reason=SEED_REASON,
            )
            stored.append(drug)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        AuditLog.log_integration_failure("database", "replace_all", e)
        raise IntegrationError("Failed to store drug collection") from e

    for drug in stored:
        db.refresh(drug)
    return stored


def load_all(db: Session) -> list[Drug]:
    """Return every drug.

    An empty table is seeded with the default catalogue unless
    SEED_DEFAULT_DRUGS is off.
    """
    try:
        drugs = db.query(Drug).order_by(Drug.id).all()
    except SQLAlchemyError as e:
        AuditLog.log_integration_failure("database", "load_all", e)
        raise IntegrationError("Failed to load drugs") from e

    if drugs or not settings.SEED_DEFAULT_DRUGS:
        return drugs

    logger.info("No drugs found, seeding with initial data...")
    return replace_all(db, default_drugs())
