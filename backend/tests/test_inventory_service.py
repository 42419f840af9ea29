from datetime import date, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from drugstock.core.exceptions import IntegrationError, NotFoundError, PermissionDeniedError, ValidationError
from drugstock.models import Drug, StockTransaction
from drugstock.models.stock_transaction import TransactionType
from drugstock.schemas.drug import DrugCreate, DrugUpdate, ImportRow
from drugstock.services import inventory_service, ledger_service
from drugstock.services.stock_status import StockStatus


def history(db, drug_id):
    return (
        db.query(StockTransaction)
        .filter(StockTransaction.drug_id == drug_id)
        .order_by(StockTransaction.id)
        .all()
    )


def test_add_drug_opens_ledger(db, admin, make_drug):
    drug = make_drug(name="  Amoxicillin 250mg ", quantity=40)

    assert drug.name == "Amoxicillin 250mg"
    [entry] = history(db, drug.id)
    assert entry.type == TransactionType.INITIAL
    assert entry.quantity_change == 40
    assert entry.quantity_after == 40
    assert entry.user == "admin"
    assert entry.drug_name == "Amoxicillin 250mg"


def test_add_drug_rejects_blank_fields(db, admin):
    data = DrugCreate(name="   ", quantity=1, unit="tablet", expiry_date=date.today(), location="A1")
    with pytest.raises(ValidationError):
        inventory_service.add_drug(db, data, admin)
    assert db.query(Drug).count() == 0


def test_regular_user_cannot_mutate(db, staff, make_drug):
    drug = make_drug()
    data = DrugCreate(name="X", quantity=1, unit="tablet", expiry_date=date.today(), location="A1")

    with pytest.raises(PermissionDeniedError):
        inventory_service.add_drug(db, data, staff)
    with pytest.raises(PermissionDeniedError):
        inventory_service.adjust_stock(db, drug.id, -1, "Count", staff)
    with pytest.raises(PermissionDeniedError):
        inventory_service.delete_drug(db, drug.id, staff)
    assert len(history(db, drug.id)) == 1


def test_update_records_quantity_delta(db, admin, make_drug):
    drug = make_drug(quantity=50)
    data = DrugUpdate(
        name=drug.name,
        quantity=35,
        unit=drug.unit,
        expiry_date=drug.expiry_date,
        location="Cabinet B3",
    )

    updated = inventory_service.update_drug(db, drug.id, data, admin)

    assert updated.quantity == 35
    assert updated.location == "Cabinet B3"
    entry = history(db, drug.id)[-1]
    assert entry.type == TransactionType.ADJUSTMENT
    assert entry.quantity_change == -15
    assert entry.reason == inventory_service.REASON_RECORD_EDITED


def test_update_without_quantity_change_writes_no_entry(db, admin, make_drug):
    drug = make_drug(quantity=50)
    data = DrugUpdate(
        name="Paracetamol 1g",
        quantity=50,
        unit=drug.unit,
        expiry_date=drug.expiry_date,
        location=drug.location,
    )
    inventory_service.update_drug(db, drug.id, data, admin)
    assert len(history(db, drug.id)) == 1


def test_adjust_stock(db, admin, make_drug):
    drug = make_drug(quantity=30)

    drug = inventory_service.adjust_stock(db, drug.id, -12, "Damaged in transit", admin)

    assert drug.quantity == 18
    entry = history(db, drug.id)[-1]
    assert entry.quantity_change == -12
    assert entry.quantity_after == 18
    assert entry.reason == "Damaged in transit"


@pytest.mark.parametrize("change, reason", [(5, ""), (5, "   "), (0, "Recount")])
def test_adjust_stock_input_checks(db, admin, make_drug, change, reason):
    drug = make_drug(quantity=30)
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(db, drug.id, change, reason, admin)
    assert len(history(db, drug.id)) == 1


def test_adjust_stock_cannot_go_negative(db, admin, make_drug):
    drug = make_drug(quantity=3)
    with pytest.raises(ValidationError):
        inventory_service.adjust_stock(db, drug.id, -4, "Recount", admin)
    db.refresh(drug)
    assert drug.quantity == 3


def test_adjust_unknown_drug(db, admin):
    with pytest.raises(NotFoundError):
        inventory_service.adjust_stock(db, 404, 1, "Recount", admin)


def test_delete_closes_ledger_and_keeps_history(db, admin, make_drug):
    drug = make_drug(quantity=30)
    drug_id = drug.id

    inventory_service.delete_drug(db, drug_id, admin)

    assert db.query(Drug).filter(Drug.id == drug_id).first() is None
    entries = history(db, drug_id)
    assert len(entries) == 2
    assert entries[-1].quantity_change == -30
    assert entries[-1].quantity_after == 0
    assert entries[-1].reason == inventory_service.REASON_DRUG_DELETED
    assert ledger_service.ledger_balance(db, drug_id) == 0


def test_quantity_matches_ledger_after_mixed_operations(db, admin, make_drug):
    drug = make_drug(quantity=100)
    inventory_service.adjust_stock(db, drug.id, -20, "Ward top-up", admin)
    inventory_service.adjust_stock(db, drug.id, 7, "Returned", admin)
    inventory_service.update_drug(
        db,
        drug.id,
        DrugUpdate(name=drug.name, quantity=60, unit=drug.unit, expiry_date=drug.expiry_date, location=drug.location),
        admin,
    )

    db.refresh(drug)
    assert drug.quantity == 60
    assert ledger_service.ledger_balance(db, drug.id) == 60


def test_bulk_import_writes_stock_in_entries(db, admin):
    expiry = date.today() + timedelta(days=200)
    rows = [
        ImportRow(row_number=2, name="Metformin 500mg", quantity=120, unit="tablet", expiry_date=expiry, location="D1"),
        ImportRow(row_number=3, name="Saline 0.9%", quantity=0, unit="bag", expiry_date=expiry, location="D2"),
    ]

    drugs = inventory_service.bulk_import(db, rows, admin)

    assert [d.name for d in drugs] == ["Metformin 500mg", "Saline 0.9%"]
    entries = db.query(StockTransaction).order_by(StockTransaction.id).all()
    assert [e.type for e in entries] == [TransactionType.STOCK_IN, TransactionType.STOCK_IN]
    assert [e.quantity_change for e in entries] == [120, 0]
    assert entries[0].timestamp == entries[1].timestamp
    assert {e.user for e in entries} == {"admin"}


def test_bulk_import_is_all_or_nothing(db, admin):
    expiry = date.today() + timedelta(days=200)
    rows = [
        ImportRow(row_number=2, name="Metformin 500mg", quantity=120, unit="tablet", expiry_date=expiry, location="D1"),
        ImportRow(row_number=3, name="Saline 0.9%", quantity=10, unit="bag", expiry_date=expiry, location=" "),
    ]

    with pytest.raises(ValidationError, match="Row 3"):
        inventory_service.bulk_import(db, rows, admin)
    assert db.query(Drug).count() == 0
    assert db.query(StockTransaction).count() == 0


def test_list_drugs_search_and_status(db, make_drug):
    make_drug(name="Paracetamol 500mg", quantity=200, location="Cabinet A1")
    make_drug(name="Ibuprofen 400mg", quantity=5, location="Cabinet B1")
    make_drug(name="Cetirizine 10mg", quantity=80, expiry_in_days=20, location="Fridge")

    assert [d.name for d in inventory_service.list_drugs(db)] == [
        "Cetirizine 10mg",
        "Ibuprofen 400mg",
        "Paracetamol 500mg",
    ]
    assert [d.name for d in inventory_service.list_drugs(db, search="cabinet b")] == ["Ibuprofen 400mg"]
    assert [d.name for d in inventory_service.list_drugs(db, status=StockStatus.LOW_STOCK)] == ["Ibuprofen 400mg"]
    assert [d.name for d in inventory_service.list_drugs(db, status=StockStatus.EXPIRING_SOON)] == ["Cetirizine 10mg"]


def test_flush_failure_becomes_integration_error(db, admin, monkeypatch):
    def failing_flush(*args, **kwargs):
        raise SQLAlchemyError("disk I/O error")

    data = DrugCreate(name="Zinc 20mg", quantity=10, unit="tablet", expiry_date=date.today(), location="E1")
    monkeypatch.setattr(db, "flush", failing_flush)

    with pytest.raises(IntegrationError):
        inventory_service.add_drug(db, data, admin)

    monkeypatch.undo()
    assert db.query(Drug).count() == 0
