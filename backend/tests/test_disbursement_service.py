from datetime import datetime, timezone

import pytest

from drugstock.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from drugstock.models import Disbursement, StockTransaction
from drugstock.models.disbursement import DisbursementStatus
from drugstock.models.stock_transaction import TransactionType
from drugstock.services import disbursement_service, inventory_service, ledger_service


def disbursement_entries(db):
    return db.query(StockTransaction).filter(StockTransaction.type == TransactionType.DISBURSEMENT).all()


def test_create_request(db, staff, make_drug):
    drug = make_drug(name="Amoxicillin 250mg", quantity=40, unit="capsule")

    record = disbursement_service.create_request(db, drug.id, 12, staff)

    assert record.status == DisbursementStatus.PENDING
    assert record.drug_name == "Amoxicillin 250mg"
    assert record.unit == "capsule"
    assert record.requested_by == "nurse"
    assert record.approval_date is None
    db.refresh(drug)
    assert drug.quantity == 40
    assert disbursement_entries(db) == []


@pytest.mark.parametrize("quantity", [0, -3])
def test_create_rejects_non_positive_quantity(db, staff, make_drug, quantity):
    drug = make_drug(quantity=10)
    with pytest.raises(ValidationError):
        disbursement_service.create_request(db, drug.id, quantity, staff)
    assert db.query(Disbursement).count() == 0


def test_create_rejects_unknown_drug(db, staff):
    with pytest.raises(ValidationError):
        disbursement_service.create_request(db, 999, 1, staff)


def test_create_rejects_more_than_available(db, staff, make_drug):
    drug = make_drug(quantity=10)
    with pytest.raises(InsufficientStockError) as excinfo:
        disbursement_service.create_request(db, drug.id, 11, staff)
    assert excinfo.value.available == 10
    assert excinfo.value.requested == 11


def test_request_for_entire_stock_can_be_approved(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 10, staff)

    record = disbursement_service.approve_request(db, record.id, admin)

    assert record.status == DisbursementStatus.APPROVED
    assert record.approved_by == "admin"
    assert record.approval_date is not None
    db.refresh(drug)
    assert drug.quantity == 0
    [entry] = disbursement_entries(db)
    assert entry.quantity_change == -10
    assert entry.quantity_after == 0
    assert entry.user == "admin"
    assert "nurse" in entry.reason
    assert ledger_service.ledger_balance(db, drug.id) == 0


def test_approval_rechecks_stock(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 8, staff)
    inventory_service.adjust_stock(db, drug.id, -5, "Expired strips removed", admin)

    with pytest.raises(InsufficientStockError):
        disbursement_service.approve_request(db, record.id, admin)

    db.refresh(record)
    db.refresh(drug)
    assert record.status == DisbursementStatus.PENDING
    assert record.approval_date is None
    assert drug.quantity == 5
    assert disbursement_entries(db) == []


def test_reject_has_no_inventory_effect(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 4, staff)

    record = disbursement_service.reject_request(db, record.id, admin)

    assert record.status == DisbursementStatus.REJECTED
    assert record.approved_by == "admin"
    db.refresh(drug)
    assert drug.quantity == 10
    assert disbursement_entries(db) == []


def test_settled_requests_cannot_be_settled_again(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 2, staff)
    disbursement_service.approve_request(db, record.id, admin)

    with pytest.raises(ConflictError):
        disbursement_service.approve_request(db, record.id, admin)
    with pytest.raises(ConflictError):
        disbursement_service.reject_request(db, record.id, admin)
    db.refresh(drug)
    assert drug.quantity == 8


def test_only_admins_settle(db, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 2, staff)

    with pytest.raises(PermissionDeniedError):
        disbursement_service.approve_request(db, record.id, staff)
    with pytest.raises(PermissionDeniedError):
        disbursement_service.reject_request(db, record.id, staff)


def test_approve_after_drug_deleted(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    record = disbursement_service.create_request(db, drug.id, 2, staff)
    inventory_service.delete_drug(db, drug.id, admin)

    with pytest.raises(NotFoundError):
        disbursement_service.approve_request(db, record.id, admin)
    db.refresh(record)
    assert record.status == DisbursementStatus.PENDING
    assert record.drug_name == "Paracetamol 500mg"


def test_unknown_request(db, admin):
    with pytest.raises(NotFoundError):
        disbursement_service.approve_request(db, 12345, admin)


def test_edit_dates(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    pending = disbursement_service.create_request(db, drug.id, 1, staff)
    settled = disbursement_service.create_request(db, drug.id, 1, staff)
    disbursement_service.approve_request(db, settled.id, admin)

    requested = datetime(2025, 1, 3, 9, 30, tzinfo=timezone.utc)
    approved = datetime(2025, 1, 4, 11, 0, tzinfo=timezone.utc)

    with pytest.raises(ValidationError):
        disbursement_service.edit_dates(db, pending.id, requested, approved, admin)
    with pytest.raises(ValidationError):
        disbursement_service.edit_dates(db, settled.id, requested, None, admin)

    record = disbursement_service.edit_dates(db, settled.id, requested, approved, admin)
    assert record.status == DisbursementStatus.APPROVED
    assert (record.approval_date.year, record.approval_date.month, record.approval_date.day) == (2025, 1, 4)
    db.refresh(drug)
    assert drug.quantity == 9


def test_list_requests_visibility(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    mine = disbursement_service.create_request(db, drug.id, 1, staff)
    disbursement_service.create_request(db, drug.id, 1, admin)

    assert [r.id for r in disbursement_service.list_requests(db, staff)] == [mine.id]
    assert len(disbursement_service.list_requests(db, admin)) == 2
    assert len(disbursement_service.pending_requests(db)) == 2


def test_approved_in_month(db, admin, staff, make_drug):
    drug = make_drug(quantity=10)
    january = disbursement_service.create_request(db, drug.id, 1, staff)
    february = disbursement_service.create_request(db, drug.id, 1, staff)
    disbursement_service.create_request(db, drug.id, 1, staff)
    for record in (january, february):
        disbursement_service.approve_request(db, record.id, admin)

    disbursement_service.edit_dates(
        db, january.id, january.request_date, datetime(2025, 1, 20, tzinfo=timezone.utc), admin
    )
    disbursement_service.edit_dates(
        db, february.id, february.request_date, datetime(2025, 2, 2, tzinfo=timezone.utc), admin
    )

    assert [r.id for r in disbursement_service.approved_in_month(db, 2025, 1)] == [january.id]
    assert [r.id for r in disbursement_service.approved_in_month(db, 2025, 2)] == [february.id]
    assert disbursement_service.approved_in_month(db, 2025, 3) == []


def test_deleted_drug_id_is_not_reused(db, admin, staff, make_drug):
    make_drug(name="Amoxicillin 250mg", quantity=50)
    removed = make_drug(name="Ibuprofen 400mg", quantity=30)
    removed_id = removed.id
    record = disbursement_service.create_request(db, removed_id, 5, staff)
    inventory_service.delete_drug(db, removed_id, admin)

    newcomer = make_drug(name="Cetirizine 10mg", quantity=100)

    assert newcomer.id != removed_id
    with pytest.raises(NotFoundError):
        disbursement_service.approve_request(db, record.id, admin)
    db.refresh(newcomer)
    assert newcomer.quantity == 100
    history = db.query(StockTransaction).filter(StockTransaction.drug_id == removed_id).all()
    assert {t.drug_name for t in history} == {"Ibuprofen 400mg"}
    assert ledger_service.ledger_balance(db, removed_id) == 0
