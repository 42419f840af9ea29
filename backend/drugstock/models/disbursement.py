"""
Disbursement: a request to withdraw stock, settled by an admin.
Status flow: PENDING -> APPROVED | REJECTED (terminal, exactly once).
Only approval touches inventory.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String

from drugstock.db.base import Base


class DisbursementStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Disbursement(Base):
    __tablename__ = "disbursements"
    # No id reuse after deletion (weak references point at ids)
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    drug_id = Column(Integer, nullable=False, index=True)  # weak reference
    drug_name = Column(String(255), nullable=False)
    quantity_disbursed = Column(Integer, nullable=False)
    unit = Column(String(64), nullable=False)
    request_date = Column(DateTime(timezone=True), nullable=False)
    requested_by = Column(String(64), nullable=False)
    status = Column(
        Enum(DisbursementStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DisbursementStatus.PENDING,
        index=True,
    )
    approval_date = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(64), nullable=True)
