"""
StockTransaction: append-only ledger of quantity changes.

drug_id is a weak reference (no foreign key): deleting a drug keeps its history.
drug_name is a snapshot taken when the entry was written.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String

from drugstock.db.base import Base


class TransactionType(str, enum.Enum):
    INITIAL = "INITIAL"
    STOCK_IN = "STOCK_IN"
    DISBURSEMENT = "DISBURSEMENT"
    ADJUSTMENT = "ADJUSTMENT"


class StockTransaction(Base):
    __tablename__ = "stock_transactions"
    # No id reuse after deletion (weak references point at ids)
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    drug_id = Column(Integer, nullable=False, index=True)
    drug_name = Column(String(255), nullable=False)
    type = Column(
        Enum(TransactionType, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity_change = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    reason = Column(String(512), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    user = Column(String(64), nullable=False)  # acting username
