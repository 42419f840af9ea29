from sqlalchemy import Column, Date, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from drugstock.db.base import Base


class Drug(Base):
    """
    A tracked medication in the store room.

    quantity is only changed through inventory_service / disbursement_service,
    which write the matching StockTransaction in the same unit of work.
    """
    __tablename__ = "drugs"
    # No id reuse after deletion (weak references point at ids)
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(64), nullable=False)
    expiry_date = Column(Date, nullable=False)
    location = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    image = Column(Text, nullable=True)  # URL or data URI
    created_at = Column(DateTime(timezone=True), server_default=func.now())
