import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String
from sqlalchemy.sql import func

from drugstock.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    role = Column(
        Enum(UserRole, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )
    hashed_password = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=True)  # URL
    created_at = Column(DateTime(timezone=True), server_default=func.now())
