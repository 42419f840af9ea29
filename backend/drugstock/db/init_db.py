"""Create all tables and bootstrap the first administrator. Run on app startup.

The default admin gets a random password (never a hardcoded one), printed
once to the log. Change it after first login.
"""
import logging
import secrets

from sqlalchemy.orm import Session

from drugstock.core.config import settings
from drugstock.core.security import get_password_hash
from drugstock.db.base import Base
from drugstock.db.session import engine, SessionLocal
from drugstock.models import Disbursement, Drug, StockTransaction, User  # noqa: F401 - register models
from drugstock.models.user import UserRole
from drugstock.services import drug_repository

logger = logging.getLogger(__name__)


def create_default_admin(db: Session) -> str | None:
    """Create the bootstrap admin if the user table is empty. Returns the generated password."""
    if db.query(User).count() > 0:
        return None

    password = secrets.token_urlsafe(16)
    admin = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        role=UserRole.ADMIN,
        hashed_password=get_password_hash(password),
    )
    db.add(admin)
    db.commit()
    return password


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        password = create_default_admin(db)
        if password:
            logger.warning(
                "Default admin user created: username=%s password=%s "
                "(change this password immediately after first login)",
                settings.DEFAULT_ADMIN_USERNAME,
                password,
            )
        # Seeds an empty catalogue when SEED_DEFAULT_DRUGS is on
        drug_repository.load_all(db)
    finally:
        db.close()
