from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from drugstock.core.security import create_access_token, get_password_hash
from drugstock.db.base import Base
from drugstock.models import User, UserRole
from drugstock.schemas.drug import DrugCreate
from drugstock.services import inventory_service

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(engine, autoflush=False)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def admin(db, password_hash):
    user = User(username="admin", role=UserRole.ADMIN, hashed_password=password_hash)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def staff(db, password_hash):
    user = User(username="nurse", role=UserRole.USER, hashed_password=password_hash)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_drug(db, admin):
    def _make(name="Paracetamol 500mg", quantity=100, expiry_in_days=365, unit="tablet", location="Cabinet A1"):
        data = DrugCreate(
            name=name,
            quantity=quantity,
            unit=unit,
            expiry_date=date.today() + timedelta(days=expiry_in_days),
            location=location,
        )
        return inventory_service.add_drug(db, data, admin)

    return _make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    from drugstock.api.deps import get_db
    from drugstock.main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
