import pytest

from drugstock.core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from drugstock.models import User, UserRole
from drugstock.services import user_service

from conftest import TEST_PASSWORD


def test_authenticate(db, admin):
    assert user_service.authenticate(db, "admin", TEST_PASSWORD).id == admin.id
    assert user_service.authenticate(db, " admin ", TEST_PASSWORD).id == admin.id
    assert user_service.authenticate(db, "admin", "wrong-password") is None
    assert user_service.authenticate(db, "ghost", TEST_PASSWORD) is None


def test_create_user_hashes_password(db, admin):
    user = user_service.create_user(db, "pharmacist", "s3cure-pass", UserRole.USER, admin)

    assert user.hashed_password != "s3cure-pass"
    assert user_service.authenticate(db, "pharmacist", "s3cure-pass").id == user.id


def test_create_user_checks(db, admin, staff):
    with pytest.raises(ConflictError):
        user_service.create_user(db, "nurse", "another-pass", UserRole.USER, admin)
    with pytest.raises(ValidationError):
        user_service.create_user(db, "clerk", "short", UserRole.USER, admin)
    with pytest.raises(PermissionDeniedError):
        user_service.create_user(db, "clerk", "long-enough", UserRole.USER, staff)


def test_update_user(db, admin, staff):
    user = user_service.update_user(db, staff.id, admin, role=UserRole.ADMIN, password="new-password-1")

    assert user.role == UserRole.ADMIN
    assert user_service.authenticate(db, "nurse", "new-password-1") is not None

    with pytest.raises(ConflictError):
        user_service.update_user(db, staff.id, admin, username="admin")


def test_delete_user(db, admin, staff):
    with pytest.raises(ValidationError):
        user_service.delete_user(db, admin.id, admin)

    user_service.delete_user(db, staff.id, admin)
    assert db.query(User).count() == 1


def test_password_longer_than_bcrypt_limit(db, admin, staff):
    with pytest.raises(ValidationError):
        user_service.create_user(db, "clerk", "x" * 100, UserRole.USER, admin)
    # 40 characters, 80 bytes
    with pytest.raises(ValidationError):
        user_service.update_user(db, staff.id, admin, password="é" * 40)
    assert user_service.get_by_username(db, "clerk") is None
    assert user_service.authenticate(db, "nurse", TEST_PASSWORD) is not None
