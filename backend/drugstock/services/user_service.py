"""User accounts: login check and admin-managed CRUD."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from drugstock.core.audit import AuditLog
from drugstock.core.exceptions import ConflictError, NotFoundError, ValidationError
from drugstock.core.permissions import ensure_admin
from drugstock.core.security import get_password_hash, verify_password
from drugstock.db.session import commit_or_rollback
from drugstock.models.user import User, UserRole

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


def _validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def get_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user if the credentials match, else None."""
    user = get_by_username(db, (username or "").strip())
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username).all()


def create_user(
    db: Session,
    username: str,
    password: str,
    role: UserRole,
    actor: User,
    avatar: Optional[str] = None,
) -> User:
    ensure_admin(actor, "create", "user")
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username cannot be empty")
    _validate_password(password)
    if get_by_username(db, username):
        raise ConflictError(f"Username '{username}' is already taken")

    user = User(
        username=username,
        role=role,
        hashed_password=get_password_hash(password),
        avatar=avatar,
    )
    db.add(user)
    commit_or_rollback(db, "create user")
    db.refresh(user)

    AuditLog.log_action("create", "user", user.id, actor, changes={"username": username, "role": role.value})
    return user


def update_user(
    db: Session,
    user_id: int,
    actor: User,
    username: Optional[str] = None,
    role: Optional[UserRole] = None,
    password: Optional[str] = None,
    avatar: Optional[str] = None,
) -> User:
    ensure_admin(actor, "update", "user", user_id)
    user = get_user(db, user_id)
    changes = {}

    if username is not None:
        username = username.strip()
        if not username:
            raise ValidationError("Username cannot be empty")
        existing = get_by_username(db, username)
        if existing and existing.id != user.id:
            raise ConflictError(f"Username '{username}' is already taken")
        user.username = username
        changes["username"] = username
    if role is not None:
        user.role = role
        changes["role"] = role.value
    if password:
        _validate_password(password)
        user.hashed_password = get_password_hash(password)
        changes["password"] = "changed"
    if avatar is not None:
        user.avatar = avatar or None

    commit_or_rollback(db, "update user")
    db.refresh(user)

    AuditLog.log_action("update", "user", user.id, actor, changes=changes)
    return user


def delete_user(db: Session, user_id: int, actor: User) -> None:
    ensure_admin(actor, "delete", "user", user_id)
    if actor.id == user_id:
        raise ValidationError("You cannot delete your own account")
    user = get_user(db, user_id)
    username = user.username

    db.delete(user)
    commit_or_rollback(db, "delete user")

    AuditLog.log_action("delete", "user", user_id, actor, changes={"username": username})
    logger.info(f"Deleted user {username}")
