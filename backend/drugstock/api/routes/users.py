"""User management (admin only)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.permissions import ensure_admin
from drugstock.models.user import User
from drugstock.schemas.user import UserCreate, UserResponse, UserUpdate
from drugstock.services import user_service

router = APIRouter()


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ensure_admin(current_user, "list", "user")
    return user_service.list_users(db)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return user_service.create_user(db, data.username, data.password, data.role, current_user, avatar=data.avatar)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.update_user(
        db,
        user_id,
        current_user,
        username=data.username,
        role=data.role,
        password=data.password,
        avatar=data.avatar,
    )


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    user_service.delete_user(db, user_id, current_user)
    return {"message": "User deleted", "id": user_id}
