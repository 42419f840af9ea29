"""Auth: login, logout, current user.

The token is returned in the body and also set as an httpOnly, SameSite=strict
cookie for the web frontend.
"""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.audit import AuditLog
from drugstock.core.config import settings
from drugstock.core.exceptions import BusinessError
from drugstock.core.security import create_access_token
from drugstock.models.user import User
from drugstock.schemas.user import Token, UserLogin, UserResponse
from drugstock.services import user_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


@router.post("/login", response_model=Token)
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, data.username, data.password)
    if not user:
        AuditLog.log_authentication("failed_login", data.username, _client_ip(request), False, reason="Invalid credentials")
        # Generic error: don't say which field is wrong
        raise BusinessError.unauthorized(f"failed login for {data.username}")

    token = create_access_token(subject=str(user.id))
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("login", user.username, _client_ip(request), True)
    return Token(access_token=token)


@router.post("/logout")
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.username, _client_ip(request), True)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
