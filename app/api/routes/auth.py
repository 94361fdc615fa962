from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import settings
from app.core.security import TOKEN_TTL_MINUTES, admin_profile, create_access_token, get_current_user, verify_password
from app.schemas.auth import AdminOut, LoginRequest, LoginResponse

router = APIRouter()


def _invalid_credentials() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest) -> LoginResponse:
    """Exchange the operator's e-mail and password for a bearer token."""
    password_hash = settings.admin_password_hash.get_secret_value()
    if payload.email != settings.admin_email.lower() or not password_hash:
        raise _invalid_credentials()
    if not verify_password(payload.password, password_hash):
        raise _invalid_credentials()

    token = create_access_token(settings.admin_email, {"name": settings.admin_name})
    return LoginResponse(
        access_token=token,
        expires_in=TOKEN_TTL_MINUTES * 60,
        admin=AdminOut(**admin_profile()),
    )


@router.get("/me", response_model=AdminOut)
async def me(admin: dict = Depends(get_current_user)) -> AdminOut:
    return AdminOut(**admin)

