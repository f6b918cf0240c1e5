import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resume_vault.core.config import settings
from resume_vault.core.db import commit_or_fail, get_session
from resume_vault.core.errors import ValidationError
from resume_vault.core.models.user import User
from resume_vault.core.schemas import LoginIn, MessageOut, RegisterIn, TokenOut, UserOut
from resume_vault.core.security import (
    create_access_token,
    get_password_hash,
    require_user_id,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: User, status_code: int = 200) -> JSONResponse:
    token = create_access_token(str(user.id))
    body = TokenOut(access_token=token, user=UserOut.model_validate(user))
    resp = JSONResponse(body.model_dump(mode="json", by_alias=True), status_code=status_code)
    resp.set_cookie(
        settings.JWT_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.JWT_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    return resp


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, session: AsyncSession = Depends(get_session)):
    email = (body.email or "").strip().lower()
    if not email or not body.password:
        raise ValidationError("Email and password are required")
    existing = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if existing:
        raise ValidationError("Email is already registered")
    user = User(email=email, name=(body.name or "").strip() or None, password_hash=get_password_hash(body.password))
    session.add(user)
    await commit_or_fail(session, "register user")
    await session.refresh(user)
    logger.info("Registered user %s", user.id)
    return _token_response(user, status_code=status.HTTP_201_CREATED)


@router.post("/login", response_model=TokenOut)
async def login(body: LoginIn, session: AsyncSession = Depends(get_session)):
    email = (body.email or "").strip().lower()
    user = (await session.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return _token_response(user)


@router.post("/logout", response_model=MessageOut)
async def logout():
    resp = JSONResponse({"message": "Logged out"})
    resp.delete_cookie(settings.JWT_COOKIE_NAME, path="/")
    return resp


@router.get("/me", response_model=UserOut)
async def me(user_id: int = Depends(require_user_id), session: AsyncSession = Depends(get_session)):
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return UserOut.model_validate(user)
