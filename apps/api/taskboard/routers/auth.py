from __future__ import annotations

import logging
import os
from uuid import uuid4

from fastapi import APIRouter, Cookie, Depends, File, HTTPException, Request, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.db import commit_or_rollback
from taskboard.deps import client_ip, get_current_user, get_db, get_limiter, get_settings, session_token
from taskboard.errors import Conflict, ValidationError
from taskboard.models import Session as DbSession, User, new_id
from taskboard.rate_limit import RateLimiter
from taskboard.schemas import AuthOut, LoginIn, PasswordChangeIn, RegisterIn, UserOut
from taskboard.security import (
  PASSWORD_MIN_LENGTH,
  SESSION_COOKIE_NAME,
  hash_password,
  is_valid_email,
  new_session_expires_at,
  normalize_email,
  verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_AVATAR_TYPES = {"image/png": ".png", "image/jpeg": ".jpg", "image/webp": ".webp", "image/gif": ".gif"}


def _user_out(u: User) -> UserOut:
  return UserOut(id=u.id, name=u.name, email=u.email, avatarUrl=u.avatar_url or "", createdAt=u.created_at)


def _rate_limit_or_429(limiter: RateLimiter, *, key: str, limit: int, window_seconds: int) -> None:
  allowed, retry_after = limiter.hit(key, limit=limit, window_seconds=window_seconds)
  if allowed:
    return
  raise HTTPException(
    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    detail={"code": "rate_limited", "message": "Too many requests", "retryAfterSeconds": retry_after},
    headers={"Retry-After": str(retry_after)},
  )


async def _start_session(db: AsyncSession, response: Response, user: User, settings: Settings) -> str:
  s = DbSession(id=new_id(), user_id=user.id, expires_at=new_session_expires_at(settings.session_ttl_days))
  db.add(s)
  await commit_or_rollback(db, action="start session")
  response.set_cookie(
    SESSION_COOKIE_NAME,
    s.id,
    httponly=True,
    samesite="lax",
    secure=settings.cookie_secure,
    domain=settings.cookie_domain,
    max_age=settings.session_ttl_days * 24 * 3600,
  )
  return s.id


def _check_password(password: str) -> None:
  if len(password or "") < PASSWORD_MIN_LENGTH:
    raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
  payload: RegisterIn,
  request: Request,
  response: Response,
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
  limiter: RateLimiter = Depends(get_limiter),
) -> AuthOut:
  _rate_limit_or_429(
    limiter, key=f"auth:register:ip:{client_ip(request)}", limit=settings.rate_limit_register_ip_per_minute, window_seconds=60
  )
  name = payload.name.strip()
  email = normalize_email(payload.email)
  if not name or not email or not payload.password:
    raise ValidationError("name, email and password are required")
  if len(name) < 2:
    raise ValidationError("Name must be at least 2 characters long")
  if not is_valid_email(email):
    raise ValidationError("Please enter a valid email")
  _check_password(payload.password)

  exists = await db.execute(select(User.id).where(User.email == email))
  if exists.scalar_one_or_none():
    raise Conflict("User with this email already exists")

  u = User(id=new_id(), name=name, email=email, password_hash=hash_password(payload.password, rounds=settings.bcrypt_rounds))
  db.add(u)
  await commit_or_rollback(db, action="register user")
  token = await _start_session(db, response, u, settings)
  logger.info("registered user %s", u.id)
  return AuthOut(token=token, user=_user_out(u))


@router.post("/login", response_model=AuthOut)
async def login(
  payload: LoginIn,
  request: Request,
  response: Response,
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
  limiter: RateLimiter = Depends(get_limiter),
) -> AuthOut:
  ip = client_ip(request)
  email = normalize_email(payload.email)
  _rate_limit_or_429(limiter, key=f"auth:login:ip:{ip}", limit=settings.rate_limit_login_ip_per_minute, window_seconds=60)
  if email:
    _rate_limit_or_429(limiter, key=f"auth:login:email:{email}", limit=settings.rate_limit_login_email_per_minute, window_seconds=60)
  if not email or not payload.password:
    raise ValidationError("Email and password are required")

  res = await db.execute(select(User).where(User.email == email))
  u = res.scalar_one_or_none()
  if not u or not verify_password(payload.password, u.password_hash):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
  token = await _start_session(db, response, u, settings)
  return AuthOut(token=token, user=_user_out(u))


@router.post("/logout")
async def logout(
  request: Request,
  response: Response,
  db: AsyncSession = Depends(get_db),
  session_id: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> dict:
  token = session_token(request, session_id)
  if token:
    await db.execute(delete(DbSession).where(DbSession.id == token))
    await commit_or_rollback(db, action="logout")
  response.delete_cookie(SESSION_COOKIE_NAME)
  return {"ok": True}


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)) -> UserOut:
  return _user_out(user)


@router.post("/password")
async def change_password(
  payload: PasswordChangeIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> dict:
  if not verify_password(payload.currentPassword, user.password_hash):
    raise ValidationError("Current password incorrect")
  _check_password(payload.newPassword)
  user.password_hash = hash_password(payload.newPassword, rounds=settings.bcrypt_rounds)
  await commit_or_rollback(db, action="change password")
  return {"ok": True}


@router.get("/avatar/{filename}")
async def avatar_file(filename: str, settings: Settings = Depends(get_settings)) -> FileResponse:
  safe = os.path.basename(filename)
  if not safe or safe != filename:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filename")
  path = os.path.join(settings.upload_dir, safe)
  if not os.path.isfile(path):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
  return FileResponse(path)


@router.post("/avatar", response_model=UserOut)
async def upload_avatar(
  file: UploadFile = File(...),
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> UserOut:
  ext = _AVATAR_TYPES.get((file.content_type or "").lower())
  if not ext:
    raise ValidationError("Unsupported file type")
  data = await file.read()
  if not data or len(data) > settings.max_avatar_bytes:
    raise ValidationError(f"Avatar must be 1B..{settings.max_avatar_bytes // (1024 * 1024)}MB")

  os.makedirs(settings.upload_dir, exist_ok=True)
  name = f"avatar_{user.id}_{uuid4().hex[:10]}{ext}"
  with open(os.path.join(settings.upload_dir, name), "wb") as f:
    f.write(data)

  user.avatar_url = f"/auth/avatar/{name}"
  await commit_or_rollback(db, action="update avatar")
  return _user_out(user)
