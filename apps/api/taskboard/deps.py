from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone

from fastapi import Cookie, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import Settings
from taskboard.models import Session as DbSession, User
from taskboard.rate_limit import RateLimiter
from taskboard.security import SESSION_COOKIE_NAME


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
  async with request.app.state.db.session() as session:
    yield session


def get_settings(request: Request) -> Settings:
  return request.app.state.settings


def get_limiter(request: Request) -> RateLimiter:
  return request.app.state.limiter


def session_token(request: Request, cookie_value: str | None) -> str | None:
  if cookie_value:
    return cookie_value
  auth = request.headers.get("authorization")
  if auth and auth.lower().startswith("bearer "):
    return auth.split(" ", 1)[1].strip() or None
  return None


async def get_current_user(
  request: Request,
  db: AsyncSession = Depends(get_db),
  session_id: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> User:
  token = session_token(request, session_id)
  if not token:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

  res = await db.execute(select(DbSession).where(DbSession.id == token))
  s = res.scalar_one_or_none()
  if not s:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
  if s.expires_at < datetime.now(timezone.utc):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")

  ures = await db.execute(select(User).where(User.id == s.user_id))
  u = ures.scalar_one_or_none()
  if not u:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
  return u


def client_ip(request: Request) -> str:
  return request.client.host if request.client else "unknown"
