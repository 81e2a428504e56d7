from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_COOKIE_NAME = "tb_session"
PASSWORD_MIN_LENGTH = 6

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


def hash_password(password: str, *, rounds: int | None = None) -> str:
  if rounds:
    return pwd_context.using(bcrypt__rounds=rounds).hash(password)
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
  return pwd_context.verify(password, password_hash)


def normalize_email(email: str | None) -> str:
  return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
  return bool(_EMAIL_RE.fullmatch(email))


def new_session_expires_at(ttl_days: int) -> datetime:
  return datetime.now(timezone.utc) + timedelta(days=ttl_days)
