from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class _In(BaseModel):
  # Unknown fields are dropped rather than rejected.
  model_config = ConfigDict(extra="ignore")


class RegisterIn(_In):
  name: str
  email: str
  password: str


class LoginIn(_In):
  email: str
  password: str


class PasswordChangeIn(_In):
  currentPassword: str
  newPassword: str


class UserOut(BaseModel):
  id: str
  name: str
  email: str
  avatarUrl: str
  createdAt: datetime


class AuthOut(BaseModel):
  token: str
  user: UserOut


class BoardCreateIn(_In):
  title: str | None = None
  description: str | None = None
  backgroundColor: str | None = None


class BoardUpdateIn(BoardCreateIn):
  pass


class BoardOut(BaseModel):
  id: str
  title: str
  description: str
  backgroundColor: str
  ownerId: str
  listIds: list[str]
  version: int
  createdAt: datetime
  updatedAt: datetime


class ListCreateIn(_In):
  title: str | None = None
  position: int | None = None


class ListUpdateIn(ListCreateIn):
  pass


class ListOut(BaseModel):
  id: str
  boardId: str
  title: str
  position: int
  cardIds: list[str]
  version: int
  createdAt: datetime
  updatedAt: datetime


class CommentCreateIn(_In):
  text: str | None = None


class CommentOut(BaseModel):
  id: str
  cardId: str
  authorId: str
  authorName: str
  text: str
  createdAt: datetime


class CardCreateIn(_In):
  title: str | None = None
  description: str | None = None
  position: int | None = None
  labels: list[str] | None = None
  dueDate: str | None = None


class CardUpdateIn(CardCreateIn):
  pass


class CardOut(BaseModel):
  id: str
  listId: str
  title: str
  description: str
  position: int
  labels: list[str]
  dueDate: datetime | None
  comments: list[CommentOut] = []
  createdAt: datetime
  updatedAt: datetime


class MyCardOut(CardOut):
  listTitle: str
  boardId: str
  boardTitle: str


class CardMoveIn(_In):
  listId: str
  toIndex: int | None = None


class ReorderIn(_In):
  orderedIds: list[str]
  expectedVersion: int | None = None


class ReorderOut(BaseModel):
  parentId: str
  orderedIds: list[str]
  positions: list[int]
  version: int


def fields_of(payload: BaseModel) -> dict[str, Any]:
  """Only the fields the client actually sent."""
  return payload.model_dump(exclude_unset=True)
