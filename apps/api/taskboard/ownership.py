from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.errors import Forbidden, NotFound, ValidationError
from taskboard.models import Board, BoardList, Card, Comment

EntityKind = Literal["board", "list", "card", "comment"]

_LABELS = {"board": "Board", "list": "List", "card": "Card", "comment": "Comment"}


@dataclass
class Owned:
  """The resolved ownership chain, leaf to root. Links above the leaf are
  always populated; links below it are ``None``."""

  board: Board
  list: BoardList | None = None
  card: Card | None = None
  comment: Comment | None = None


def ensure_id(value: str, kind: EntityKind) -> str:
  try:
    uuid.UUID(str(value))
  except ValueError:
    raise ValidationError(f"Invalid {kind} id") from None
  return str(value)


async def _get(db: AsyncSession, model, entity_id: str, kind: EntityKind):
  res = await db.execute(select(model).where(model.id == entity_id))
  obj = res.scalar_one_or_none()
  if obj is None:
    raise NotFound(f"{_LABELS[kind]} not found")
  return obj


async def resolve_ownership(db: AsyncSession, kind: EntityKind, entity_id: str, principal_id: str) -> Owned:
  """Walk comment -> card -> list -> board and check the board's owner.

  Raises ``NotFound`` when a link is missing and ``Forbidden`` when the chain
  resolves to somebody else. Reads only.
  """
  entity_id = ensure_id(entity_id, kind)
  comment = card = lst = None

  if kind == "comment":
    comment = await _get(db, Comment, entity_id, "comment")
    kind, entity_id = "card", comment.card_id
  if kind == "card":
    card = await _get(db, Card, entity_id, "card")
    kind, entity_id = "list", card.list_id
  if kind == "list":
    lst = await _get(db, BoardList, entity_id, "list")
    kind, entity_id = "board", lst.board_id
  if kind != "board":
    raise ValueError(f"Unknown entity kind: {kind}")

  board = await _get(db, Board, entity_id, "board")
  if board.owner_id != principal_id:
    raise Forbidden("You do not own this board")
  return Owned(board=board, list=lst, card=card, comment=comment)
