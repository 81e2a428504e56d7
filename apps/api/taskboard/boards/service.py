from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children.kinds import lock_parents
from taskboard.db import commit_or_rollback
from taskboard.errors import NoFieldsToUpdate, ValidationError
from taskboard.models import Board, BoardList, Card, Comment, new_id
from taskboard.ownership import resolve_ownership

logger = logging.getLogger(__name__)

TITLE_MAX = 100
DESCRIPTION_MAX = 500
DEFAULT_BACKGROUND = "#0079bf"

_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

_UPDATABLE = {"title": "title", "description": "description", "backgroundColor": "background_color"}


def _clean(fields: dict[str, Any]) -> dict[str, Any]:
  out: dict[str, Any] = {}
  if "title" in fields:
    title = fields["title"].strip() if isinstance(fields["title"], str) else ""
    if not title:
      raise ValidationError("Board title is required")
    if len(title) > TITLE_MAX:
      raise ValidationError(f"Title cannot be more than {TITLE_MAX} characters")
    out["title"] = title
  if "description" in fields:
    desc = fields["description"]
    if desc is not None and not isinstance(desc, str):
      raise ValidationError("description must be a string")
    desc = (desc or "").strip()
    if len(desc) > DESCRIPTION_MAX:
      raise ValidationError(f"Description cannot exceed {DESCRIPTION_MAX} characters")
    out["description"] = desc
  if "backgroundColor" in fields:
    color = fields["backgroundColor"] or DEFAULT_BACKGROUND
    if not isinstance(color, str) or not _COLOR_RE.fullmatch(color.strip()):
      raise ValidationError("backgroundColor must be a hex colour like #0079bf")
    out["background_color"] = color.strip()
  return out


async def create_board(db: AsyncSession, owner_id: str, fields: dict[str, Any]) -> Board:
  if "title" not in fields:
    raise ValidationError("Board title is required")
  values = _clean(fields)
  b = Board(id=new_id(), owner_id=owner_id, list_ids=[], **values)
  db.add(b)
  await commit_or_rollback(db, action="create board")
  return b


async def list_boards(db: AsyncSession, owner_id: str) -> list[Board]:
  res = await db.execute(select(Board).where(Board.owner_id == owner_id).order_by(Board.updated_at.desc()))
  return list(res.scalars().all())


async def get_board(db: AsyncSession, board_id: str, principal_id: str) -> Board:
  owned = await resolve_ownership(db, "board", board_id, principal_id)
  return owned.board


async def update_board(db: AsyncSession, board_id: str, fields: dict[str, Any], principal_id: str) -> Board:
  owned = await resolve_ownership(db, "board", board_id, principal_id)
  allowed = {k: v for k, v in fields.items() if k in _UPDATABLE}
  if not allowed:
    raise NoFieldsToUpdate()
  for attr, val in _clean(allowed).items():
    setattr(owned.board, attr, val)
  await commit_or_rollback(db, action="update board")
  return owned.board


async def delete_board(db: AsyncSession, board_id: str, principal_id: str) -> None:
  """Delete a board together with its lists, cards and comments."""
  owned = await resolve_ownership(db, "board", board_id, principal_id)
  board_id = owned.board.id
  await lock_parents(db, [owned.board])
  list_ids = select(BoardList.id).where(BoardList.board_id == board_id)
  card_ids = select(Card.id).where(Card.list_id.in_(list_ids))
  await db.execute(delete(Comment).where(Comment.card_id.in_(card_ids)))
  await db.execute(delete(Card).where(Card.list_id.in_(list_ids)))
  await db.execute(delete(BoardList).where(BoardList.board_id == board_id))
  await db.execute(delete(Board).where(Board.id == board_id))
  await commit_or_rollback(db, action="delete board")
  logger.info("deleted board %s with all lists and cards", board_id)
