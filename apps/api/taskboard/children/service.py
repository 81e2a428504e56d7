from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children.kinds import CARDS, LISTS, ChildKind, apply_order, fetch_children, lock_parents
from taskboard.db import commit_or_rollback
from taskboard.errors import NoFieldsToUpdate, NotFound, ValidationError
from taskboard.models import Board, BoardList, Card, Comment, User, new_id
from taskboard.ordering.sequencer import assign_position, insert_at, move_within
from taskboard.ownership import ensure_id, resolve_ownership

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DESCRIPTION_MAX = 2000
LABEL_MAX = 50


def parse_due_date(value: object) -> datetime | None:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    try:
      if _DATE_ONLY_RE.fullmatch(s):
        dt = datetime.fromisoformat(s)
      else:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
      raise ValidationError("Invalid dueDate (expected ISO 8601 date or datetime)") from None
  else:
    raise ValidationError("Invalid dueDate (expected ISO 8601 date or datetime)")
  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


def _clean_title(value: object, kind: ChildKind) -> str:
  title = value.strip() if isinstance(value, str) else ""
  if not title:
    raise ValidationError(f"{kind.label} title is required")
  if len(title) > kind.title_max:
    raise ValidationError(f"{kind.label} title cannot exceed {kind.title_max} characters")
  return title


def _clean_position(value: object) -> int:
  if isinstance(value, bool) or not isinstance(value, int) or value < 0:
    raise ValidationError("position must be a non-negative integer")
  return value


def _clean_labels(value: object) -> list[str]:
  if value is None:
    return []
  if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
    raise ValidationError("labels must be a list of strings")
  out: list[str] = []
  for raw in value:
    label = raw.strip()
    if not label or label in out:
      continue
    if len(label) > LABEL_MAX:
      raise ValidationError(f"labels cannot exceed {LABEL_MAX} characters")
    out.append(label)
  return out


def _clean_fields(kind: ChildKind, fields: dict[str, Any]) -> dict[str, Any]:
  """Validate allow-listed API fields; returns model attribute -> value."""
  out: dict[str, Any] = {}
  for field_name, attr in kind.updatable.items():
    if field_name not in fields:
      continue
    val = fields[field_name]
    if field_name == "title":
      out[attr] = _clean_title(val, kind)
    elif field_name == "position":
      out[attr] = _clean_position(val)
    elif field_name == "description":
      desc = (val or "").strip() if isinstance(val, str) or val is None else None
      if desc is None:
        raise ValidationError("description must be a string")
      if len(desc) > DESCRIPTION_MAX:
        raise ValidationError(f"description cannot exceed {DESCRIPTION_MAX} characters")
      out[attr] = desc
    elif field_name == "labels":
      out[attr] = _clean_labels(val)
    elif field_name == "dueDate":
      out[attr] = parse_due_date(val)
  return out


async def list_children(db: AsyncSession, kind: ChildKind, parent_id: str, principal_id: str) -> list:
  await resolve_ownership(db, kind.parent_kind, parent_id, principal_id)
  return await fetch_children(db, kind, parent_id)


async def get_child(db: AsyncSession, kind: ChildKind, child_id: str, principal_id: str):
  owned = await resolve_ownership(db, kind.name, child_id, principal_id)
  return kind.child_of(owned)


async def create_child(db: AsyncSession, kind: ChildKind, parent_id: str, fields: dict[str, Any], principal_id: str):
  """Create a list under a board or a card under a list.

  Appends by default. An explicit ``position`` inserts there and shifts the
  later siblings down by one, all in the same transaction, so positions stay
  dense after commit.
  """
  if not isinstance(fields.get("title"), str) or not fields["title"].strip():
    raise ValidationError(f"{kind.label} title is required")
  values = _clean_fields(kind, fields)
  owned = await resolve_ownership(db, kind.parent_kind, parent_id, principal_id)
  parent = kind.parent_of(owned)

  await lock_parents(db, [parent])
  siblings = await fetch_children(db, kind, parent.id)
  requested = values.pop("position", None)
  pos = assign_position(siblings, requested)
  child = kind.model(id=new_id(), position=pos, **{kind.parent_fk: parent.id}, **values)
  db.add(child)
  order = insert_at([s.id for s in siblings], child.id, pos)
  apply_order(kind, parent, [*siblings, child], order)

  await commit_or_rollback(db, action=f"create {kind.name}")
  logger.info("created %s %s in %s %s at position %d", kind.name, child.id, kind.parent_kind, parent.id, pos)
  return child


async def update_child(db: AsyncSession, kind: ChildKind, child_id: str, fields: dict[str, Any], principal_id: str):
  owned = await resolve_ownership(db, kind.name, child_id, principal_id)
  child = kind.child_of(owned)
  parent = kind.parent_of(owned)

  allowed = {k: v for k, v in fields.items() if k in kind.updatable}
  if not allowed:
    raise NoFieldsToUpdate()
  values = _clean_fields(kind, allowed)

  if "position" in values:
    await lock_parents(db, [parent])
    siblings = await fetch_children(db, kind, parent.id)
    order = move_within([s.id for s in siblings], child.id, values.pop("position"))
    apply_order(kind, parent, siblings, order)
  for attr, val in values.items():
    setattr(child, attr, val)

  await commit_or_rollback(db, action=f"update {kind.name}")
  return child


async def delete_child(db: AsyncSession, kind: ChildKind, child_id: str, principal_id: str) -> None:
  """Delete a list (with its cards and their comments) or a card (with its
  comments), then recompute the remaining siblings' positions. One
  transaction."""
  owned = await resolve_ownership(db, kind.name, child_id, principal_id)
  child = kind.child_of(owned)
  parent = kind.parent_of(owned)

  await lock_parents(db, [parent])
  remaining = [s for s in await fetch_children(db, kind, parent.id) if s.id != child.id]

  if kind is LISTS:
    card_ids = select(Card.id).where(Card.list_id == child.id)
    await db.execute(delete(Comment).where(Comment.card_id.in_(card_ids)))
    await db.execute(delete(Card).where(Card.list_id == child.id))
  else:
    await db.execute(delete(Comment).where(Comment.card_id == child.id))
  await db.execute(delete(kind.model).where(kind.model.id == child.id))

  batch = apply_order(kind, parent, remaining, [s.id for s in remaining])
  await commit_or_rollback(db, action=f"delete {kind.name}")
  logger.info("deleted %s %s; recomputed %d sibling positions", kind.name, child_id, len(batch))


async def move_card(db: AsyncSession, card_id: str, to_list_id: str, to_index: int | None, principal_id: str) -> Card:
  """Move a card to ``to_index`` in another list (or the same one).

  Both lists must belong to the principal. Source and destination positions
  and ordering arrays are rewritten in one transaction.
  """
  if to_index is not None:
    to_index = _clean_position(to_index)
  src = await resolve_ownership(db, "card", card_id, principal_id)
  dest = await resolve_ownership(db, "list", to_list_id, principal_id)
  card = src.card
  from_list = src.list
  to_list = dest.list
  await lock_parents(db, [from_list, to_list])

  if from_list.id == to_list.id:
    siblings = await fetch_children(db, CARDS, from_list.id)
    idx = len(siblings) - 1 if to_index is None else to_index
    apply_order(CARDS, from_list, siblings, move_within([s.id for s in siblings], card.id, idx))
  else:
    from_siblings = [s for s in await fetch_children(db, CARDS, from_list.id) if s.id != card.id]
    to_siblings = await fetch_children(db, CARDS, to_list.id)
    idx = assign_position(to_siblings, to_index)
    card.list_id = to_list.id
    apply_order(CARDS, from_list, from_siblings, [s.id for s in from_siblings])
    apply_order(CARDS, to_list, [*to_siblings, card], insert_at([s.id for s in to_siblings], card.id, idx))

  await commit_or_rollback(db, action="move card")
  logger.info("moved card %s from list %s to list %s", card.id, from_list.id, to_list.id)
  return card


async def comments_for_cards(db: AsyncSession, card_ids: list[str]) -> dict[str, list[tuple[Comment, str]]]:
  """Comments per card in creation order, each paired with its author's name."""
  out: dict[str, list[tuple[Comment, str]]] = {cid: [] for cid in card_ids}
  if not card_ids:
    return out
  res = await db.execute(
    select(Comment, User.name)
    .join(User, User.id == Comment.author_id)
    .where(Comment.card_id.in_(card_ids))
    .order_by(Comment.created_at.asc(), Comment.id.asc())
  )
  for c, author_name in res.all():
    out[c.card_id].append((c, author_name))
  return out


async def add_comment(db: AsyncSession, card_id: str, text: object, principal_id: str) -> Comment:
  owned = await resolve_ownership(db, "card", card_id, principal_id)
  body = text.strip() if isinstance(text, str) else ""
  if not body:
    raise ValidationError("Comment text required")
  c = Comment(id=new_id(), card_id=owned.card.id, author_id=principal_id, text=body)
  db.add(c)
  await commit_or_rollback(db, action="add comment")
  return c


async def delete_comment(db: AsyncSession, card_id: str, comment_id: str, principal_id: str) -> None:
  owned = await resolve_ownership(db, "card", card_id, principal_id)
  comment_id = ensure_id(comment_id, "comment")
  res = await db.execute(select(Comment.id).where(Comment.id == comment_id, Comment.card_id == owned.card.id))
  if res.scalar_one_or_none() is None:
    raise NotFound("Comment not found")
  await db.execute(delete(Comment).where(Comment.id == comment_id))
  await commit_or_rollback(db, action="delete comment")


async def cards_for_owner(db: AsyncSession, principal_id: str) -> list[tuple[Card, BoardList, Board]]:
  """Every card on the principal's boards, soonest due first (undated last),
  then newest first."""
  res = await db.execute(
    select(Card, BoardList, Board)
    .join(BoardList, BoardList.id == Card.list_id)
    .join(Board, Board.id == BoardList.board_id)
    .where(Board.owner_id == principal_id)
    .order_by(Card.due_date.is_(None).asc(), Card.due_date.asc(), Card.created_at.desc())
  )
  return [(card, lst, board) for card, lst, board in res.all()]
