"""Checks and rebuilds the ordering invariants of one parent.

Writes that touch a parent's ordering array and its children's positions can
land child-first / parent-second; ``repair_parent`` brings such a parent back
to a consistent dense order and is safe to run repeatedly.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children.kinds import CARDS, LISTS, ChildKind, apply_order, fetch_children, lock_parents
from taskboard.db import commit_or_rollback
from taskboard.models import Board
from taskboard.ordering.sequencer import is_dense

logger = logging.getLogger(__name__)


async def verify_parent(db: AsyncSession, kind: ChildKind, parent) -> list[str]:
  problems: list[str] = []
  children = await fetch_children(db, kind, parent.id)
  child_ids = [c.id for c in children]
  array = list(getattr(parent, kind.order_attr) or [])

  dangling = [x for x in array if x not in set(child_ids)]
  orphans = [x for x in child_ids if x not in set(array)]
  if dangling:
    problems.append(f"{kind.parent_kind} {parent.id}: {len(dangling)} dangling {kind.name} id(s) in {kind.order_attr}")
  if orphans:
    problems.append(f"{kind.parent_kind} {parent.id}: {len(orphans)} {kind.name}(s) missing from {kind.order_attr}")
  if len(array) != len(set(array)):
    problems.append(f"{kind.parent_kind} {parent.id}: duplicate ids in {kind.order_attr}")
  if not is_dense([c.position for c in children]):
    problems.append(f"{kind.parent_kind} {parent.id}: {kind.name} positions are not 0..{len(children) - 1}")
  elif not dangling and not orphans and array != child_ids:
    problems.append(f"{kind.parent_kind} {parent.id}: {kind.order_attr} disagrees with position order")
  return problems


async def repair_parent(db: AsyncSession, kind: ChildKind, parent) -> int:
  """Rewrite a consistent order; returns how many rows it had to touch.

  Children keep their relative order by (position, place in the ordering
  array, creation time). Dangling array ids are dropped and orphans end up
  wherever their position puts them. Does not commit.
  """
  children = await fetch_children(db, kind, parent.id)
  array = list(getattr(parent, kind.order_attr) or [])
  rank = {cid: idx for idx, cid in enumerate(dict.fromkeys(array))}
  children.sort(key=lambda c: (c.position, rank.get(c.id, len(rank)), c.created_at, c.id))
  batch = apply_order(kind, parent, children, [c.id for c in children])
  return len(batch) + (0 if array == list(getattr(parent, kind.order_attr)) else 1)


async def verify_board(db: AsyncSession, board: Board) -> list[str]:
  problems = await verify_parent(db, LISTS, board)
  for lst in await fetch_children(db, LISTS, board.id):
    problems.extend(await verify_parent(db, CARDS, lst))
  return problems


async def repair_board(db: AsyncSession, board: Board) -> int:
  await lock_parents(db, [board])
  # Fetched before anything is staged; a later fetch would reload positions.
  lists = await fetch_children(db, LISTS, board.id)
  changed = await repair_parent(db, LISTS, board)
  for lst in lists:
    changed += await repair_parent(db, CARDS, lst)
  await commit_or_rollback(db, action=f"repair board {board.id}")
  if changed:
    logger.info("repaired board %s: %d row(s) rewritten", board.id, changed)
  return changed


async def boards_to_check(db: AsyncSession, board_id: str | None = None) -> list[Board]:
  q = select(Board).order_by(Board.created_at.asc())
  if board_id:
    q = q.where(Board.id == board_id)
  res = await db.execute(q)
  return list(res.scalars().all())

