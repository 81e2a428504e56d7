from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.models import BoardList, Card
from taskboard.ordering.sequencer import changed_positions
from taskboard.ownership import EntityKind, Owned


@dataclass(frozen=True)
class ChildKind:
  """How one kind of ordered child hangs off its parent."""

  name: EntityKind
  label: str
  model: type
  parent_kind: EntityKind
  parent_fk: str
  order_attr: str
  # API field name -> model attribute; anything else is ignored on update.
  updatable: dict[str, str]
  title_max: int

  def parent_of(self, owned: Owned):
    return owned.board if self.parent_kind == "board" else owned.list

  def child_of(self, owned: Owned):
    return owned.list if self.name == "list" else owned.card


LISTS = ChildKind(
  name="list",
  label="List",
  model=BoardList,
  parent_kind="board",
  parent_fk="board_id",
  order_attr="list_ids",
  updatable={"title": "title", "position": "position"},
  title_max=100,
)

CARDS = ChildKind(
  name="card",
  label="Card",
  model=Card,
  parent_kind="list",
  parent_fk="list_id",
  order_attr="card_ids",
  updatable={
    "title": "title",
    "description": "description",
    "position": "position",
    "labels": "labels",
    "dueDate": "due_date",
  },
  title_max=200,
)


async def fetch_children(db: AsyncSession, kind: ChildKind, parent_id: str) -> list:
  model = kind.model
  res = await db.execute(
    select(model)
    .where(getattr(model, kind.parent_fk) == parent_id)
    .order_by(model.position.asc(), model.created_at.asc(), model.id.asc())
    .execution_options(populate_existing=True)
  )
  return list(res.scalars().all())


def apply_order(kind: ChildKind, parent, children: Sequence, order: Sequence[str]) -> list[tuple[str, int]]:
  """Stage ``order`` on the parent's ordering array and the children's
  positions. Returns the (id, position) pairs that changed. Nothing is
  flushed; the caller commits.

  Any change bumps the parent's version, so every structural write also
  writes the parent row.
  """
  by_id = {c.id: c for c in children}
  batch = changed_positions(order, {c.id: c.position for c in children})
  for child_id, pos in batch:
    by_id[child_id].position = pos
  new_order = list(order)
  array_changed = list(getattr(parent, kind.order_attr) or []) != new_order
  if array_changed:
    setattr(parent, kind.order_attr, new_order)
  if array_changed or batch:
    # Version-checked UPDATE: a writer holding a stale read fails at commit.
    parent.version = (parent.version or 0) + 1
  return batch


async def lock_parents(db: AsyncSession, parents: Sequence) -> None:
  """Row-lock the given parents (in id order) and reload them.

  Called before siblings are read. Where the backend supports ``FOR UPDATE``
  concurrent mutations of one parent queue up here; elsewhere the version
  check on the parent row rejects the later writer at commit.
  """
  if not parents:
    return
  model = type(parents[0])
  ids = sorted({p.id for p in parents})
  await db.execute(
    select(model)
    .where(model.id.in_(ids))
    .order_by(model.id)
    .with_for_update()
    .execution_options(populate_existing=True)
  )
