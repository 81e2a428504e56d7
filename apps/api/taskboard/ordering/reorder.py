from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children.kinds import ChildKind, apply_order, fetch_children, lock_parents
from taskboard.db import commit_or_rollback
from taskboard.errors import Conflict, InvalidMembership
from taskboard.ordering.sequencer import recompute_positions
from taskboard.ownership import resolve_ownership

logger = logging.getLogger(__name__)


@dataclass
class Reordered:
  parent_id: str
  positions: list[tuple[str, int]]
  version: int


async def reorder_children(
  db: AsyncSession,
  kind: ChildKind,
  parent_id: str,
  ordered_ids: Sequence[str],
  principal_id: str,
  *,
  expected_version: int | None = None,
) -> Reordered:
  """Replace the whole sibling order of a board's lists or a list's cards.

  ``ordered_ids`` must name every current child exactly once. Positions become
  the index in ``ordered_ids``; positions, the parent's ordering array and
  its version are committed together or not at all. When
  ``expected_version`` is given and the parent has moved on, the reorder is
  rejected with ``Conflict``. Without it, reorders that run one after the
  other are last-writer-wins; two that read the same siblings concurrently
  cannot both commit (see ``apply_order``).
  """
  owned = await resolve_ownership(db, kind.parent_kind, parent_id, principal_id)
  parent = kind.parent_of(owned)
  await lock_parents(db, [parent])

  proposed = [str(x) for x in ordered_ids]
  if len(set(proposed)) != len(proposed):
    raise InvalidMembership(f"Proposed order repeats a {kind.name} id")

  children = await fetch_children(db, kind, parent.id)
  current = {c.id for c in children}
  missing = current - set(proposed)
  unknown = set(proposed) - current
  if missing or unknown:
    raise InvalidMembership(
      f"Proposed order must list every {kind.name} of this {kind.parent_kind} exactly once "
      f"({len(missing)} missing, {len(unknown)} unknown)"
    )

  if expected_version is not None and expected_version != parent.version:
    raise Conflict(f"{kind.parent_kind.capitalize()} order changed since version {expected_version}")

  assignment = recompute_positions(proposed)
  batch = apply_order(kind, parent, children, proposed)
  await commit_or_rollback(db, action=f"reorder {kind.name}s")
  logger.info("reordered %d %ss in %s %s (%d moved)", len(proposed), kind.name, kind.parent_kind, parent.id, len(batch))
  return Reordered(parent_id=parent.id, positions=assignment, version=parent.version)
