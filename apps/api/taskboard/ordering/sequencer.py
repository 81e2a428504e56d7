"""Dense zero-based positions for sibling entities.

Everything here is pure: callers fetch siblings, ask for an assignment and
write the result inside their own transaction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


def assign_position(existing_siblings: Sequence[object], requested_position: int | None = None) -> int:
  """Position for a new sibling.

  Appends when nothing is requested. A requested position is clamped into
  ``0..len(existing_siblings)``; existing siblings are never shifted here, so a
  caller that honours an explicit position must follow up with
  ``insert_at`` + ``recompute_positions``.
  """
  count = len(existing_siblings)
  if requested_position is None:
    return count
  return max(0, min(int(requested_position), count))


def recompute_positions(siblings_in_order: Sequence[str]) -> list[tuple[str, int]]:
  return [(sibling_id, idx) for idx, sibling_id in enumerate(siblings_in_order)]


def changed_positions(siblings_in_order: Sequence[str], current: Mapping[str, int]) -> list[tuple[str, int]]:
  """Subset of the recompute batch that differs from ``current``."""
  return [(sid, pos) for sid, pos in recompute_positions(siblings_in_order) if current.get(sid) != pos]


def insert_at(order: Sequence[str], child_id: str, index: int) -> list[str]:
  out = [x for x in order if x != child_id]
  idx = max(0, min(int(index), len(out)))
  out.insert(idx, child_id)
  return out


def move_within(order: Sequence[str], child_id: str, index: int) -> list[str]:
  if child_id not in order:
    raise ValueError(f"{child_id} is not a member of this order")
  return insert_at(order, child_id, index)


def is_dense(positions: Sequence[int]) -> bool:
  return sorted(positions) == list(range(len(positions)))
