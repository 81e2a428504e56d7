from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children import service
from taskboard.children.kinds import LISTS
from taskboard.deps import get_current_user, get_db
from taskboard.models import BoardList, User
from taskboard.ordering.reorder import Reordered, reorder_children
from taskboard.schemas import ListCreateIn, ListOut, ListUpdateIn, ReorderIn, ReorderOut, fields_of

router = APIRouter(tags=["lists"])


def list_out(l: BoardList) -> ListOut:
  return ListOut(
    id=l.id,
    boardId=l.board_id,
    title=l.title,
    position=l.position,
    cardIds=list(l.card_ids or []),
    version=l.version,
    createdAt=l.created_at,
    updatedAt=l.updated_at,
  )


def reorder_out(done: Reordered) -> ReorderOut:
  return ReorderOut(
    parentId=done.parent_id,
    orderedIds=[i for i, _ in done.positions],
    positions=[p for _, p in done.positions],
    version=done.version,
  )


@router.get("/boards/{board_id}/lists", response_model=list[ListOut])
async def list_lists(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[ListOut]:
  return [list_out(l) for l in await service.list_children(db, LISTS, board_id, user.id)]


@router.post("/boards/{board_id}/lists", response_model=ListOut, status_code=status.HTTP_201_CREATED)
async def create_list(
  board_id: str,
  payload: ListCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ListOut:
  return list_out(await service.create_child(db, LISTS, board_id, fields_of(payload), user.id))


@router.post("/boards/{board_id}/lists/reorder", response_model=ReorderOut)
async def reorder_lists(
  board_id: str,
  payload: ReorderIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ReorderOut:
  done = await reorder_children(db, LISTS, board_id, payload.orderedIds, user.id, expected_version=payload.expectedVersion)
  return reorder_out(done)


@router.patch("/lists/{list_id}", response_model=ListOut)
async def update_list(
  list_id: str,
  payload: ListUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ListOut:
  return list_out(await service.update_child(db, LISTS, list_id, fields_of(payload), user.id))


@router.delete("/lists/{list_id}")
async def delete_list(list_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  await service.delete_child(db, LISTS, list_id, user.id)
  return {"ok": True}
