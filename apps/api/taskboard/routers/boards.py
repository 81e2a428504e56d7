from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.boards import service
from taskboard.deps import get_current_user, get_db
from taskboard.models import Board, User
from taskboard.schemas import BoardCreateIn, BoardOut, BoardUpdateIn, fields_of

router = APIRouter(prefix="/boards", tags=["boards"])


def board_out(b: Board) -> BoardOut:
  return BoardOut(
    id=b.id,
    title=b.title,
    description=b.description or "",
    backgroundColor=b.background_color,
    ownerId=b.owner_id,
    listIds=list(b.list_ids or []),
    version=b.version,
    createdAt=b.created_at,
    updatedAt=b.updated_at,
  )


@router.get("", response_model=list[BoardOut])
async def list_boards(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[BoardOut]:
  return [board_out(b) for b in await service.list_boards(db, user.id)]


@router.post("", response_model=BoardOut, status_code=status.HTTP_201_CREATED)
async def create_board(payload: BoardCreateIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BoardOut:
  return board_out(await service.create_board(db, user.id, fields_of(payload)))


@router.get("/{board_id}", response_model=BoardOut)
async def get_board(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BoardOut:
  return board_out(await service.get_board(db, board_id, user.id))


@router.patch("/{board_id}", response_model=BoardOut)
async def update_board(
  board_id: str,
  payload: BoardUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> BoardOut:
  return board_out(await service.update_board(db, board_id, fields_of(payload), user.id))


@router.delete("/{board_id}")
async def delete_board(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  await service.delete_board(db, board_id, user.id)
  return {"ok": True}
