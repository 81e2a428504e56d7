from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.children import service
from taskboard.children.kinds import CARDS
from taskboard.deps import get_current_user, get_db
from taskboard.models import Card, Comment, User
from taskboard.ordering.reorder import reorder_children
from taskboard.routers.lists import reorder_out
from taskboard.schemas import (
  CardCreateIn,
  CardMoveIn,
  CardOut,
  CardUpdateIn,
  CommentCreateIn,
  CommentOut,
  MyCardOut,
  ReorderIn,
  ReorderOut,
  fields_of,
)

router = APIRouter(tags=["cards"])


def comment_out(c: Comment, author_name: str) -> CommentOut:
  return CommentOut(
    id=c.id, cardId=c.card_id, authorId=c.author_id, authorName=author_name, text=c.text, createdAt=c.created_at
  )


def _card_fields(c: Card, comments: list[tuple[Comment, str]]) -> dict:
  return dict(
    id=c.id,
    listId=c.list_id,
    title=c.title,
    description=c.description or "",
    position=c.position,
    labels=list(c.labels or []),
    dueDate=c.due_date,
    comments=[comment_out(x, name) for x, name in comments],
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


async def _card_out(db: AsyncSession, c: Card) -> CardOut:
  comments = await service.comments_for_cards(db, [c.id])
  return CardOut(**_card_fields(c, comments[c.id]))


@router.get("/cards/mine", response_model=list[MyCardOut])
async def my_cards(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[MyCardOut]:
  rows = await service.cards_for_owner(db, user.id)
  comments = await service.comments_for_cards(db, [c.id for c, _, _ in rows])
  return [
    MyCardOut(**_card_fields(c, comments[c.id]), listTitle=l.title, boardId=b.id, boardTitle=b.title)
    for c, l, b in rows
  ]


@router.get("/lists/{list_id}/cards", response_model=list[CardOut])
async def list_cards(list_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[CardOut]:
  cards = await service.list_children(db, CARDS, list_id, user.id)
  comments = await service.comments_for_cards(db, [c.id for c in cards])
  return [CardOut(**_card_fields(c, comments[c.id])) for c in cards]


@router.post("/lists/{list_id}/cards", response_model=CardOut, status_code=status.HTTP_201_CREATED)
async def create_card(
  list_id: str,
  payload: CardCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  c = await service.create_child(db, CARDS, list_id, fields_of(payload), user.id)
  return CardOut(**_card_fields(c, []))


@router.post("/lists/{list_id}/cards/reorder", response_model=ReorderOut)
async def reorder_cards(
  list_id: str,
  payload: ReorderIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ReorderOut:
  done = await reorder_children(db, CARDS, list_id, payload.orderedIds, user.id, expected_version=payload.expectedVersion)
  return reorder_out(done)


@router.get("/cards/{card_id}", response_model=CardOut)
async def get_card(card_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> CardOut:
  return await _card_out(db, await service.get_child(db, CARDS, card_id, user.id))


@router.patch("/cards/{card_id}", response_model=CardOut)
async def update_card(
  card_id: str,
  payload: CardUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  return await _card_out(db, await service.update_child(db, CARDS, card_id, fields_of(payload), user.id))


@router.delete("/cards/{card_id}")
async def delete_card(card_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  await service.delete_child(db, CARDS, card_id, user.id)
  return {"ok": True}


@router.post("/cards/{card_id}/move", response_model=CardOut)
async def move_card(
  card_id: str,
  payload: CardMoveIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  return await _card_out(db, await service.move_card(db, card_id, payload.listId, payload.toIndex, user.id))


@router.post("/cards/{card_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
  card_id: str,
  payload: CommentCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CommentOut:
  return comment_out(await service.add_comment(db, card_id, payload.text, user.id), user.name)


@router.delete("/cards/{card_id}/comments/{comment_id}")
async def delete_comment(
  card_id: str,
  comment_id: str,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> dict:
  await service.delete_comment(db, card_id, comment_id, user.id)
  return {"ok": True}
