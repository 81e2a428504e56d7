from __future__ import annotations

import asyncio
import logging
import os
import secrets

from sqlalchemy import select

from taskboard.boards.service import create_board
from taskboard.children.kinds import CARDS, LISTS
from taskboard.children.service import add_comment, create_child
from taskboard.config import get_settings
from taskboard.db import Database
from taskboard.main import configure_logging
from taskboard.models import Board, User
from taskboard.security import hash_password

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@taskboard.local"
DEMO_BOARD_TITLE = "Taskboard Demo"


def _bootstrap_password(env_key: str) -> tuple[str, bool]:
  configured = (os.getenv(env_key) or "").strip()
  if configured:
    return configured, False
  return secrets.token_urlsafe(14), True


async def seed(db_handle: Database) -> None:
  async with db_handle.session() as db:
    res = await db.execute(select(User).where(User.email == DEMO_EMAIL))
    user = res.scalar_one_or_none()
    if not user:
      password, generated = _bootstrap_password("SEED_DEMO_PASSWORD")
      user = User(email=DEMO_EMAIL, name="Demo", password_hash=hash_password(password))
      db.add(user)
      await db.commit()
      print(f"Taskboard seed user created: {DEMO_EMAIL}={password} (generated={str(generated).lower()})")

    # Idempotent by title+owner.
    bres = await db.execute(select(Board.id).where(Board.title == DEMO_BOARD_TITLE, Board.owner_id == user.id))
    if bres.scalar_one_or_none():
      logger.info("demo board already present")
      return

    board = await create_board(db, user.id, {"title": DEMO_BOARD_TITLE, "description": "Drag things around."})
    samples = {
      "To Do": [("Welcome to Taskboard", ["welcome"]), ("Try reordering cards", ["demo"])],
      "Doing": [("Move a card to another list", ["demo"])],
      "Done": [("Create a board", [])],
    }
    for list_title, cards in samples.items():
      lst = await create_child(db, LISTS, board.id, {"title": list_title}, user.id)
      for title, labels in cards:
        card = await create_child(db, CARDS, lst.id, {"title": title, "labels": labels}, user.id)
        if title == "Welcome to Taskboard":
          await add_comment(db, card.id, "Lists and cards keep their order across reloads.", user.id)
    logger.info("seeded demo board %s", board.id)


async def _main() -> None:
  settings = get_settings()
  configure_logging(settings.log_level)
  db_handle = Database.from_settings(settings)
  try:
    if settings.auto_create_schema:
      await db_handle.create_all()
    await seed(db_handle)
  finally:
    await db_handle.dispose()


def main() -> None:
  asyncio.run(_main())


if __name__ == "__main__":
  main()
