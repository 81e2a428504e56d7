#!/usr/bin/env python3
"""Verify (and optionally repair) list/card ordering on every board.

Exit code is 1 when violations remain after the run.
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from taskboard.config import get_settings
from taskboard.db import Database
from taskboard.main import configure_logging
from taskboard.ordering.repair import boards_to_check, repair_board, verify_board


async def run(board_id: str | None, repair: bool) -> int:
  settings = get_settings()
  configure_logging(settings.log_level)
  handle = Database.from_settings(settings)
  remaining = 0
  try:
    async with handle.session() as db:
      boards = await boards_to_check(db, board_id)
      for board in boards:
        problems = await verify_board(db, board)
        if problems and repair:
          changed = await repair_board(db, board)
          print(f"board {board.id}: repaired ({changed} row(s) rewritten)")
          problems = await verify_board(db, board)
        for p in problems:
          print(p)
        remaining += len(problems)
      print(f"checked {len(boards)} board(s), {remaining} violation(s)")
  finally:
    await handle.dispose()
  return 1 if remaining else 0


def main() -> None:
  ap = argparse.ArgumentParser(description=__doc__)
  ap.add_argument("--board-id", default=None, help="only check this board")
  ap.add_argument("--repair", action="store_true", help="rewrite a consistent dense order where violations are found")
  args = ap.parse_args()
  sys.exit(asyncio.run(run(args.board_id, args.repair)))


if __name__ == "__main__":
  main()
