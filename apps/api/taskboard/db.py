from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm.exc import StaleDataError

from taskboard.config import Settings
from taskboard.errors import Conflict, Internal
from taskboard.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
  cur = dbapi_connection.cursor()
  cur.execute("PRAGMA foreign_keys=ON")
  cur.close()


class Database:
  """Owns the engine and session factory for one application instance.

  Built by ``create_app`` and hung off ``app.state``; request handlers get
  sessions through ``taskboard.deps.get_db``.
  """

  def __init__(self, url: str, *, echo: bool = False) -> None:
    self.engine: AsyncEngine = create_async_engine(url, echo=echo, future=True)
    if url.startswith("sqlite"):
      event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)

  @classmethod
  def from_settings(cls, settings: Settings) -> Database:
    return cls(settings.database_url, echo=settings.database_echo)

  @asynccontextmanager
  async def session(self) -> AsyncIterator[AsyncSession]:
    async with self.sessionmaker() as s:
      try:
        yield s
      except Exception:
        await s.rollback()
        raise

  async def create_all(self) -> None:
    async with self.engine.begin() as conn:
      await conn.run_sync(Base.metadata.create_all)

  async def dispose(self) -> None:
    await self.engine.dispose()


async def commit_or_rollback(db: AsyncSession, *, action: str) -> None:
  """Commit the session's transaction as one unit.

  On any storage failure the whole transaction is rolled back and the caller
  gets ``Internal``; nothing staged in the session survives. A version-checked
  parent row that changed underneath us is rolled back the same way but
  reported as ``Conflict``.
  """
  try:
    await db.commit()
  except StaleDataError as exc:
    await db.rollback()
    logger.info("%s lost a concurrent update; transaction rolled back", action)
    raise Conflict(f"{action} conflicted with a concurrent change; retry") from exc
  except SQLAlchemyError as exc:
    await db.rollback()
    logger.exception("%s failed; transaction rolled back", action)
    raise Internal(f"{action} failed") from exc
