from __future__ import annotations

import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from taskboard.config import Settings
from taskboard.main import create_app

PASSWORD = "secret123"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
  return Settings(
    database_url=f"sqlite+aiosqlite:///{tmp_path / 'taskboard_test.db'}",
    bcrypt_rounds=4,
    upload_dir=str(tmp_path / "uploads"),
    _env_file=None,
  )


@pytest.fixture
async def app(settings: Settings):
  application = create_app(settings)
  await application.state.db.create_all()
  yield application
  await application.state.db.dispose()


@pytest.fixture
async def client(app) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


@pytest.fixture
async def other_client(app) -> AsyncClient:
  """A second, independent cookie jar against the same app."""
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


async def register(client: AsyncClient, email: str, name: str = "Tester", password: str = PASSWORD) -> dict:
  res = await client.post("/auth/register", json={"name": name, "email": email, "password": password})
  assert res.status_code == 201, res.text
  cookie = res.headers.get("set-cookie")
  assert cookie and "tb_session=" in cookie
  return res.json()["user"]


async def make_board(client: AsyncClient, title: str = "Board") -> dict:
  res = await client.post("/boards", json={"title": title})
  assert res.status_code == 201, res.text
  return res.json()


async def make_list(client: AsyncClient, board_id: str, title: str, **extra) -> dict:
  res = await client.post(f"/boards/{board_id}/lists", json={"title": title, **extra})
  assert res.status_code == 201, res.text
  return res.json()


async def make_card(client: AsyncClient, list_id: str, title: str, **extra) -> dict:
  res = await client.post(f"/lists/{list_id}/cards", json={"title": title, **extra})
  assert res.status_code == 201, res.text
  return res.json()


async def make_board_with_lists(client: AsyncClient, *titles: str) -> tuple[dict, list[dict]]:
  board = await make_board(client)
  lists = [await make_list(client, board["id"], t) for t in titles]
  return board, lists


def error_code(res) -> str:
  return res.json()["detail"]["code"]
