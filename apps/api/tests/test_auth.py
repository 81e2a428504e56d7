from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import PASSWORD, error_code, register


@pytest.mark.anyio
async def test_register_sets_session_and_me(client: AsyncClient) -> None:
  user = await register(client, "alice@example.com", "Alice")
  assert user["email"] == "alice@example.com"
  me = await client.get("/auth/me")
  assert me.status_code == 200, me.text
  assert me.json()["id"] == user["id"]


@pytest.mark.anyio
async def test_duplicate_registration_conflicts(client: AsyncClient) -> None:
  await register(client, "dup@example.com")
  res = await client.post("/auth/register", json={"name": "Other", "email": "DUP@example.com", "password": PASSWORD})
  assert res.status_code == 409, res.text
  assert error_code(res) == "conflict"


@pytest.mark.anyio
async def test_register_validates_input(client: AsyncClient) -> None:
  short = await client.post("/auth/register", json={"name": "Bob", "email": "bob@example.com", "password": "123"})
  assert short.status_code == 400, short.text
  bad_email = await client.post("/auth/register", json={"name": "Bob", "email": "not-an-email", "password": PASSWORD})
  assert bad_email.status_code == 400, bad_email.text


@pytest.mark.anyio
async def test_login_is_case_insensitive_on_email(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "carol@example.com", "Carol")
  res = await other_client.post("/auth/login", json={"email": "  Carol@Example.COM ", "password": PASSWORD})
  assert res.status_code == 200, res.text
  assert res.json()["user"]["email"] == "carol@example.com"


@pytest.mark.anyio
async def test_login_rejects_bad_password(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "dave@example.com")
  res = await other_client.post("/auth/login", json={"email": "dave@example.com", "password": "wrong-one"})
  assert res.status_code == 401, res.text


@pytest.mark.anyio
async def test_bearer_token_authenticates(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "erin@example.com")
  login = await other_client.post("/auth/login", json={"email": "erin@example.com", "password": PASSWORD})
  token = login.json()["token"]
  other_client.cookies.clear()
  me = await other_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
  assert me.status_code == 200, me.text


@pytest.mark.anyio
async def test_logout_ends_session(client: AsyncClient) -> None:
  await register(client, "frank@example.com")
  out = await client.post("/auth/logout")
  assert out.status_code == 200, out.text
  client.cookies.clear()
  assert (await client.get("/auth/me")).status_code == 401


@pytest.mark.anyio
async def test_unauthenticated_requests_are_rejected(client: AsyncClient) -> None:
  assert (await client.get("/boards")).status_code == 401


@pytest.mark.anyio
async def test_change_password(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "gina@example.com")
  wrong = await client.post("/auth/password", json={"currentPassword": "nope", "newPassword": "another1"})
  assert wrong.status_code == 400, wrong.text
  ok = await client.post("/auth/password", json={"currentPassword": PASSWORD, "newPassword": "another1"})
  assert ok.status_code == 200, ok.text
  res = await other_client.post("/auth/login", json={"email": "gina@example.com", "password": "another1"})
  assert res.status_code == 200, res.text


@pytest.mark.anyio
async def test_avatar_upload_and_fetch(client: AsyncClient) -> None:
  await register(client, "hank@example.com")
  png = b"\x89PNG\r\n\x1a\n" + b"0" * 32
  res = await client.post("/auth/avatar", files={"file": ("me.png", png, "image/png")})
  assert res.status_code == 200, res.text
  url = res.json()["avatarUrl"]
  assert url.startswith("/auth/avatar/avatar_")
  got = await client.get(url)
  assert got.status_code == 200
  assert got.content == png

  bad = await client.post("/auth/avatar", files={"file": ("me.txt", b"hello", "text/plain")})
  assert bad.status_code == 400, bad.text


@pytest.mark.anyio
async def test_login_rate_limited(app, client: AsyncClient) -> None:
  app.state.settings.rate_limit_login_ip_per_minute = 3
  app.state.settings.rate_limit_login_email_per_minute = 3
  for _ in range(3):
    r = await client.post("/auth/login", json={"email": "nobody@example.com", "password": "bad"})
    assert r.status_code == 401, r.text
  r = await client.post("/auth/login", json={"email": "nobody@example.com", "password": "bad"})
  assert r.status_code == 429, r.text
  assert r.headers.get("retry-after")
