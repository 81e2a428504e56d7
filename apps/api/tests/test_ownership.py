from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from conftest import error_code, make_board_with_lists, make_card, register


@pytest.mark.anyio
async def test_other_user_is_forbidden_everywhere(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  board, lists = await make_board_with_lists(client, "A", "B")
  card = await make_card(client, lists[0]["id"], "Secret")
  comment = (await client.post(f"/cards/{card['id']}/comments", json={"text": "mine"})).json()

  await register(other_client, "intruder@example.com")
  calls = [
    other_client.get(f"/boards/{board['id']}"),
    other_client.patch(f"/boards/{board['id']}", json={"title": "x"}),
    other_client.get(f"/boards/{board['id']}/lists"),
    other_client.post(f"/boards/{board['id']}/lists", json={"title": "x"}),
    other_client.post(f"/boards/{board['id']}/lists/reorder", json={"orderedIds": [l["id"] for l in lists]}),
    other_client.patch(f"/lists/{lists[0]['id']}", json={"title": "x"}),
    other_client.post(f"/lists/{lists[0]['id']}/cards", json={"title": "x"}),
    other_client.get(f"/cards/{card['id']}"),
    other_client.patch(f"/cards/{card['id']}", json={"title": "x"}),
    other_client.post(f"/cards/{card['id']}/comments", json={"text": "x"}),
    other_client.delete(f"/cards/{card['id']}/comments/{comment['id']}"),
    other_client.delete(f"/lists/{lists[1]['id']}"),
    other_client.delete(f"/boards/{board['id']}"),
  ]
  for call in calls:
    res = await call
    assert res.status_code == 403, res.text
    assert error_code(res) == "forbidden"

  # Nothing changed for the owner.
  got = (await client.get(f"/boards/{board['id']}")).json()
  assert got["title"] == "Board"
  assert got["listIds"] == [l["id"] for l in lists]
  assert (await client.get(f"/cards/{card['id']}")).json()["title"] == "Secret"


@pytest.mark.anyio
async def test_forbidden_is_checked_before_missing_fields(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  board, lists = await make_board_with_lists(client, "A")
  await register(other_client, "intruder@example.com")
  res = await other_client.patch(f"/lists/{lists[0]['id']}", json={})
  assert res.status_code == 403, res.text


@pytest.mark.anyio
async def test_unknown_ids_are_not_found(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  missing = str(uuid.uuid4())
  for path in (f"/boards/{missing}", f"/boards/{missing}/lists", f"/lists/{missing}/cards", f"/cards/{missing}"):
    res = await client.get(path)
    assert res.status_code == 404, (path, res.text)
    assert error_code(res) == "not_found"


@pytest.mark.anyio
async def test_malformed_ids_are_rejected(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  res = await client.get("/boards/not-a-uuid")
  assert res.status_code == 400, res.text
  assert error_code(res) == "validation_error"


@pytest.mark.anyio
async def test_cross_user_card_move_is_forbidden(client: AsyncClient, other_client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  card = await make_card(client, lists[0]["id"], "Mine")

  await register(other_client, "intruder@example.com")
  _, their_lists = await make_board_with_lists(other_client, "Theirs")
  res = await client.post(f"/cards/{card['id']}/move", json={"listId": their_lists[0]["id"]})
  assert res.status_code == 403, res.text
  assert (await client.get(f"/cards/{card['id']}")).json()["listId"] == lists[0]["id"]
