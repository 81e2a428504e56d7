from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import error_code, make_board_with_lists, make_card, register


async def _titles(client: AsyncClient, list_id: str) -> list[tuple[str, int]]:
  cards = (await client.get(f"/lists/{list_id}/cards")).json()
  return [(c["title"], c["position"]) for c in cards]


@pytest.mark.anyio
async def test_create_cards_appends(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  created = [await make_card(client, list_id, f"T{i}") for i in range(3)]
  assert [c["position"] for c in created] == [0, 1, 2]
  lst = (await client.get(f"/boards/{lists[0]['boardId']}/lists")).json()[0]
  assert lst["cardIds"] == [c["id"] for c in created]


@pytest.mark.anyio
async def test_create_card_at_position_shifts(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  for t in ("a", "b"):
    await make_card(client, list_id, t)
  await make_card(client, list_id, "top", position=0)
  assert await _titles(client, list_id) == [("top", 0), ("a", 1), ("b", 2)]


@pytest.mark.anyio
async def test_card_fields_round_trip(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  card = await make_card(
    client, lists[0]["id"], "  Ship it  ", description="notes", labels=["urgent", " urgent ", "ops"], dueDate="2026-11-02"
  )
  assert card["title"] == "Ship it"
  assert card["labels"] == ["urgent", "ops"]
  assert card["dueDate"].startswith("2026-11-02T00:00:00")
  assert card["comments"] == []

  res = await client.patch(f"/cards/{card['id']}", json={"dueDate": None, "description": "changed"})
  assert res.status_code == 200, res.text
  assert res.json()["dueDate"] is None
  assert res.json()["description"] == "changed"


@pytest.mark.anyio
async def test_card_validation(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  for payload in ({}, {"title": ""}, {"title": "x" * 201}, {"title": "ok", "dueDate": "someday"}):
    res = await client.post(f"/lists/{list_id}/cards", json=payload)
    assert res.status_code == 400, (payload, res.text)
    assert error_code(res) == "validation_error"


@pytest.mark.anyio
async def test_update_card_without_known_fields(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  card = await make_card(client, lists[0]["id"], "c")
  res = await client.patch(f"/cards/{card['id']}", json={"listId": lists[0]["id"]})
  assert res.status_code == 400, res.text
  assert error_code(res) == "no_fields_to_update"


@pytest.mark.anyio
async def test_update_card_position_moves_within_list(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  cards = [await make_card(client, list_id, t) for t in ("a", "b", "c")]
  res = await client.patch(f"/cards/{cards[2]['id']}", json={"position": 0})
  assert res.status_code == 200, res.text
  assert await _titles(client, list_id) == [("c", 0), ("a", 1), ("b", 2)]


@pytest.mark.anyio
async def test_delete_middle_card_keeps_relative_order(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  cards = [await make_card(client, list_id, t) for t in ("a", "b", "c")]
  res = await client.delete(f"/cards/{cards[1]['id']}")
  assert res.status_code == 200, res.text
  assert await _titles(client, list_id) == [("a", 0), ("c", 1)]
  assert (await client.get(f"/cards/{cards[1]['id']}")).status_code == 404
  lst = (await client.get(f"/boards/{lists[0]['boardId']}/lists")).json()[0]
  assert lst["cardIds"] == [cards[0]["id"], cards[2]["id"]]


@pytest.mark.anyio
async def test_move_card_across_lists(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  board, lists = await make_board_with_lists(client, "From", "To")
  src, dest = lists[0]["id"], lists[1]["id"]
  a, b, c = [await make_card(client, src, t) for t in ("a", "b", "c")]
  await make_card(client, dest, "x")

  res = await client.post(f"/cards/{b['id']}/move", json={"listId": dest, "toIndex": 0})
  assert res.status_code == 200, res.text
  assert res.json()["listId"] == dest
  assert await _titles(client, src) == [("a", 0), ("c", 1)]
  assert await _titles(client, dest) == [("b", 0), ("x", 1)]

  got = {l["id"]: l["cardIds"] for l in (await client.get(f"/boards/{board['id']}/lists")).json()}
  assert got[src] == [a["id"], c["id"]]
  assert got[dest][0] == b["id"]


@pytest.mark.anyio
async def test_move_card_appends_by_default(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "From", "To")
  card = await make_card(client, lists[0]["id"], "a")
  await make_card(client, lists[1]["id"], "x")
  res = await client.post(f"/cards/{card['id']}/move", json={"listId": lists[1]["id"]})
  assert res.status_code == 200, res.text
  assert await _titles(client, lists[1]["id"]) == [("x", 0), ("a", 1)]


@pytest.mark.anyio
async def test_move_card_within_same_list(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  _, lists = await make_board_with_lists(client, "A")
  list_id = lists[0]["id"]
  cards = [await make_card(client, list_id, t) for t in ("a", "b", "c")]
  res = await client.post(f"/cards/{cards[0]['id']}/move", json={"listId": list_id, "toIndex": 2})
  assert res.status_code == 200, res.text
  assert await _titles(client, list_id) == [("b", 0), ("c", 1), ("a", 2)]


@pytest.mark.anyio
async def test_my_cards_sorted_by_due_date(client: AsyncClient) -> None:
  await register(client, "owner@example.com")
  board, lists = await make_board_with_lists(client, "A", "B")
  await make_card(client, lists[0]["id"], "undated")
  await make_card(client, lists[1]["id"], "later", dueDate="2026-12-01")
  await make_card(client, lists[0]["id"], "sooner", dueDate="2026-11-01T09:00:00Z")

  res = await client.get("/cards/mine")
  assert res.status_code == 200, res.text
  mine = res.json()
  assert [c["title"] for c in mine] == ["sooner", "later", "undated"]
  assert mine[1]["listTitle"] == "B"
  assert mine[0]["boardId"] == board["id"]
