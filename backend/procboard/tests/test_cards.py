from datetime import datetime, timedelta, timezone

from procboard.services.repositories import apply_completion

from .conftest import make_process


def _board(client, name="Board"):
    make_process(client, name)
    todo = client.post(f"/api/processes/{name}/lists", json={"title": "Todo"}).json()
    doing = client.post(f"/api/processes/{name}/lists", json={"title": "Doing"}).json()
    return todo["id"], doing["id"]


def test_completion_is_stamped_and_cleared(client):
    todo, _ = _board(client)
    card = client.post(
        "/api/processes/Board/cards",
        json={"title": "Ship", "list_id": todo, "start_at": "2024-01-01T00:00:00"},
    ).json()
    assert card["status"] == "pending"
    assert card["completed_at"] is None
    assert card["start_at"] == "2024-01-01T00:00:00.000Z"

    done = client.put(f"/api/processes/Board/cards/{card['id']}", json={"status": "done"}).json()
    assert done["completed_at"] is not None
    assert done["completed_at"].endswith("Z")
    assert done["completion_message"].startswith("Completed in")

    again = client.put(f"/api/processes/Board/cards/{card['id']}", json={"status": "done", "title": "Ship it"}).json()
    assert again["completed_at"] == done["completed_at"]

    reopened = client.put(f"/api/processes/Board/cards/{card['id']}", json={"status": "in_progress"}).json()
    assert reopened["completed_at"] is None
    assert reopened["completion_message"] is None


def test_card_validation(client):
    todo, _ = _board(client)
    no_title = client.post("/api/processes/Board/cards", json={"list_id": todo})
    assert no_title.status_code == 422
    no_list = client.post("/api/processes/Board/cards", json={"title": "T"})
    assert no_list.status_code == 422
    unknown_list = client.post("/api/processes/Board/cards", json={"title": "T", "list_id": "nope"})
    assert unknown_list.status_code == 400
    bad_assignee = client.post(
        "/api/processes/Board/cards", json={"title": "T", "list_id": todo, "assignee": "Nobody"}
    )
    assert bad_assignee.status_code == 422
    card = client.post("/api/processes/Board/cards", json={"title": "T", "list_id": todo}).json()
    blank = client.put(f"/api/processes/Board/cards/{card['id']}", json={"title": " "})
    assert blank.status_code == 422


def test_open_attributes_are_persisted(client):
    todo, _ = _board(client)
    card = client.post(
        "/api/processes/Board/cards",
        json={"title": "T", "list_id": todo, "assignee": "Redes", "priority": 3, "completed_at": "2020-01-01T00:00:00Z"},
    ).json()
    assert card["priority"] == 3
    assert card["assignee"] == "Redes"
    assert card["completed_at"] is None

    updated = client.put(f"/api/processes/Board/cards/{card['id']}", json={"labels": ["urgent"]}).json()
    assert updated["priority"] == 3
    assert updated["labels"] == ["urgent"]

    fetched = client.get(f"/api/processes/Board/cards/{card['id']}").json()
    assert fetched["labels"] == ["urgent"]


def test_deleting_a_list_cascades_only_its_cards(client):
    todo, doing = _board(client)
    for title in ("a", "b"):
        client.post("/api/processes/Board/cards", json={"title": title, "list_id": todo})
    keep = client.post("/api/processes/Board/cards", json={"title": "c", "list_id": doing}).json()

    resp = client.delete(f"/api/processes/Board/lists/{todo}")
    assert resp.status_code == 200
    assert resp.json()["cascaded"] == {"cards": 2}

    remaining = client.get("/api/processes/Board/cards").json()
    assert [c["id"] for c in remaining] == [keep["id"]]
    assert [l["id"] for l in client.get("/api/processes/Board/lists").json()] == [doing]
    assert client.delete(f"/api/processes/Board/lists/{todo}").status_code == 404


def test_card_move_and_delete(client):
    todo, doing = _board(client)
    card = client.post("/api/processes/Board/cards", json={"title": "m", "list_id": todo}).json()
    moved = client.put(f"/api/processes/Board/cards/{card['id']}", json={"list_id": doing})
    assert moved.json()["list_id"] == doing
    assert client.put(f"/api/processes/Board/cards/{card['id']}", json={"list_id": "nope"}).status_code == 400

    assert client.delete(f"/api/processes/Board/cards/{card['id']}").status_code == 200
    assert client.get(f"/api/processes/Board/cards/{card['id']}").status_code == 404
    assert client.put(f"/api/processes/Board/cards/{card['id']}", json={"status": "done"}).status_code == 404


def test_list_update(client):
    todo, _ = _board(client)
    resp = client.put(f"/api/processes/Board/lists/{todo}", json={"title": "Renamed", "id": "other"})
    assert resp.status_code == 200
    assert resp.json()["id"] == todo
    assert resp.json()["title"] == "Renamed"
    assert client.put("/api/processes/Board/lists/missing", json={"title": "x"}).status_code == 404


def test_cards_of_fresh_process_are_empty(client):
    make_process(client, "Fresh")
    assert client.get("/api/processes/Fresh/cards").json() == []
    assert client.get("/api/processes/Fresh/lists").json() == []


def test_apply_completion_uses_created_at_without_start():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    now = created + timedelta(days=2, hours=3)
    values = apply_completion({"status": "done"}, previous_status="pending", start_at=None, created_at=created, now=now)
    assert values["completed_at"] == now
    assert values["completion_message"] == "Completed in 2 days and 3 hours"


def test_apply_completion_leaves_unrelated_updates_alone():
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    values = apply_completion({"title": "x"}, previous_status="done", start_at=None, created_at=created)
    assert values == {"title": "x"}
