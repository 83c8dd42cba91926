from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client() -> TestClient:
    from vocabdeck.main import app

    return TestClient(app)


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


def test_health(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")


def test_grade_returns_state_and_next_review(client):
    resp = client.post(
        "/api/review/grade",
        json={"card_id": "w:haus", "direction": "translateTo", "difficulty": "good"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["card_id"] == "w:haus"
    assert body["direction"] == "translateTo"
    assert body["quality"] == 4
    # 状態は単語レコードと同じキー名（easeFactor）で返す
    assert set(body["state"]) == {"easeFactor", "interval", "repetitions"}
    assert body["state"]["easeFactor"] == pytest.approx(2.5)
    assert body["state"]["interval"] == 0.083
    assert body["state"]["repetitions"] == 1
    assert _parse(body["next_review"]).tzinfo is not None


def test_grade_hard_is_due_in_one_minute(client):
    resp = client.post(
        "/api/review/grade",
        json={"card_id": "w:haus", "direction": "translateFrom", "difficulty": "hard"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"]["repetitions"] == 0
    assert body["state"]["interval"] == 0

    card = client.get("/api/review/cards/w:haus").json()
    next_from = _parse(card["directions"]["translateFrom"]["next_review"])
    assert card["directions"]["translateFrom"]["due"] is False
    assert timedelta(0) < next_from - datetime.now(next_from.tzinfo) <= timedelta(minutes=1)


@pytest.mark.parametrize(
    "payload",
    [
        {"card_id": "w:haus", "direction": "translateTo", "difficulty": "easy"},
        {"card_id": "w:haus", "direction": "sideways", "difficulty": "ok"},
        {"card_id": "", "direction": "translateTo", "difficulty": "ok"},
    ],
)
def test_grade_rejects_invalid_payload(client, payload):
    resp = client.post("/api/review/grade", json=payload)
    assert resp.status_code == 422


def test_card_schedule_keeps_directions_independent(client):
    client.post(
        "/api/review/grade",
        json={"card_id": "w:baum", "direction": "translateTo", "difficulty": "perfect"},
    )
    card = client.get("/api/review/cards/w:baum").json()
    assert card["directions"]["translateTo"]["state"]["repetitions"] == 1
    assert card["directions"]["translateTo"]["due"] is False
    assert card["directions"]["translateFrom"] == {"state": None, "next_review": None, "due": True}


def test_due_counts_and_cards(client):
    client.post(
        "/api/review/grade",
        json={"card_id": "w:a", "direction": "translateTo", "difficulty": "ok"},
    )
    resp = client.get("/api/review/due", params=[("card_id", "w:a"), ("card_id", "w:b")])
    assert resp.status_code == 200
    assert resp.json() == {"counts": {"translateFrom": 2, "translateTo": 1}, "total": 3}

    resp = client.get(
        "/api/review/due/translateTo", params=[("card_id", "w:a"), ("card_id", "w:b")]
    )
    assert resp.json() == {"direction": "translateTo", "card_ids": ["w:b"]}

    resp = client.get(
        "/api/review/due/translateFrom",
        params=[("card_id", "w:a"), ("card_id", "w:b"), ("limit", "1")],
    )
    assert resp.json()["card_ids"] == ["w:a"]


def test_delete_card(client):
    client.post(
        "/api/review/grade",
        json={"card_id": "w:a", "direction": "translateTo", "difficulty": "ok"},
    )
    assert client.delete("/api/review/cards/w:a").status_code == 204
    assert client.delete("/api/review/cards/w:a").status_code == 404
