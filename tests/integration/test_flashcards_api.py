from datetime import datetime, timedelta

import pytest

from studydeck.services.llm_service import LLMUnavailableError

pytestmark = pytest.mark.integration


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def cards(client, document, fake_llm, flashcard_reply):
    fake_llm.json_reply = flashcard_reply
    res = client.post(
        f"/flashcards/generate/{document['id']}",
        json={"count": 3, "difficulty": "hard"},
    )
    assert res.status_code == 200
    return res.json()["flashcards"]


def test_generate_stores_cards(cards, document):
    assert len(cards) == 3
    for card in cards:
        assert card["document_id"] == document["id"]
        assert card["difficulty"] == "hard"
        assert card["category"] == "Cell Biology"
        assert card["review_count"] == 0
        assert card["success_rate"] == 0
        assert card["last_reviewed"] is None


def test_generate_uses_defaults_without_body(client, document, fake_llm, flashcard_reply):
    fake_llm.json_reply = flashcard_reply
    res = client.post(f"/flashcards/generate/{document['id']}")
    assert res.status_code == 200
    assert all(c["difficulty"] == "medium" for c in res.json()["flashcards"])


def test_generate_for_missing_document(client, fake_llm):
    res = client.post("/flashcards/generate/nope", json={})
    assert res.status_code == 404
    assert fake_llm.calls == []


def test_generate_when_llm_unavailable(client, document, fake_llm):
    fake_llm.json_reply = LLMUnavailableError("No LLM configured")
    res = client.post(f"/flashcards/generate/{document['id']}", json={})
    assert res.status_code == 503


def test_generate_with_unusable_reply(client, document, fake_llm):
    fake_llm.json_reply = {"flashcards": []}
    res = client.post(f"/flashcards/generate/{document['id']}", json={})
    assert res.status_code == 502


def test_new_cards_are_due(client, cards):
    res = client.get("/flashcards/due")
    assert res.status_code == 200
    assert res.json()["total"] == 3


def test_correct_review_reschedules(client, cards):
    card_id = cards[0]["id"]
    res = client.post(f"/flashcards/{card_id}/review", json={"correct": True})
    assert res.status_code == 200
    card = res.json()
    assert card["review_count"] == 1
    assert card["correct_count"] == 1
    assert card["success_rate"] == 100
    assert _ts(card["next_review"]) - _ts(card["last_reviewed"]) == timedelta(days=2)

    due_ids = [c["id"] for c in client.get("/flashcards/due").json()["items"]]
    assert card_id not in due_ids


def test_review_sequence(client, cards):
    card_id = cards[0]["id"]
    client.post(f"/flashcards/{card_id}/review", json={"correct": True})
    client.post(f"/flashcards/{card_id}/review", json={"correct": True})
    card = client.post(f"/flashcards/{card_id}/review", json={"correct": False}).json()

    assert card["review_count"] == 3
    assert card["correct_count"] == 2
    assert card["success_rate"] == 67
    assert _ts(card["next_review"]) - _ts(card["last_reviewed"]) == timedelta(days=1)

    stored = client.get(f"/flashcards/{card_id}").json()
    assert stored["review_count"] == 3


def test_review_missing_card(client):
    res = client.post("/flashcards/missing/review", json={"correct": True})
    assert res.status_code == 404


def test_review_requires_flag(client, cards):
    res = client.post(f"/flashcards/{cards[0]['id']}/review", json={})
    assert res.status_code == 422


def test_toggle_favorite_and_filter(client, cards):
    card_id = cards[1]["id"]
    res = client.patch(f"/flashcards/{card_id}/favorite")
    assert res.json()["is_favorite"] is True

    favorites = client.get("/flashcards/", params={"favorite": "true"}).json()
    assert [c["id"] for c in favorites["items"]] == [card_id]

    res = client.patch(f"/flashcards/{card_id}/favorite")
    assert res.json()["is_favorite"] is False
    assert client.get("/flashcards/", params={"favorite": "true"}).json()["total"] == 0


def test_toggle_favorite_missing_card(client):
    assert client.patch("/flashcards/missing/favorite").status_code == 404


def test_difficulty_filter(client, cards):
    assert client.get("/flashcards/", params={"difficulty": "hard"}).json()["total"] == 3
    assert client.get("/flashcards/", params={"difficulty": "easy"}).json()["total"] == 0
    assert client.get("/flashcards/", params={"difficulty": "extreme"}).status_code == 422


def test_list_by_document(client, cards, document):
    res = client.get(f"/flashcards/document/{document['id']}")
    assert res.json()["total"] == 3
    assert client.get("/flashcards/document/other").json()["total"] == 0


def test_cards_are_scoped_to_owner(client, cards):
    other = {"X-User-Id": "someone-else"}
    card_id = cards[0]["id"]
    assert client.get(f"/flashcards/{card_id}", headers=other).status_code == 404
    assert client.post(
        f"/flashcards/{card_id}/review", json={"correct": True}, headers=other
    ).status_code == 404
    assert client.delete(f"/flashcards/{card_id}", headers=other).status_code == 404
    assert client.get("/flashcards/", headers=other).json()["total"] == 0


def test_delete_card(client, cards):
    card_id = cards[0]["id"]
    assert client.delete(f"/flashcards/{card_id}").status_code == 204
    assert client.get(f"/flashcards/{card_id}").status_code == 404
    assert client.delete(f"/flashcards/{card_id}").status_code == 404
