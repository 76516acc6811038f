import pytest

from studydeck.services.llm_service import LLMUnavailableError

pytestmark = pytest.mark.integration


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_create_and_get(client, document):
    assert document["title"] == "Cell Biology"
    assert document["summary"] == ""
    assert document["user_id"] == "local"

    res = client.get(f"/documents/{document['id']}")
    assert res.status_code == 200
    assert res.json()["content"] == document["content"]


def test_create_requires_content(client):
    res = client.post("/documents/", json={"title": "Empty", "content": ""})
    assert res.status_code == 422


@pytest.mark.parametrize("title", ["   ", "\t\n"])
def test_create_rejects_blank_title(client, title):
    res = client.post("/documents/", json={"title": title, "content": "Some text."})
    assert res.status_code == 422
    assert client.get("/documents/").json()["total"] == 0


def test_create_strips_title_and_cleans_tags(client):
    res = client.post(
        "/documents/",
        json={"title": "  Genetics  ", "content": "Genes.", "tags": " bio, ,genes,bio"},
    )
    assert res.status_code == 201
    assert res.json()["title"] == "Genetics"
    assert res.json()["tags"] == ["bio", "genes"]
    assert res.json()["is_favorite"] is False


def test_list(client, document):
    client.post("/documents/", json={"title": "Genetics", "content": "Genes."})
    body = client.get("/documents/").json()
    assert body["total"] == 2
    assert {d["title"] for d in body["items"]} == {"Cell Biology", "Genetics"}
    assert "content" not in body["items"][0]

    assert len(client.get("/documents/", params={"limit": 1}).json()["items"]) == 1


def test_get_missing(client):
    assert client.get("/documents/missing").status_code == 404


def test_documents_are_scoped_to_owner(client, document):
    other = {"X-User-Id": "someone-else"}
    assert client.get(f"/documents/{document['id']}", headers=other).status_code == 404
    assert client.get("/documents/", headers=other).json()["total"] == 0


def test_summary(client, document, fake_llm):
    fake_llm.text_reply = "Cells are the unit of life."
    res = client.post(f"/documents/{document['id']}/summary")
    assert res.status_code == 200
    assert res.json()["summary"] == "Cells are the unit of life."
    assert client.get(f"/documents/{document['id']}").json()["summary"] == (
        "Cells are the unit of life."
    )


def test_summary_when_llm_unavailable(client, document, fake_llm):
    fake_llm.text_reply = LLMUnavailableError("No LLM configured")
    assert client.post(f"/documents/{document['id']}/summary").status_code == 503


def test_delete_cascades(client, document, fake_llm, flashcard_reply, quiz_reply):
    fake_llm.json_reply = flashcard_reply
    client.post(f"/flashcards/generate/{document['id']}", json={})
    fake_llm.json_reply = quiz_reply
    quiz = client.post(f"/quizzes/generate/{document['id']}", json={}).json()["quiz"]
    client.post(f"/quizzes/{quiz['id']}/attempt", json={"answers": [0] * 5})

    assert client.delete(f"/documents/{document['id']}").status_code == 204

    assert client.get(f"/documents/{document['id']}").status_code == 404
    assert client.get("/flashcards/").json()["total"] == 0
    assert client.get("/quizzes/").json() == []
    assert client.get("/quizzes/attempts/all").json() == []
    assert client.delete(f"/documents/{document['id']}").status_code == 404


def test_update(client, document):
    res = client.patch(
        f"/documents/{document['id']}",
        json={"title": " Cells ", "tags": ["biology", "cells"], "is_favorite": True},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Cells"
    assert body["tags"] == ["biology", "cells"]
    assert body["is_favorite"] is True
    assert body["content"] == document["content"]

    res = client.patch(f"/documents/{document['id']}", json={"is_favorite": False})
    assert res.json()["title"] == "Cells"
    assert res.json()["tags"] == ["biology", "cells"]
    assert res.json()["is_favorite"] is False


def test_update_rejects_blank_title(client, document):
    res = client.patch(f"/documents/{document['id']}", json={"title": "  "})
    assert res.status_code == 422
    assert client.get(f"/documents/{document['id']}").json()["title"] == "Cell Biology"


def test_update_missing_or_foreign(client, document):
    assert client.patch("/documents/missing", json={"title": "X"}).status_code == 404
    other = {"X-User-Id": "someone-else"}
    res = client.patch(f"/documents/{document['id']}", json={"title": "X"}, headers=other)
    assert res.status_code == 404
    assert client.get(f"/documents/{document['id']}").json()["title"] == "Cell Biology"


@pytest.fixture
def library(client):
    docs = [
        ("Cell Biology", "Mitochondria make ATP.", ["biology", "cells"]),
        ("Genetics", "Genes are made of DNA.", ["biology"]),
        ("Roman History", "Caesar crossed the Rubicon.", ["history"]),
        ("Discount Math", "100% of 50_000 is 50000.", []),
    ]
    for title, content, tags in docs:
        client.post("/documents/", json={"title": title, "content": content, "tags": tags})


def _titles(client, **params):
    return {d["title"] for d in client.get("/documents/", params=params).json()["items"]}


def test_search(client, library):
    assert _titles(client, search="dna") == {"Genetics"}
    assert _titles(client, search="roman") == {"Roman History"}
    assert _titles(client, search="history") == {"Roman History"}
    assert _titles(client, search="%") == {"Discount Math"}
    assert _titles(client, search="0_0") == {"Discount Math"}
    assert _titles(client, search="nothing here") == set()


def test_tag_filter(client, library):
    assert _titles(client, tags="biology") == {"Cell Biology", "Genetics"}
    assert _titles(client, tags="cells, history") == {"Cell Biology", "Roman History"}
    assert _titles(client, tags="bio") == set()

    body = client.get("/documents/", params={"tags": "biology", "search": "atp"}).json()
    assert body["total"] == 1
    assert body["items"][0]["tags"] == ["biology", "cells"]


def test_favorite_filter(client, document):
    client.post("/documents/", json={"title": "Genetics", "content": "Genes."})
    client.patch(f"/documents/{document['id']}", json={"is_favorite": True})
    body = client.get("/documents/", params={"favorite": True}).json()
    assert body["total"] == 1
    assert body["items"][0]["title"] == "Cell Biology"


def test_summary_gateway_error_is_bad_gateway(client, document, fake_llm):
    from studydeck.services.llm_service import LLMResponseError

    fake_llm.text_reply = LLMResponseError("LLM endpoint returned a non-JSON body")
    assert client.post(f"/documents/{document['id']}/summary").status_code == 502
