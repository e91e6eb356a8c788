from flashstudy import models
from tests.conftest import add_card, auth_headers, create_set, create_user_and_token


def _review_url(set_id: int, card_id: int) -> str:
    return f"/flashcards/sets/{set_id}/cards/{card_id}/review"


def test_review_counts_and_keeps_status(client, db):
    _, token = create_user_and_token(client, "learner")
    s = create_set(client, token)
    c1 = add_card(client, token, s["id"], "月", "moon")

    r = client.post(_review_url(s["id"], c1["id"]), headers=auth_headers(token))
    assert r.status_code == 200, r.text
    assert r.json() == {"review_count": 1, "mastered": False}

    r = client.post(
        _review_url(s["id"], c1["id"]), json={"mastered": False}, headers=auth_headers(token)
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"review_count": 2, "mastered": False}

    r = client.get(f"/flashcards/progress/{c1['id']}", headers=auth_headers(token))
    progress = r.json()["progress"]
    assert progress["status"] == "NEW"
    assert progress["review_count"] == 2
    assert progress["mastered_at"] is None

    assert db.query(models.DailyLearning).one().activity_count == 2


def test_review_mastered_marks_card_once(client):
    _, token = create_user_and_token(client, "learner")
    s = create_set(client, token)
    c1 = add_card(client, token, s["id"], "星", "star")

    r = client.post(
        _review_url(s["id"], c1["id"]), json={"mastered": True}, headers=auth_headers(token)
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"review_count": 1, "mastered": True}

    first = client.get(f"/flashcards/progress/{c1['id']}", headers=auth_headers(token)).json()
    mastered_at = first["progress"]["mastered_at"]
    assert mastered_at is not None

    r = client.post(
        _review_url(s["id"], c1["id"]), json={"mastered": True}, headers=auth_headers(token)
    )
    assert r.json() == {"review_count": 2, "mastered": True}

    # a plain review afterwards keeps the card mastered
    r = client.post(_review_url(s["id"], c1["id"]), json={}, headers=auth_headers(token))
    assert r.json() == {"review_count": 3, "mastered": True}

    latest = client.get(f"/flashcards/progress/{c1['id']}", headers=auth_headers(token)).json()
    assert latest["progress"]["mastered_at"] == mastered_at


def test_review_shares_progress_with_status_updates(client):
    _, token = create_user_and_token(client, "learner")
    s = create_set(client, token)
    c1 = add_card(client, token, s["id"], "雨", "rain")

    r = client.post(
        f"/flashcards/progress/{c1['id']}", json={"status": "LEARNING"}, headers=auth_headers(token)
    )
    assert r.status_code == 200, r.text

    r = client.post(_review_url(s["id"], c1["id"]), headers=auth_headers(token))
    assert r.json() == {"review_count": 2, "mastered": False}

    r = client.get(f"/flashcards/progress/{c1['id']}", headers=auth_headers(token))
    assert r.json()["progress"]["status"] == "LEARNING"


def test_review_card_from_other_set_is_rejected(client, db):
    _, token = create_user_and_token(client, "learner")
    s1 = create_set(client, token, title="one")
    s2 = create_set(client, token, title="two")
    c1 = add_card(client, token, s1["id"], "花", "flower")

    r = client.post(_review_url(s2["id"], c1["id"]), headers=auth_headers(token))
    assert r.status_code == 400
    assert r.json()["detail"] == "Flashcard does not belong to this set"
    assert db.query(models.FlashcardProgress).count() == 0


def test_review_requires_set_owner(client, db):
    _, owner = create_user_and_token(client, "owner")
    _, other = create_user_and_token(client, "other")
    s = create_set(client, owner)
    c1 = add_card(client, owner, s["id"], "空", "sky")

    r = client.post(_review_url(s["id"], c1["id"]), headers=auth_headers(other))
    assert r.status_code == 403
    assert r.json()["detail"] == "You are not the owner of this flashcard set"
    assert db.query(models.FlashcardProgress).count() == 0


def test_review_missing_card_or_set_is_404(client):
    _, token = create_user_and_token(client, "learner")
    s = create_set(client, token)

    r = client.post(_review_url(s["id"], 999999), headers=auth_headers(token))
    assert r.status_code == 404

    r = client.post(_review_url(999999, 1), headers=auth_headers(token))
    assert r.status_code == 404


def test_review_requires_auth(client):
    r = client.post(_review_url(1, 1))
    assert r.status_code == 401
