import base64
import uuid

from huequitas.core.validators import MAX_IMAGE_SIZE_BYTES


def _restaurant(client, headers, name="Chez X"):
    r = client.post("/restaurants", json={"name": name}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _review(client, headers, rid, rating, **extra):
    return client.post("/reviews", json={"restaurantId": rid, "rating": rating, **extra}, headers=headers)


def _aggregate(client, rid):
    body = client.get(f"/restaurants/{rid}").json()
    return body["rating"], body["totalRatings"]


def test_rating_example(core_client, alice_headers, bob_headers):
    rid = _restaurant(core_client, alice_headers)
    r5 = _review(core_client, alice_headers, rid, 5)
    r3 = _review(core_client, bob_headers, rid, 3)
    assert r5.status_code == r3.status_code == 201

    assert _aggregate(core_client, rid) == (4.0, 2)

    r = core_client.delete(f"/reviews/{r3.json()['id']}", headers=bob_headers)
    assert r.status_code == 200, r.text
    assert _aggregate(core_client, rid) == (5.0, 1)


def test_rating_rounds_half_up(core_client, alice_headers, bob_headers):
    rid = _restaurant(core_client, alice_headers)
    for rating in (5, 4, 4):
        _review(core_client, alice_headers, rid, rating)
    # 13 / 3 = 4.333...
    assert _aggregate(core_client, rid) == (4.33, 3)

    for rating in (1, 1, 1, 1, 5):
        _review(core_client, bob_headers, rid, rating)
    # 22 / 8 = 2.75
    assert _aggregate(core_client, rid) == (2.75, 8)


def test_deleting_last_review_resets_aggregate(core_client, alice_headers):
    rid = _restaurant(core_client, alice_headers)
    review = _review(core_client, alice_headers, rid, 2).json()
    core_client.delete(f"/reviews/{review['id']}", headers=alice_headers)
    assert _aggregate(core_client, rid) == (0.0, 0)


def test_update_recomputes(core_client, alice_headers, bob_headers):
    rid = _restaurant(core_client, alice_headers)
    mine = _review(core_client, alice_headers, rid, 1, comment="Meh").json()
    _review(core_client, bob_headers, rid, 4)

    r = core_client.put(f"/reviews/{mine['id']}", json={"rating": 5}, headers=alice_headers)
    assert r.status_code == 200, r.text
    assert r.json()["rating"] == 5
    assert r.json()["comment"] == "Meh"
    assert _aggregate(core_client, rid) == (4.5, 2)


def test_only_author_may_edit_or_delete(core_client, alice_headers, bob_headers):
    rid = _restaurant(core_client, alice_headers)
    review = _review(core_client, alice_headers, rid, 4).json()

    r = core_client.put(f"/reviews/{review['id']}", json={"rating": 1}, headers=bob_headers)
    assert r.status_code == 403
    assert core_client.delete(f"/reviews/{review['id']}", headers=bob_headers).status_code == 403
    assert _aggregate(core_client, rid) == (4.0, 1)


def test_review_snapshot_author(core_client, alice_headers):
    rid = _restaurant(core_client, alice_headers)
    body = _review(core_client, alice_headers, rid, 4, comment="  Rico  ").json()
    assert body["userId"] == "11111111-1111-1111-1111-111111111111"
    assert body["userName"] == "Alice Perez"
    assert body["comment"] == "Rico"


def test_review_validation(core_client, alice_headers):
    rid = _restaurant(core_client, alice_headers)

    assert _review(core_client, alice_headers, rid, 0).status_code == 400
    assert _review(core_client, alice_headers, rid, 6).status_code == 400
    assert _review(core_client, alice_headers, rid, 3.5).status_code == 400
    assert _review(core_client, alice_headers, rid, 4, comment="x" * 251).status_code == 400

    missing = core_client.post("/reviews", json={"restaurantId": rid}, headers=alice_headers)
    assert missing.status_code == 400
    assert missing.json() == {"error": "Restaurant ID and rating are required"}

    assert _review(core_client, alice_headers, str(uuid.uuid4()), 4).status_code == 404
    assert _aggregate(core_client, rid) == (0.0, 0)


def test_review_with_image(core_client, alice_headers):
    rid = _restaurant(core_client, alice_headers)
    png = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake").decode()
    ok = _review(core_client, alice_headers, rid, 5, image=png)
    assert ok.status_code == 201, ok.text
    assert ok.json()["image"] == png

    bmp = "data:image/bmp;base64," + base64.b64encode(b"BM").decode()
    assert _review(core_client, alice_headers, rid, 5, image=bmp).status_code == 400

    huge = "data:image/jpeg;base64," + base64.b64encode(b"\0" * (MAX_IMAGE_SIZE_BYTES + 1)).decode()
    assert _review(core_client, alice_headers, rid, 5, image=huge).status_code == 400


def test_list_reviews_newest_first(core_client, alice_headers, bob_headers):
    rid = _restaurant(core_client, alice_headers)
    first = _review(core_client, alice_headers, rid, 2).json()
    second = _review(core_client, bob_headers, rid, 3).json()

    items = core_client.get(f"/reviews/{rid}").json()
    assert [r["id"] for r in items] == [second["id"], first["id"]]


def test_reviews_require_auth(core_client, alice_headers):
    rid = _restaurant(core_client, alice_headers)
    assert core_client.post("/reviews", json={"restaurantId": rid, "rating": 3}).status_code == 401
