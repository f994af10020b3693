import pytest


# --- create ---

@pytest.mark.asyncio
async def test_create_review(client, register, create_book):
    user, headers = await register()
    book = await create_book(headers)

    resp = await client.post("/api/reviews", headers=headers, json={
        "bookId": book["id"],
        "rating": 4.5,
        "comment": "  Sprawling and strange.  ",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Review created successfully"
    review = body["data"]
    assert review["rating"] == 4.5
    assert review["comment"] == "Sprawling and strange."
    assert review["bookId"] == book["id"]
    assert review["userId"] == user["id"]
    assert review["book"]["title"] == "Dune"
    assert review["user"]["name"] == "Reader One"


@pytest.mark.asyncio
async def test_create_review_requires_auth(client, register, create_book):
    _, headers = await register()
    book = await create_book(headers)
    resp = await client.post("/api/reviews", json={"bookId": book["id"], "rating": 4})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_review_conflicts(client, register, create_book):
    _, headers = await register()
    book = await create_book(headers)

    first = await client.post("/api/reviews", headers=headers, json={"bookId": book["id"], "rating": 5})
    assert first.status_code == 201
    second = await client.post("/api/reviews", headers=headers, json={"bookId": book["id"], "rating": 1})
    assert second.status_code == 409
    assert second.json()["detail"] == "You have already reviewed this book"


@pytest.mark.asyncio
async def test_different_users_can_review_same_book(client, register, create_book, create_review):
    _, alice = await register(email="alice@example.com", name="Alice")
    _, bob = await register(email="bob@example.com", name="Bob")
    book = await create_book(alice)
    await create_review(alice, book["id"], 5)
    await create_review(bob, book["id"], 3)


@pytest.mark.asyncio
async def test_review_for_missing_book(client, register):
    _, headers = await register()
    resp = await client.post("/api/reviews", headers=headers, json={"bookId": 9999, "rating": 4})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Book not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 0.5, 5.5, 10])
async def test_rating_out_of_range(client, register, create_book, rating):
    _, headers = await register()
    book = await create_book(headers)
    resp = await client.post("/api/reviews", headers=headers, json={"bookId": book["id"], "rating": rating})
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "rating"


@pytest.mark.asyncio
async def test_comment_too_long(client, register, create_book):
    _, headers = await register()
    book = await create_book(headers)
    resp = await client.post("/api/reviews", headers=headers, json={
        "bookId": book["id"],
        "rating": 3,
        "comment": "x" * 1001,
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_user_id_in_body_is_ignored(client, register, create_book):
    alice, alice_headers = await register(email="alice@example.com", name="Alice")
    bob, _ = await register(email="bob@example.com", name="Bob")
    book = await create_book(alice_headers)

    resp = await client.post("/api/reviews", headers=alice_headers, json={
        "bookId": book["id"],
        "userId": bob["id"],
        "rating": 2,
    })
    assert resp.status_code == 201
    assert resp.json()["data"]["userId"] == alice["id"]


# --- ownership ---

@pytest.mark.asyncio
async def test_only_owner_can_update(client, register, create_book, create_review):
    _, alice = await register(email="alice@example.com", name="Alice")
    _, bob = await register(email="bob@example.com", name="Bob")
    book = await create_book(alice)
    review = await create_review(alice, book["id"], 3, comment="Fine")

    resp = await client.put(f"/api/reviews/{review['id']}", headers=bob, json={"rating": 1})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "You can only update your own reviews"

    resp = await client.put(f"/api/reviews/{review['id']}", headers=alice, json={"rating": 4})
    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["rating"] == 4
    assert updated["comment"] == "Fine"  # preserved


@pytest.mark.asyncio
async def test_only_owner_can_delete(client, register, create_book, create_review):
    _, alice = await register(email="alice@example.com", name="Alice")
    _, bob = await register(email="bob@example.com", name="Bob")
    book = await create_book(alice)
    review = await create_review(alice, book["id"], 3)

    resp = await client.delete(f"/api/reviews/{review['id']}", headers=bob)
    assert resp.status_code == 403

    resp = await client.delete(f"/api/reviews/{review['id']}", headers=alice)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Review deleted successfully"

    resp = await client.get(f"/api/reviews/{review['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_missing_review(client, register):
    _, headers = await register()
    resp = await client.put("/api/reviews/12345", headers=headers, json={"rating": 3})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_review_can_be_recreated_after_delete(client, register, create_book, create_review):
    _, headers = await register()
    book = await create_book(headers)
    review = await create_review(headers, book["id"], 3)
    await client.delete(f"/api/reviews/{review['id']}", headers=headers)
    again = await create_review(headers, book["id"], 5)
    assert again["rating"] == 5


# --- listing / stats ---

@pytest.mark.asyncio
async def test_list_reviews_with_filters(client, register, create_book, create_review):
    alice, alice_headers = await register(email="alice@example.com", name="Alice")
    _, bob_headers = await register(email="bob@example.com", name="Bob")
    dune = await create_book(alice_headers)
    emma = await create_book(alice_headers, title="Emma", author="Jane Austen")
    await create_review(alice_headers, dune["id"], 5)
    await create_review(alice_headers, emma["id"], 4)
    await create_review(bob_headers, dune["id"], 2)

    resp = await client.get("/api/reviews")
    page = resp.json()
    assert page["pagination"]["total"] == 3
    assert all("book" in r and "user" in r for r in page["data"])

    resp = await client.get("/api/reviews", params={"bookId": dune["id"]})
    assert resp.json()["pagination"]["total"] == 2

    resp = await client.get("/api/reviews", params={"userId": alice["id"]})
    assert {r["book"]["title"] for r in resp.json()["data"]} == {"Dune", "Emma"}

    resp = await client.get("/api/reviews", params={"bookId": dune["id"], "userId": alice["id"]})
    assert len(resp.json()["data"]) == 1


@pytest.mark.asyncio
async def test_global_stats(client, register, create_book, create_review):
    _, alice = await register(email="alice@example.com", name="Alice")
    _, bob = await register(email="bob@example.com", name="Bob")
    dune = await create_book(alice)
    emma = await create_book(alice, title="Emma", author="Jane Austen")
    await create_review(alice, dune["id"], 5)
    await create_review(bob, dune["id"], 3)
    await create_review(alice, emma["id"], 5)

    resp = await client.get("/api/reviews/stats")
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "averageRating": 4.3,
        "totalReviews": 3,
        "maxRating": 5.0,
        "minRating": 3.0,
        "ratingDistribution": [
            {"rating": 3.0, "count": 1},
            {"rating": 5.0, "count": 2},
        ],
    }


@pytest.mark.asyncio
async def test_global_stats_empty(client):
    resp = await client.get("/api/reviews/stats")
    assert resp.json()["data"] == {
        "averageRating": 0.0,
        "totalReviews": 0,
        "maxRating": None,
        "minRating": None,
        "ratingDistribution": [],
    }


@pytest.mark.asyncio
async def test_my_reviews(client, register, create_book, create_review):
    _, alice = await register(email="alice@example.com", name="Alice")
    _, bob = await register(email="bob@example.com", name="Bob")
    dune = await create_book(alice, genre=["Science Fiction"])
    emma = await create_book(alice, title="Emma", author="Jane Austen", genre=["Romance"])
    await create_review(alice, dune["id"], 5)
    await create_review(alice, emma["id"], 4)
    await create_review(bob, dune["id"], 1)

    resp = await client.get("/api/reviews/my", headers=alice)
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"] == {"totalReviews": 2, "averageRating": 4.5}
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 2, "pages": 1}
    assert {r["book"]["title"]: r["book"]["genre"] for r in body["data"]} == {
        "Dune": ["Science Fiction"],
        "Emma": ["Romance"],
    }


@pytest.mark.asyncio
async def test_my_reviews_requires_auth(client):
    resp = await client.get("/api/reviews/my")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_review_ids_are_sequential_and_not_reused(client, register, create_book, create_review):
    _, headers = await register()
    dune = await create_book(headers, title="Dune")
    emma = await create_book(headers, title="Emma", author="Jane Austen")

    first = await create_review(headers, dune["id"], 4)
    second = await create_review(headers, emma["id"], 3)
    assert second["id"] == first["id"] + 1
    # ids must survive a JSON round trip through a double
    assert second["id"] <= 2**53 - 1

    resp = await client.delete(f"/api/reviews/{first['id']}", headers=headers)
    assert resp.status_code == 200
    again = await create_review(headers, dune["id"], 5)
    assert again["id"] not in (first["id"], second["id"])
