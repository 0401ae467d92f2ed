def create(client, **overrides):
    body = {
        "username": "ada",
        "description": "Quick and friendly",
        "ticketTitle": "VPN down",
        "ratingNumber": 5,
        "ticketId": "t1",
    }
    body.update(overrides)
    return client.post("/api/v1/reviews", json=body)


def test_create_review(client):
    response = create(client, username="  ada  ")
    assert response.status_code == 201
    review = response.json()["review"]
    assert review["username"] == "ada"
    assert review["ratingNumber"] == 5
    assert review["ticketId"] == "t1"


def test_rating_bounds(client):
    for rating in (0, 5.5):
        response = create(client, ratingNumber=rating)
        assert response.status_code == 400
        assert response.json() == {"message": "Rating number must be between 1 and 5"}
    assert create(client, ratingNumber=1).status_code == 201


def test_missing_fields(client):
    response = create(client, description="   ")
    assert response.status_code == 400
    assert response.json()["message"].endswith("are required")


def test_list_and_search_reviews(client):
    create(client)
    create(client, username="grace", ratingNumber=3, ticketTitle="Printer jam", ticketId="t2")
    create(client, username="alan", ratingNumber=3.5, ticketId="t1")

    everything = client.get("/api/v1/reviews").json()
    assert everything["pagination"]["totalReviews"] == 3
    assert everything["reviews"][0]["username"] == "alan"

    assert [r["username"] for r in client.get("/api/v1/reviews", params={"ratingNumber": "3"}).json()["reviews"]] == [
        "grace"
    ]
    assert client.get("/api/v1/reviews", params={"ticketTitle": "printer"}).json()["pagination"]["totalReviews"] == 1
    # invalid rating filters are ignored
    assert client.get("/api/v1/reviews", params={"ratingNumber": "lots"}).json()["pagination"]["totalReviews"] == 3
    assert client.get("/api/v1/reviews", params={"ratingNumber": "9"}).json()["pagination"]["totalReviews"] == 3

    for_ticket = client.get("/api/v1/reviews/c/t1").json()["reviews"]
    assert [r["username"] for r in for_ticket] == ["ada", "alan"]
    assert client.get("/api/v1/reviews/c/unknown").json() == {"reviews": []}


def test_update_and_delete_review(client):
    review_id = create(client).json()["review"]["id"]

    updated = client.put(
        f"/api/v1/reviews/{review_id}",
        json={"username": "ada", "description": "Changed my mind", "ticketTitle": "VPN down", "ratingNumber": 2},
    )
    assert updated.status_code == 200
    assert updated.json()["review"]["ratingNumber"] == 2
    assert updated.json()["review"]["ticketId"] == "t1"

    assert client.delete(f"/api/v1/reviews/{review_id}").json() == {"message": "Review deleted successfully"}
    assert client.get(f"/api/v1/reviews/{review_id}").status_code == 404
    assert client.delete(f"/api/v1/reviews/{review_id}").status_code == 404
