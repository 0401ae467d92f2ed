def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"].endswith("is running")


def test_invalid_query_parameters_are_400(client):
    response = client.get("/api/v1/tickets", params={"page": 0})
    assert response.status_code == 400
    assert "page" in response.json()["message"]


def test_unknown_route_uses_message_envelope(client):
    response = client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
