import pytest

from helpdesk_api.app.services.blog_service import normalize_tags


def create(client, **overrides):
    body = {
        "title": "Resetting your password",
        "excerpt": "A short guide",
        "content": "Step one...",
        "category": "Guides",
        "tags": ["account", " security ", ""],
        "authorName": "Grace",
    }
    body.update(overrides)
    return client.post("/api/v1/blogs", json=body)


@pytest.mark.parametrize(
    "tags, expected",
    [
        (["a", " b ", ""], "a,b"),
        ("  a,b ", "a,b"),
        (None, ""),
        ([1, 2], "1,2"),
    ],
)
def test_normalize_tags(tags, expected):
    assert normalize_tags(tags) == expected


def test_create_blog(client):
    response = create(client)
    assert response.status_code == 201
    blog = response.json()["blog"]
    assert blog["category"] == "guides"
    assert blog["tags"] == "account,security"
    assert blog["imageUrl"] == ""


@pytest.mark.parametrize("field", ["title", "excerpt", "content", "category"])
@pytest.mark.parametrize("value", ["", "   "])
def test_create_blog_requires_fields(client, field, value):
    response = create(client, **{field: value})
    assert response.status_code == 400
    assert response.json() == {"message": "Title, excerpt, content, and category are required"}


def test_list_blogs_filters(client):
    create(client)
    create(client, title="Billing FAQ", category="billing", tags="invoices")
    create(client, title="VPN setup", category="guides", tags=["network"])

    by_category = client.get("/api/v1/blogs", params={"category": "guide"}).json()
    assert by_category["pagination"]["totalBlogs"] == 2

    by_title = client.get("/api/v1/blogs", params={"title": "billing"}).json()
    assert [b["title"] for b in by_title["blogs"]] == ["Billing FAQ"]

    by_tags = client.get("/api/v1/blogs", params={"tags": "network, invoices"}).json()
    assert {b["title"] for b in by_tags["blogs"]} == {"Billing FAQ", "VPN setup"}

    paged = client.get("/api/v1/blogs", params={"page": 2, "limit": 2}).json()
    assert len(paged["blogs"]) == 1
    assert paged["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalBlogs": 3,
        "hasNext": False,
        "hasPrev": True,
    }


def test_update_and_delete_blog(client):
    blog_id = create(client).json()["blog"]["id"]

    updated = client.put(
        f"/api/v1/blogs/{blog_id}",
        json={"title": "New title", "excerpt": "e", "content": "c", "category": "News"},
    )
    assert updated.status_code == 200
    blog = updated.json()["blog"]
    assert blog["title"] == "New title"
    assert blog["category"] == "news"
    # omitted optional fields keep their values
    assert blog["tags"] == "account,security"
    assert blog["authorName"] == "Grace"

    assert client.delete(f"/api/v1/blogs/{blog_id}").json() == {"message": "Blog deleted successfully"}
    missing = client.get(f"/api/v1/blogs/{blog_id}")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Blog not found"}
