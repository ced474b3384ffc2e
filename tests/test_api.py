from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from board_app.api.deps import get_post_service


async def create_post(client, title="T", content="C", author="A"):
    response = await client.post("/posts", json={"title": title, "content": content, "author": author})
    assert response.status_code == 201
    return response.json()


async def test_board_scenario(client):
    post = await create_post(client)
    post_id = post["id"]
    assert post["createdAt"] == post["updatedAt"]

    response = await client.post(f"/posts/{post_id}/comments", json={"content": "hi", "author": "B"})
    assert response.status_code == 201
    assert response.json()["postId"] == post_id

    detail = (await client.get(f"/posts/{post_id}")).json()
    assert [c["content"] for c in detail["comments"]] == ["hi"]
    assert detail["commentCount"] == 1

    response = await client.post(f"/posts/{post_id}/likes", params={"userId": 42})
    assert response.status_code == 201
    assert response.json()["userId"] == 42

    count = await client.get(f"/posts/{post_id}/likes/count")
    assert count.json() == {"postId": post_id, "count": 1}

    response = await client.post(f"/posts/{post_id}/likes", params={"userId": 42})
    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"

    count = await client.get(f"/posts/{post_id}/likes/count")
    assert count.json()["count"] == 1


async def test_sync_and_async_endpoints_return_same_payload(client):
    post_id = (await create_post(client))["id"]
    await client.post(f"/posts/{post_id}/comments", json={"content": "hi", "author": "B"})
    await client.post(f"/posts/{post_id}/likes", params={"userId": 1})

    sync = await client.get(f"/posts/{post_id}/sync")
    concurrent = await client.get(f"/posts/{post_id}/async")

    assert sync.status_code == concurrent.status_code == 200
    assert sync.json() == concurrent.json()
    assert sync.json()["likeCount"] == 1


@pytest.mark.parametrize("path", ["/posts/999", "/posts/999/sync", "/posts/999/async"])
async def test_missing_post_detail_is_404(client, path):
    response = await client.get(path)

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == 404
    assert body["error"] == "Not Found"
    assert "999" in body["message"]
    assert body["errors"] == {}


async def test_update_and_delete_post(client):
    post_id = (await create_post(client))["id"]

    response = await client.put(f"/posts/{post_id}", json={"title": "T2", "content": "C2"})
    assert response.status_code == 200
    assert response.json()["title"] == "T2"

    response = await client.delete(f"/posts/{post_id}")
    assert response.status_code == 204
    assert response.content == b""

    assert (await client.get(f"/posts/{post_id}")).status_code == 404
    assert (await client.delete(f"/posts/{post_id}")).status_code == 404


async def test_validation_errors_are_field_indexed(client):
    response = await client.post("/posts", json={"title": " ", "content": "C", "author": "x" * 51})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Failed"
    assert set(body["errors"]) == {"title", "author"}


async def test_missing_field_is_reported(client):
    response = await client.post("/posts", json={"title": "T", "content": "C"})

    assert response.status_code == 400
    assert "author" in response.json()["errors"]


async def test_title_length_limit(client):
    response = await client.post("/posts", json={"title": "t" * 201, "content": "C", "author": "A"})

    assert response.status_code == 400
    assert "title" in response.json()["errors"]


async def test_list_posts_with_paging_and_sort(client):
    for title in ["b", "c", "a"]:
        await create_post(client, title=title)

    response = await client.get(
        "/posts", params={"page": 0, "size": 2, "sortBy": "title", "direction": "ASC"}
    )

    body = response.json()
    assert [p["title"] for p in body["posts"]] == ["a", "b"]
    assert body["totalElements"] == 3
    assert body["totalPages"] == 2
    assert body["currentPage"] == 0
    assert body["size"] == 2


async def test_list_posts_rejects_unknown_sort_property(client):
    response = await client.get("/posts", params={"sortBy": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


async def test_list_posts_rejects_bad_page_size(client):
    response = await client.get("/posts", params={"size": 0})

    assert response.status_code == 400
    assert "size" in response.json()["errors"]


async def test_keyword_search(client):
    await create_post(client, title="FastAPI tips", content="x")
    await create_post(client, title="other", content="about fastapi")
    await create_post(client, title="unrelated", content="y")

    response = await client.get("/posts/search", params={"keyword": "fastapi"})

    assert response.status_code == 200
    assert sorted(p["title"] for p in response.json()["posts"]) == ["FastAPI tips", "other"]


async def test_keyword_search_rejects_blank_keyword(client):
    await create_post(client)

    response = await client.get("/posts/search", params={"keyword": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


async def test_advanced_search_by_comment_count(client, make_post):
    await make_post(title="none", comments=0)
    await make_post(title="two", comments=2)
    await make_post(title="five", comments=5)

    response = await client.get(
        "/posts/search/advanced", params={"minCommentCount": 1, "maxCommentCount": 4}
    )

    assert [p["title"] for p in response.json()["posts"]] == ["two"]


async def test_advanced_search_date_bounds_honour_utc_offset(client, make_post):
    await make_post(title="noon", created_at=datetime(2024, 1, 1, 12, 0))
    seoul = timezone(timedelta(hours=9))
    one_hour_before = datetime(2024, 1, 1, 11, 0).astimezone().astimezone(seoul)
    one_hour_after = datetime(2024, 1, 1, 13, 0).astimezone().astimezone(seoul)

    included = await client.get(
        "/posts/search/advanced", params={"createdAfter": one_hour_before.isoformat()}
    )
    excluded = await client.get(
        "/posts/search/advanced", params={"createdAfter": one_hour_after.isoformat()}
    )

    assert included.status_code == 200
    assert [p["title"] for p in included.json()["posts"]] == ["noon"]
    assert excluded.json()["totalElements"] == 0


async def test_advanced_search_by_authors(client):
    await create_post(client, title="1", author="kim")
    await create_post(client, title="2", author="lee")
    await create_post(client, title="3", author="park")

    response = await client.get(
        "/posts/search/advanced", params=[("authors", "kim"), ("authors", "park")]
    )

    assert sorted(p["title"] for p in response.json()["posts"]) == ["1", "3"]


async def test_author_stats_and_popular(client, make_post):
    await make_post(title="quiet", author="kim")
    await make_post(title="busy", author="kim", comments=3)
    await make_post(title="medium", author="lee", comments=1)

    stats = await client.get("/posts/stats/authors")
    popular = await client.get("/posts/popular", params={"limit": 2})
    recent = await client.get("/posts/recent", params={"days": 1})

    assert stats.json() == {"kim": 2, "lee": 1}
    assert [p["title"] for p in popular.json()] == ["busy", "medium"]
    assert recent.json()["totalElements"] == 3


async def test_comment_crud(client):
    post_id = (await create_post(client))["id"]
    comment = (
        await client.post(f"/posts/{post_id}/comments", json={"content": "hi", "author": "B"})
    ).json()

    response = await client.put(
        f"/posts/{post_id}/comments/{comment['id']}", json={"content": "edited"}
    )
    assert response.status_code == 200
    assert response.json()["content"] == "edited"

    listed = await client.get(f"/posts/{post_id}/comments")
    assert [c["content"] for c in listed.json()] == ["edited"]

    by_author = await client.get("/comments", params={"author": "B"})
    assert [c["id"] for c in by_author.json()] == [comment["id"]]

    response = await client.delete(f"/posts/{post_id}/comments/{comment['id']}")
    assert response.status_code == 204

    detail = (await client.get(f"/posts/{post_id}")).json()
    assert detail["comments"] == []


async def test_comment_errors(client):
    post_id = (await create_post(client))["id"]
    other_id = (await create_post(client))["id"]
    comment = (
        await client.post(f"/posts/{post_id}/comments", json={"content": "hi", "author": "B"})
    ).json()

    missing_post = await client.post("/posts/999/comments", json={"content": "hi", "author": "B"})
    wrong_post = await client.put(
        f"/posts/{other_id}/comments/{comment['id']}", json={"content": "x"}
    )
    missing_comment = await client.delete(f"/posts/{post_id}/comments/999")
    blank = await client.post(f"/posts/{post_id}/comments", json={"content": "", "author": "B"})

    assert missing_post.status_code == 404
    assert wrong_post.status_code == 404
    assert missing_comment.status_code == 404
    assert blank.status_code == 400
    assert "content" in blank.json()["errors"]


async def test_like_endpoints(client):
    post_id = (await create_post(client))["id"]
    await client.post(f"/posts/{post_id}/likes", params={"userId": 1})
    await client.post(f"/posts/{post_id}/likes", params={"userId": 2})

    check = await client.get(f"/posts/{post_id}/likes/check", params={"userId": 1})
    assert check.json() == {"postId": post_id, "userId": 1, "isLiked": True}

    listing = (await client.get(f"/posts/{post_id}/likes")).json()
    assert listing["count"] == 2
    assert [like["userId"] for like in listing["likes"]] == [1, 2]

    by_user = await client.get("/users/1/likes")
    assert [like["postId"] for like in by_user.json()] == [post_id]

    response = await client.delete(f"/posts/{post_id}/likes", params={"userId": 1})
    assert response.status_code == 204

    check = await client.get(f"/posts/{post_id}/likes/check", params={"userId": 1})
    assert check.json()["isLiked"] is False

    response = await client.delete(f"/posts/{post_id}/likes", params={"userId": 1})
    assert response.status_code == 404


async def test_like_on_missing_post_is_404(client):
    response = await client.post("/posts/999/likes", params={"userId": 1})

    assert response.status_code == 404
    assert (await client.get("/posts/999/likes/count")).json()["count"] == 0


async def test_like_requires_user_id(client):
    post_id = (await create_post(client))["id"]

    response = await client.post(f"/posts/{post_id}/likes")

    assert response.status_code == 400
    assert "userId" in response.json()["errors"]


async def test_unexpected_errors_are_generic_500(app):
    def broken_service():
        raise RuntimeError("secret connection string")

    app.dependency_overrides[get_post_service] = broken_service
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/posts/1")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Internal server error"
    assert "secret" not in response.text


async def test_health_endpoints(client):
    await client.get("/health/ping")
    ping = await client.get("/health/ping")
    info = await client.get("/health/deploy-info")

    assert ping.json()["status"] == "OK"
    assert info.json()["requestCount"] == 2
    assert info.json()["version"]
