# tests/api/test_posts_api.py
"""
Post handlers called directly with an ApiRequest and a mocked store.
"""
import pytest

from api.articles import articles_handler
from api.posts import like_handler, post_handler, posts_handler, topic_handler
from core.dispatch import ApiRequest
from core.errors import UniqueConstraintError
from models.db_models import Post, PostLike


def make_post(**overrides):
    post = {
        "id": "post-1",
        "title": "Hello",
        "description": "First post",
        "topic": "python",
        "slug": "hello",
        "tags": ["intro"],
        "status": "Published",
        "view_count": 4,
        "date_published": "2024-01-01T00:00:00",
        "counts": {"likes": 0},
    }
    post.update(overrides)
    return post


class TestPostList:
    @pytest.mark.asyncio
    async def test_limit_offset_reach_the_store(self, mock_store):
        mock_store.find_many.return_value = [make_post()]
        mock_store.count.return_value = 31

        response = await posts_handler(ApiRequest("GET", query={"limit": "10", "offset": "20"}), mock_store)

        model, query = mock_store.find_many.await_args.args
        assert model is Post
        assert query["take"] == 10
        assert query["skip"] == 20
        assert query["where"]["status"] == "Published"
        assert query["order_by"] == {"date_published": "desc"}
        assert response.status == 200
        assert response.body["limit"] == 10
        assert response.body["offset"] == 20
        assert response.body["total"] == 31
        assert len(response.body["posts"]) == 1

    @pytest.mark.asyncio
    async def test_without_limit_reports_item_count(self, mock_store):
        mock_store.find_many.return_value = [make_post(), make_post(id="post-2", slug="two")]
        mock_store.count.return_value = 2

        response = await posts_handler(ApiRequest("GET"), mock_store)

        assert "take" not in mock_store.find_many.await_args.args[1]
        assert response.body["limit"] == 2
        assert response.body["offset"] == 0

    @pytest.mark.asyncio
    async def test_bad_limit_is_a_client_error(self, mock_store):
        response = await posts_handler(ApiRequest("GET", query={"limit": "ten"}), mock_store)

        assert response.status == 400
        mock_store.find_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, mock_store):
        response = await posts_handler(ApiRequest("POST", body={"title": "x"}), mock_store)

        assert response.status == 401
        mock_store.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_duplicate_slug(self, mock_store, auth_headers):
        mock_store.create.side_effect = UniqueConstraintError("Post", ["slug"])
        body = {
            "title": "Hello",
            "description": "d",
            "postType": "Article",
            "topic": "Python",
            "slug": "hello",
            "author": "Me",
        }

        response = await posts_handler(ApiRequest("POST", body=body, headers=auth_headers), mock_store)

        assert response.status == 400
        assert response.body == {"message": "A post with this slug already exists"}

    @pytest.mark.asyncio
    async def test_unsupported_method(self, mock_store):
        response = await posts_handler(ApiRequest("PATCH"), mock_store)
        assert response.status == 405


class TestTopicPage:
    @pytest.mark.asyncio
    async def test_filters_and_pages_in_memory(self, mock_store):
        mock_store.find_many.return_value = [
            make_post(id=str(i), slug=f"post-{i}", title=f"Post {i}", date_published=f"2024-01-{i + 1:02d}T00:00:00")
            for i in range(5)
        ]

        response = await topic_handler(
            ApiRequest("GET", query={"page": "2", "perPage": "2"}, path_params={"topic": "Python"}),
            mock_store,
        )

        assert mock_store.find_many.await_args.args[1]["where"] == {"status": "Published", "topic": "python"}
        body = response.body
        assert [post["slug"] for post in body["posts"]] == ["post-2", "post-1"]
        assert body["total"] == 5
        assert body["total_pages"] == 3

    @pytest.mark.asyncio
    async def test_zero_page_is_rejected(self, mock_store):
        response = await topic_handler(
            ApiRequest("GET", query={"page": "0"}, path_params={"topic": "python"}),
            mock_store,
        )
        assert response.status == 400


class TestSinglePost:
    @pytest.mark.asyncio
    async def test_view_counts(self, mock_store):
        mock_store.find_unique.return_value = make_post()

        response = await post_handler(
            ApiRequest("GET", path_params={"topic": "Python", "slug": "hello"}),
            mock_store,
        )

        assert response.body["view_count"] == 5
        mock_store.update.assert_awaited_once_with(Post, {"id": "post-1"}, {"view_count": {"increment": 1}})

    @pytest.mark.asyncio
    async def test_missing_post(self, mock_store):
        mock_store.find_unique.return_value = None

        response = await post_handler(
            ApiRequest("GET", path_params={"topic": "python", "slug": "nope"}),
            mock_store,
        )

        assert response.status == 404
        assert response.body == {"message": "Post not found"}

    @pytest.mark.asyncio
    async def test_delete_returns_no_content(self, mock_store, auth_headers):
        response = await post_handler(
            ApiRequest("DELETE", path_params={"topic": "python", "slug": "hello"}, headers=auth_headers),
            mock_store,
        )

        assert response.status == 204
        mock_store.delete.assert_awaited_once_with(Post, {"slug": "hello", "topic": "python"})


class TestLikes:
    @pytest.mark.asyncio
    async def test_like_once(self, mock_store):
        mock_store.find_unique.return_value = make_post()
        mock_store.find_first.return_value = None
        mock_store.count.return_value = 1

        response = await like_handler(
            ApiRequest("POST", path_params={"topic": "python", "slug": "hello"}, client_ip="10.0.0.1"),
            mock_store,
        )

        assert response.body == {"liked": True, "like_count": 1}
        model, data = mock_store.create.await_args.args
        assert model is PostLike
        assert data["user_ip"] == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_second_like_is_rejected(self, mock_store):
        mock_store.find_unique.return_value = make_post()
        mock_store.find_first.return_value = {"id": "like-1"}

        response = await like_handler(
            ApiRequest("POST", path_params={"topic": "python", "slug": "hello"}, client_ip="10.0.0.1"),
            mock_store,
        )

        assert response.status == 400
        assert response.body == {"message": "Already liked"}
        mock_store.create.assert_not_called()


class TestArticles:
    @pytest.mark.asyncio
    async def test_author_defaults_to_caller(self, mock_store, auth_headers):
        mock_store.find_unique.return_value = None
        mock_store.create.side_effect = lambda model, data: {"id": "a1", **data}

        response = await articles_handler(
            ApiRequest("POST", body={"title": "Hello World!", "description": "d", "topic": "Go"}, headers=auth_headers),
            mock_store,
        )

        assert response.status == 201
        assert response.body["slug"] == "hello-world"
        assert response.body["author"] == "admin@example.com"
        assert response.body["topic"] == "go"
        assert response.body["post_type"] == "Article"
