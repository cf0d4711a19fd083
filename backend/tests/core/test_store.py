# tests/core/test_store.py
"""
ContentStore against a real SQLite database file.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from core.errors import InvalidQueryError, RecordNotFoundError, UniqueConstraintError
from core.query import build_post_where
from models.db_models import Playlist, PlaylistPost, Post, PostLike, Project, ProjectTeamMember, Welcome


def post_data(slug, **overrides):
    data = {
        "title": f"Post {slug}",
        "description": "A post",
        "post_type": "Article",
        "topic": "python",
        "slug": slug,
        "author": "Jordan",
        "status": "Published",
        "tags": [],
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_and_find_unique(store):
    created = await store.create(Post, post_data("hello", tags=["intro"]))

    found = await store.find_unique(Post, {"slug": "hello"})

    assert found["id"] == created["id"]
    assert found["tags"] == ["intro"]
    assert await store.find_unique(Post, {"slug": "missing"}) is None


@pytest.mark.asyncio
async def test_find_many_where_order_and_paging(store):
    base = datetime(2024, 1, 1)
    for index in range(5):
        await store.create(Post, post_data(f"p{index}", date_published=base + timedelta(days=index)))
    await store.create(Post, post_data("draft", status="Draft"))

    rows = await store.find_many(Post, {
        "where": {"status": "Published"},
        "order_by": {"date_published": "desc"},
        "take": 2,
        "skip": 1,
    })

    assert [row["slug"] for row in rows] == ["p3", "p2"]
    assert await store.count(Post, {"status": "Published"}) == 5
    assert await store.count(Post) == 6


@pytest.mark.asyncio
async def test_insensitive_search_and_tag_membership(store):
    await store.create(Post, post_data("a", title="Learning FastAPI", tags=["python", "web"]))
    await store.create(Post, post_data("b", title="Rust notes", tags=["rust"]))

    by_title = await store.find_many(Post, {"where": {"OR": [
        {"title": {"contains": "fastapi", "mode": "insensitive"}},
        {"description": {"contains": "fastapi", "mode": "insensitive"}},
    ]}})
    by_tag = await store.find_many(Post, {"where": {"tags": {"has_some": ["rust", "go"]}}})

    assert [row["slug"] for row in by_title] == ["a"]
    assert [row["slug"] for row in by_tag] == ["b"]


@pytest.mark.asyncio
async def test_search_treats_like_wildcards_literally(store):
    await store.create(Post, post_data("a", title="Learning FastAPI"))
    await store.create(Post, post_data("b", title="100% coverage"))

    async def search(text):
        rows = await store.find_many(Post, {"where": build_post_where(search=text), "order_by": {"slug": "asc"}})
        return [row["slug"] for row in rows]

    assert await search("%") == ["b"]
    assert await search("_") == []
    assert await search("0% COV") == ["b"]
    assert [row["slug"] for row in await store.find_many(Post, {"where": {"title": {"starts_with": "1_0"}}})] == []


@pytest.mark.asyncio
async def test_counts_include(store):
    post = await store.create(Post, post_data("liked"))
    await store.create(PostLike, {"post_id": post["id"], "user_ip": "1.1.1.1"})
    await store.create(PostLike, {"post_id": post["id"], "user_ip": "2.2.2.2"})

    found = await store.find_unique(Post, {"id": post["id"]}, {"counts": ["likes"]})

    assert found["counts"] == {"likes": 2}


@pytest.mark.asyncio
async def test_nested_include_keeps_playlist_order(store):
    first = await store.create(Post, post_data("first"))
    second = await store.create(Post, post_data("second"))
    playlist = await store.create(Playlist, {"title": "Series", "slug": "series"})
    await store.create_many(PlaylistPost, [
        {"playlist_id": playlist["id"], "post_id": second["id"], "order": 0},
        {"playlist_id": playlist["id"], "post_id": first["id"], "order": 1},
    ])

    found = await store.find_unique(Playlist, {"id": playlist["id"]}, {"playlist_posts": {"include": {"post": True}}})

    assert [entry["post"]["slug"] for entry in found["playlist_posts"]] == ["second", "first"]


@pytest.mark.asyncio
async def test_unique_violation_is_signalled(store):
    await store.create(Post, post_data("dup"))
    with pytest.raises(UniqueConstraintError) as exc_info:
        await store.create(Post, post_data("dup"))
    assert exc_info.value.fields == ["slug"]


@pytest.mark.asyncio
async def test_update_increment_and_missing_record(store):
    post = await store.create(Post, post_data("views"))

    updated = await store.update(Post, {"id": post["id"]}, {"view_count": {"increment": 1}})
    assert updated["view_count"] == 1

    with pytest.raises(RecordNotFoundError):
        await store.update(Post, {"id": "nope"}, {"title": "x"})


@pytest.mark.asyncio
async def test_update_many_and_delete_many(store):
    ids = [(await store.create(Project, {"title": f"P{i}", "slug": f"p{i}"}))["id"] for i in range(3)]

    assert await store.update_many(Project, {"id": {"in": ids[:2]}}, {"featured": True}) == 2
    assert await store.count(Project, {"featured": True}) == 2
    assert await store.delete_many(Project, {"id": {"not_in": ids[:1]}}) == 2
    assert await store.count(Project) == 1


@pytest.mark.asyncio
async def test_delete_cascades_to_children(store):
    project = await store.create(Project, {"title": "P", "slug": "p"})
    await store.create(ProjectTeamMember, {"name": "Ann", "project_id": project["id"]})

    deleted = await store.delete(Project, {"id": project["id"]})

    assert deleted["slug"] == "p"
    assert await store.count(ProjectTeamMember) == 0
    with pytest.raises(RecordNotFoundError):
        await store.delete(Project, {"id": project["id"]})


@pytest.mark.asyncio
async def test_replace_singleton_leaves_exactly_one_row(store):
    await store.create(Welcome, {"name": "Old", "brief_bio": "old"})
    await store.create(Welcome, {"name": "Older", "brief_bio": "older"})

    replaced = await store.replace_singleton(Welcome, {"name": "New", "brief_bio": "new"})

    rows = await store.find_many(Welcome)
    assert [row["id"] for row in rows] == [replaced["id"]]
    assert rows[0]["name"] == "New"


@pytest.mark.asyncio
async def test_unknown_fields_are_rejected(store):
    with pytest.raises(InvalidQueryError):
        await store.find_many(Post, {"where": {"nope": 1}})
    with pytest.raises(InvalidQueryError):
        await store.find_many(Post, {"order_by": {"title": "sideways"}})
    with pytest.raises(InvalidQueryError):
        await store.create(Post, {**post_data("x"), "bogus": True})


@pytest.mark.asyncio
async def test_replace_many_is_all_or_nothing(store):
    project = await store.create(Project, {"title": "P", "slug": "p"})
    await store.create(ProjectTeamMember, {"name": "Ann", "project_id": project["id"]})
    team = {"project_id": project["id"]}

    assert await store.replace_many(ProjectTeamMember, team, [
        {"name": "Bo", "project_id": project["id"]},
        {"name": "Cy", "project_id": project["id"]},
    ]) == 2
    assert sorted(row["name"] for row in await store.find_many(ProjectTeamMember, {"where": team})) == ["Bo", "Cy"]

    # name is NOT NULL, so the insert fails and the delete is rolled back
    with pytest.raises(IntegrityError):
        await store.replace_many(ProjectTeamMember, team, [{"project_id": project["id"]}])
    assert sorted(row["name"] for row in await store.find_many(ProjectTeamMember, {"where": team})) == ["Bo", "Cy"]
