"""
Conduit Backend: Article API Tests
===================================

What:  Listing, feed, CRUD and favorites through the full application.

What we test:
    ✅ Create: slug from title, normalized tag list, author profile
    ✅ List: newest first, tag/author/favorited filters, AND semantics
    ✅ Pagination: limit/offset pages, articlesCount is the filtered total,
       unusable limit/offset values fall back instead of failing
    ✅ Feed: only followed authors; requires authentication
    ✅ Favorites: idempotent, counted, flagged per viewer
    ✅ Update/delete: author only, new slug on retitle, 204 then 404
"""

import re

import pytest


def auth(token):
    return {"Authorization": f"Token {token}"}


def slugs(response):
    return [article["slug"] for article in response.json()["articles"]]


class TestCreateArticle:

    @pytest.mark.asyncio
    async def test_create(self, test_client, register_user):
        jake = await register_user("jake")

        response = await test_client.post("/api/articles", headers=auth(jake["token"]), json={
            "article": {
                "title": "How to train your dragon",
                "description": "Ever wonder how?",
                "body": "You have to believe",
                "tagList": ["training", "dragons", " dragons ", ""],
            }
        })

        assert response.status_code == 201
        article = response.json()["article"]
        assert re.fullmatch(r"how-to-train-your-dragon-[0-9a-f]{6}", article["slug"])
        assert article["tagList"] == ["dragons", "training"]
        assert article["favorited"] is False
        assert article["favoritesCount"] == 0
        assert article["author"] == {
            "username": "jake",
            "bio": None,
            "image": jake["image"],
            "following": False,
        }
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", article["createdAt"])

    @pytest.mark.asyncio
    async def test_same_title_gets_distinct_slugs(self, register_user, create_article):
        jake = await register_user("jake")

        first = await create_article(jake["token"], title="Same title")
        second = await create_article(jake["token"], title="Same title")

        assert first["slug"] != second["slug"]

    @pytest.mark.asyncio
    async def test_colliding_slug_gets_a_new_suffix(self, monkeypatch, register_user, create_article):
        jake = await register_user("jake")
        slugs_to_hand_out = iter(["same-title-aaaaaa", "same-title-aaaaaa", "same-title-bbbbbb"])
        monkeypatch.setattr(
            "conduit.services.article_service.make_slug",
            lambda title: next(slugs_to_hand_out),
        )

        first = await create_article(jake["token"], title="Same title")
        second = await create_article(jake["token"], title="Same title")

        assert first["slug"] == "same-title-aaaaaa"
        assert second["slug"] == "same-title-bbbbbb"

    @pytest.mark.asyncio
    async def test_retitle_onto_taken_slug_gets_a_new_suffix(
        self, test_client, monkeypatch, register_user, create_article
    ):
        jake = await register_user("jake")
        slugs_to_hand_out = iter(["first-aaaaaa", "second-bbbbbb", "first-aaaaaa", "first-cccccc"])
        monkeypatch.setattr(
            "conduit.services.article_service.make_slug",
            lambda title: next(slugs_to_hand_out),
        )
        await create_article(jake["token"], title="First")
        second = await create_article(jake["token"], title="Second")

        response = await test_client.put(f"/api/articles/{second['slug']}", headers=auth(jake["token"]), json={
            "article": {"title": "First"}
        })

        assert response.status_code == 200
        assert response.json()["article"]["slug"] == "first-cccccc"

    @pytest.mark.asyncio
    async def test_blank_fields(self, test_client, register_user):
        jake = await register_user("jake")

        response = await test_client.post("/api/articles", headers=auth(jake["token"]), json={
            "article": {"title": "  ", "body": "text"}
        })

        assert response.status_code == 422
        assert response.json() == {"errors": {
            "title": ["can't be blank"],
            "description": ["can't be blank"],
        }}

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.post("/api/articles", json={
            "article": {"title": "t", "description": "d", "body": "b"}
        })
        assert response.status_code == 401


class TestGetArticle:

    @pytest.mark.asyncio
    async def test_get_by_slug(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        created = await create_article(jake["token"], tags=["dragons"])

        response = await test_client.get(f"/api/articles/{created['slug']}")

        assert response.status_code == 200
        assert response.json()["article"] == created

    @pytest.mark.asyncio
    async def test_unknown_slug(self, test_client):
        response = await test_client.get("/api/articles/no-such-article")

        assert response.status_code == 404
        assert response.json() == {"errors": {"article": ["not found"]}}


class TestListArticles:

    @pytest.mark.asyncio
    async def test_empty(self, test_client):
        response = await test_client.get("/api/articles")

        assert response.status_code == 200
        assert response.json() == {"articles": [], "articlesCount": 0}

    @pytest.mark.asyncio
    async def test_newest_first(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        first = await create_article(jake["token"], title="First")
        second = await create_article(jake["token"], title="Second")
        third = await create_article(jake["token"], title="Third")

        response = await test_client.get("/api/articles")

        assert slugs(response) == [third["slug"], second["slug"], first["slug"]]
        assert response.json()["articlesCount"] == 3

    @pytest.mark.asyncio
    async def test_filter_by_tag(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        dragons = await create_article(jake["token"], title="Dragons", tags=["dragons", "training"])
        await create_article(jake["token"], title="Cats", tags=["cats"])

        response = await test_client.get("/api/articles", params={"tag": "dragons"})

        assert slugs(response) == [dragons["slug"]]
        assert response.json()["articles"][0]["tagList"] == ["dragons", "training"]
        assert response.json()["articlesCount"] == 1

    @pytest.mark.asyncio
    async def test_repeated_tag_matches_any(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        dragons = await create_article(jake["token"], title="Dragons", tags=["dragons"])
        cats = await create_article(jake["token"], title="Cats", tags=["cats"])
        await create_article(jake["token"], title="Dogs", tags=["dogs"])

        response = await test_client.get("/api/articles?tag=dragons&tag=cats")

        assert slugs(response) == [cats["slug"], dragons["slug"]]

    @pytest.mark.asyncio
    async def test_filter_by_author(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        celeb = await register_user("celeb")
        by_celeb = await create_article(celeb["token"], title="Celebrity post")
        await create_article(jake["token"], title="Jake post")

        response = await test_client.get("/api/articles", params={"author": "celeb"})

        assert slugs(response) == [by_celeb["slug"]]
        assert response.json()["articles"][0]["author"]["username"] == "celeb"

    @pytest.mark.asyncio
    async def test_filter_by_favorited(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        fan = await register_user("fan")
        liked = await create_article(jake["token"], title="Liked")
        await create_article(jake["token"], title="Ignored")
        await test_client.post(f"/api/articles/{liked['slug']}/favorite", headers=auth(fan["token"]))

        response = await test_client.get("/api/articles", params={"favorited": "fan"})

        assert slugs(response) == [liked["slug"]]
        assert response.json()["articles"][0]["favoritesCount"] == 1

    @pytest.mark.asyncio
    async def test_filters_combine_with_and(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        celeb = await register_user("celeb")
        match = await create_article(celeb["token"], title="Match", tags=["dragons"])
        await create_article(jake["token"], title="Wrong author", tags=["dragons"])
        await create_article(celeb["token"], title="Wrong tag", tags=["cats"])

        response = await test_client.get("/api/articles", params={"tag": "dragons", "author": "celeb"})

        assert slugs(response) == [match["slug"]]
        assert response.json()["articlesCount"] == 1

    @pytest.mark.asyncio
    async def test_unknown_filter_value_yields_empty_page(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        await create_article(jake["token"], tags=["dragons"])

        response = await test_client.get("/api/articles", params={"author": "nobody"})

        assert response.json() == {"articles": [], "articlesCount": 0}


class TestPagination:

    @pytest.mark.asyncio
    async def test_limit_and_offset(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        created = [await create_article(jake["token"], title=f"Article {n}") for n in range(5)]
        newest_first = [article["slug"] for article in reversed(created)]

        first_page = await test_client.get("/api/articles", params={"limit": 2, "offset": 0})
        second_page = await test_client.get("/api/articles", params={"limit": 2, "offset": 2})
        last_page = await test_client.get("/api/articles", params={"limit": 2, "offset": 4})

        assert slugs(first_page) == newest_first[0:2]
        assert slugs(second_page) == newest_first[2:4]
        assert slugs(last_page) == newest_first[4:]
        assert first_page.json()["articlesCount"] == 5
        assert last_page.json()["articlesCount"] == 5

    @pytest.mark.asyncio
    async def test_offset_past_the_end(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        await create_article(jake["token"])

        response = await test_client.get("/api/articles", params={"offset": 50})

        assert response.json() == {"articles": [], "articlesCount": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", ["9223372036854775807", "9223372036854775808", "99999999999999999999"])
    async def test_offset_beyond_integer_range(self, test_client, register_user, create_article, offset):
        jake = await register_user("jake")
        await create_article(jake["token"])

        response = await test_client.get(f"/api/articles?offset={offset}")

        assert response.status_code == 200
        assert response.json() == {"articles": [], "articlesCount": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [
        "limit=abc&offset=xyz",
        "limit=-1&offset=-10",
        "limit=0",
        "limit=100000",
    ])
    async def test_unusable_values_fall_back(self, test_client, register_user, create_article, query):
        jake = await register_user("jake")
        await create_article(jake["token"])

        response = await test_client.get(f"/api/articles?{query}")

        assert response.status_code == 200
        assert response.json()["articlesCount"] == 1
        assert len(response.json()["articles"]) == 1

    @pytest.mark.asyncio
    async def test_configured_default_page_size(self, app, test_client, register_user, create_article):
        app.state.settings = app.state.settings.model_copy(update={"default_page_size": 2})
        jake = await register_user("jake")
        for n in range(3):
            await create_article(jake["token"], title=f"Article {n}")

        response = await test_client.get("/api/articles")

        assert len(response.json()["articles"]) == 2
        assert response.json()["articlesCount"] == 3


class TestFeed:

    @pytest.mark.asyncio
    async def test_feed_contains_only_followed_authors(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        celeb = await register_user("celeb")
        stranger = await register_user("stranger")
        followed = await create_article(celeb["token"], title="From celeb")
        await create_article(stranger["token"], title="From stranger")
        await create_article(jake["token"], title="Own article")
        await test_client.post("/api/profiles/celeb/follow", headers=auth(jake["token"]))

        response = await test_client.get("/api/articles/feed", headers=auth(jake["token"]))

        assert response.status_code == 200
        assert slugs(response) == [followed["slug"]]
        assert response.json()["articlesCount"] == 1
        assert response.json()["articles"][0]["author"]["following"] is True

    @pytest.mark.asyncio
    async def test_empty_feed(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        celeb = await register_user("celeb")
        await create_article(celeb["token"])

        response = await test_client.get("/api/articles/feed", headers=auth(jake["token"]))

        assert response.json() == {"articles": [], "articlesCount": 0}

    @pytest.mark.asyncio
    async def test_feed_requires_authentication(self, test_client):
        response = await test_client.get("/api/articles/feed")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_shows_following_for_viewer_only(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        celeb = await register_user("celeb")
        await create_article(celeb["token"])
        await test_client.post("/api/profiles/celeb/follow", headers=auth(jake["token"]))

        as_jake = await test_client.get("/api/articles", headers=auth(jake["token"]))
        anonymous = await test_client.get("/api/articles")

        assert as_jake.json()["articles"][0]["author"]["following"] is True
        assert anonymous.json()["articles"][0]["author"]["following"] is False


class TestFavorites:

    @pytest.mark.asyncio
    async def test_favorite_and_unfavorite(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        fan = await register_user("fan")
        article = await create_article(jake["token"])
        url = f"/api/articles/{article['slug']}/favorite"

        favorited = await test_client.post(url, headers=auth(fan["token"]))
        again = await test_client.post(url, headers=auth(fan["token"]))
        removed = await test_client.delete(url, headers=auth(fan["token"]))

        assert favorited.status_code == 200
        assert favorited.json()["article"]["favorited"] is True
        assert again.json()["article"]["favoritesCount"] == 1
        assert removed.json()["article"]["favorited"] is False
        assert removed.json()["article"]["favoritesCount"] == 0

    @pytest.mark.asyncio
    async def test_count_across_users_and_flag_per_viewer(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        fan = await register_user("fan")
        other = await register_user("other")
        article = await create_article(jake["token"])
        url = f"/api/articles/{article['slug']}/favorite"
        await test_client.post(url, headers=auth(fan["token"]))
        await test_client.post(url, headers=auth(other["token"]))

        as_jake = await test_client.get(f"/api/articles/{article['slug']}", headers=auth(jake["token"]))
        as_fan = await test_client.get("/api/articles", headers=auth(fan["token"]))

        assert as_jake.json()["article"]["favoritesCount"] == 2
        assert as_jake.json()["article"]["favorited"] is False
        assert as_fan.json()["articles"][0]["favorited"] is True

    @pytest.mark.asyncio
    async def test_favorite_unknown_article(self, test_client, register_user):
        fan = await register_user("fan")

        response = await test_client.post("/api/articles/missing/favorite", headers=auth(fan["token"]))
        assert response.status_code == 404


class TestUpdateArticle:

    @pytest.mark.asyncio
    async def test_update_body_keeps_slug(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        article = await create_article(jake["token"], tags=["dragons"])

        response = await test_client.put(f"/api/articles/{article['slug']}", headers=auth(jake["token"]), json={
            "article": {"body": "With two hands"}
        })

        updated = response.json()["article"]
        assert response.status_code == 200
        assert updated["slug"] == article["slug"]
        assert updated["body"] == "With two hands"
        assert updated["tagList"] == ["dragons"]

    @pytest.mark.asyncio
    async def test_new_title_new_slug(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        article = await create_article(jake["token"])

        response = await test_client.put(f"/api/articles/{article['slug']}", headers=auth(jake["token"]), json={
            "article": {"title": "Did you train your dragon?"}
        })
        new_slug = response.json()["article"]["slug"]

        assert new_slug.startswith("did-you-train-your-dragon-")
        assert (await test_client.get(f"/api/articles/{article['slug']}")).status_code == 404
        assert (await test_client.get(f"/api/articles/{new_slug}")).status_code == 200

    @pytest.mark.asyncio
    async def test_tag_list_replaces_tags(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        article = await create_article(jake["token"], tags=["dragons", "training"])

        response = await test_client.put(f"/api/articles/{article['slug']}", headers=auth(jake["token"]), json={
            "article": {"tagList": ["flying"]}
        })
        tags = await test_client.get("/api/tags")

        assert response.json()["article"]["tagList"] == ["flying"]
        assert tags.json()["tags"] == ["flying"]

    @pytest.mark.asyncio
    async def test_only_author_may_update(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        other = await register_user("other")
        article = await create_article(jake["token"])

        response = await test_client.put(f"/api/articles/{article['slug']}", headers=auth(other["token"]), json={
            "article": {"body": "hijacked"}
        })

        assert response.status_code == 403
        assert (await test_client.get(f"/api/articles/{article['slug']}")).json()["article"]["body"] == article["body"]

    @pytest.mark.asyncio
    async def test_nothing_to_change(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        article = await create_article(jake["token"])

        response = await test_client.put(f"/api/articles/{article['slug']}", headers=auth(jake["token"]), json={
            "article": {}
        })

        assert response.status_code == 422
        assert response.json() == {"errors": {"article": ["no changes supplied"]}}


class TestDeleteArticle:

    @pytest.mark.asyncio
    async def test_delete(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        fan = await register_user("fan")
        article = await create_article(jake["token"], tags=["dragons"])
        slug = article["slug"]
        await test_client.post(f"/api/articles/{slug}/favorite", headers=auth(fan["token"]))
        await test_client.post(f"/api/articles/{slug}/comments", headers=auth(fan["token"]), json={
            "comment": {"body": "Nice"}
        })

        response = await test_client.delete(f"/api/articles/{slug}", headers=auth(jake["token"]))

        assert response.status_code == 204
        assert response.content == b""
        assert (await test_client.get(f"/api/articles/{slug}")).status_code == 404
        assert (await test_client.get("/api/tags")).json()["tags"] == []
        assert (await test_client.get("/api/articles", params={"favorited": "fan"})).json()["articlesCount"] == 0

    @pytest.mark.asyncio
    async def test_only_author_may_delete(self, test_client, register_user, create_article):
        jake = await register_user("jake")
        other = await register_user("other")
        article = await create_article(jake["token"])

        response = await test_client.delete(f"/api/articles/{article['slug']}", headers=auth(other["token"]))

        assert response.status_code == 403
        assert (await test_client.get(f"/api/articles/{article['slug']}")).status_code == 200

    @pytest.mark.asyncio
    async def test_delete_unknown(self, test_client, register_user):
        jake = await register_user("jake")

        response = await test_client.delete("/api/articles/missing", headers=auth(jake["token"]))
        assert response.status_code == 404
