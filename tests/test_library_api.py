"""Library API test cases."""
import pytest
from httpx import AsyncClient

PREFIX = "/api/v1/library"


class TestSearchBooks:
    """Test the criteria-driven book list."""

    @pytest.mark.asyncio
    async def test_list_books(self, client: AsyncClient, books):
        """Test the default list is ordered by id and paginated."""
        response = await client.get(f"{PREFIX}/books")

        assert response.status_code == 200
        data = response.json()
        assert data["code"] == 200
        assert data["data"]["total"] == 5
        assert data["data"]["current_page"] == 1
        assert [item["id"] for item in data["data"]["items"]] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_search_with_relations(self, client: AsyncClient, books):
        response = await client.get(
            f"{PREFIX}/books",
            params={"search": "Le Guin", "searchFields": "author.name", "orderBy": "title", "with": "author"},
        )

        assert response.status_code == 200
        items = response.json()["data"]["items"]
        assert [item["slug"] for item in items] == ["earthsea", "left-hand"]
        assert items[0]["author"]["name"] == "Le Guin"
        assert "reviews" not in items[0]

    @pytest.mark.asyncio
    async def test_projection_and_page(self, client: AsyncClient, books):
        response = await client.get(
            f"{PREFIX}/books", params={"filter": "id;slug", "orderBy": "id", "sortedBy": "desc", "page": "1"}
        )

        data = response.json()["data"]
        assert data["items"][0] == {"id": 5, "slug": "1984"}
        assert data["total"] == 5
        assert data["from"] == 1

    @pytest.mark.asyncio
    async def test_unaccepted_search_fields(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books", params={"search": "x", "searchFields": "summary"})

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == 500
        assert "The following fields are not accepted" in data["message"]

    @pytest.mark.asyncio
    async def test_unknown_directives_are_skipped(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books", params={"orderBy": "publishers|name", "with": "publisher"})

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 5

    @pytest.mark.asyncio
    async def test_unknown_order_column_is_skipped(self, client: AsyncClient, books):
        """Test orderBy on a missing column falls back to the default order."""
        response = await client.get(f"{PREFIX}/books", params={"orderBy": "bogus", "sortedBy": "desc"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 5
        assert [item["id"] for item in data["items"]] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_repeated_filter_parameters(self, client: AsyncClient, books):
        response = await client.get(
            f"{PREFIX}/books", params=[("filter", "id"), ("filter", "slug"), ("orderBy", "id")]
        )

        assert response.status_code == 200
        assert response.json()["data"]["items"][0] == {"id": 1, "slug": "the-hobbit"}

    @pytest.mark.asyncio
    async def test_repeated_search_fields(self, client: AsyncClient, books):
        response = await client.get(
            f"{PREFIX}/books",
            params=[("search", "earthsea"), ("searchFields", "title"), ("searchFields", "slug"), ("with", "author")],
        )

        items = response.json()["data"]["items"]
        assert [item["slug"] for item in items] == ["earthsea"]
        assert items[0]["author"]["name"] == "Le Guin"

    @pytest.mark.asyncio
    async def test_search_by_year(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books", params={"search": "published_year:1949"})

        assert [item["slug"] for item in response.json()["data"]["items"]] == ["1984"]

    @pytest.mark.asyncio
    async def test_filter_endpoint(self, client: AsyncClient, books):
        response = await client.get(
            f"{PREFIX}/books/filter", params={"year_from": "1950", "sort_by": "published_year", "sort_dir": "desc"}
        )

        items = response.json()["data"]["items"]
        assert [item["slug"] for item in items] == ["left-hand", "earthsea", "fellowship"]


class TestBookDetail:
    """Test single book reads."""

    @pytest.mark.asyncio
    async def test_get_book_with_relations(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books/1", params={"with": "author;reviews"})

        assert response.status_code == 200
        book = response.json()["data"]
        assert book["author"]["name"] == "Tolkien"
        assert sorted(review["reviewer"] for review in book["reviews"]) == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_get_book_not_found(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books/99")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == 404
        assert data["message"] == "No query results for model [Book] 99"

    @pytest.mark.asyncio
    async def test_get_book_by_slug(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books/slug/earthsea")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == 3

    @pytest.mark.asyncio
    async def test_negative_page_size_is_rejected(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books/1/reviews", params={"per_page": -1})

        assert response.status_code == 422
        assert response.json()["code"] == 422

        response = await client.get(f"{PREFIX}/books/filter", params={"per_page": 0})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_book_reviews_paginated(self, client: AsyncClient, books):
        response = await client.get(f"{PREFIX}/books/1/reviews", params={"per_page": 1, "page": 2})

        data = response.json()["data"]
        assert data["total"] == 2
        assert [item["reviewer"] for item in data["items"]] == ["bob"]


class TestBookWrites:
    """Test book create/update/delete and bulk endpoints."""

    @pytest.mark.asyncio
    async def test_create_book(self, client: AsyncClient, authors):
        payload = {"title": "The Lathe of Heaven", "slug": "lathe", "published_year": 1971, "author_id": 2}
        response = await client.post(f"{PREFIX}/books", json=payload)

        assert response.status_code == 200
        book = response.json()["data"]
        assert book["id"] is not None
        assert book["slug"] == "lathe"

    @pytest.mark.asyncio
    async def test_create_book_unknown_author(self, client: AsyncClient, authors):
        response = await client.post(f"{PREFIX}/books", json={"title": "X", "slug": "x", "author_id": 42})

        assert response.status_code == 400
        assert response.json()["code"] == 400

    @pytest.mark.asyncio
    async def test_create_book_invalid_payload(self, client: AsyncClient, authors):
        response = await client.post(f"{PREFIX}/books", json={"slug": "no-title"})

        assert response.status_code == 422
        assert response.json()["code"] == 422

    @pytest.mark.asyncio
    async def test_create_duplicate_slug(self, client: AsyncClient, books):
        response = await client.post(f"{PREFIX}/books", json={"title": "Again", "slug": "the-hobbit"})

        assert response.status_code == 500
        assert response.json()["message"] == "Unable to create."

    @pytest.mark.asyncio
    async def test_update_book(self, client: AsyncClient, books):
        response = await client.put(f"{PREFIX}/books/5", json={"summary": "Big Brother"})

        assert response.status_code == 200
        assert response.json()["data"]["summary"] == "Big Brother"
        assert response.json()["data"]["title"] == "Nineteen Eighty-Four"

    @pytest.mark.asyncio
    async def test_delete_book(self, client: AsyncClient, books):
        response = await client.delete(f"{PREFIX}/books/5")
        assert response.status_code == 200

        response = await client.get(f"{PREFIX}/books/5")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_bulk_create(self, client: AsyncClient, authors):
        payload = [
            {"title": "Animal Farm", "slug": "animal-farm", "author_id": 3},
            {"title": "Burmese Days", "slug": "burmese-days", "author_id": 3},
        ]
        response = await client.post(f"{PREFIX}/books/bulk", json=payload)

        assert response.status_code == 200
        assert response.json()["data"]["created"] == 2

        response = await client.get(f"{PREFIX}/books", params={"search": "Orwell", "searchFields": "author.name"})
        assert response.json()["data"]["total"] == 2

    @pytest.mark.asyncio
    async def test_bulk_update(self, client: AsyncClient, books):
        response = await client.patch(f"{PREFIX}/books/bulk", json={"ids": [3, 4], "data": {"published_year": 1970}})

        assert response.status_code == 200
        assert response.json()["data"]["updated"] == 2

        response = await client.get(f"{PREFIX}/books", params={"filter": "id;published_year", "search": "Le Guin", "searchFields": "author.name"})
        assert [item["published_year"] for item in response.json()["data"]["items"]] == [1970, 1970]

    @pytest.mark.asyncio
    async def test_bulk_update_nothing(self, client: AsyncClient, books):
        response = await client.patch(f"{PREFIX}/books/bulk", json={"ids": [3], "data": {}})

        assert response.json()["code"] == 400

    @pytest.mark.asyncio
    async def test_bulk_delete_missing_rows(self, client: AsyncClient, books):
        response = await client.post(f"{PREFIX}/books/bulk-delete", json={"ids": [98, 99]})

        assert response.status_code == 500
        assert response.json()["message"] == "Unable to bulk delete."


class TestAuthors:
    """Test author endpoints."""

    @pytest.mark.asyncio
    async def test_search_authors(self, client: AsyncClient, authors):
        response = await client.get(f"{PREFIX}/authors", params={"search": "country:UK"})

        items = response.json()["data"]["items"]
        assert [item["name"] for item in items] == ["Orwell", "Tolkien"]

    @pytest.mark.asyncio
    async def test_author_options(self, client: AsyncClient, authors):
        response = await client.get(f"{PREFIX}/authors/options")

        assert response.json()["data"] == {"1": "Tolkien", "2": "Le Guin", "3": "Orwell"}
