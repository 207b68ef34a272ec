"""
Unit tests for the book database service.
Tests query construction, pagination and error mapping against a mocked collection.
"""

from datetime import datetime

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError

from api.database import STATS_PIPELINE
from books.errors import BookNotFoundError, StorageError
from books.models import BookCreate, BookUpdate

BOOK_ID = "650000000000000000000001"


def make_docs(count):
    return [
        {
            "_id": ObjectId(),
            "title": f"Book {i}",
            "author": "Frank Herbert",
            "publicationYear": 1965,
        }
        for i in range(count)
    ]


class TestCreateBook:
    """Test cases for creating books."""

    @pytest.mark.asyncio
    async def test_create_book_stamps_timestamps(self, book_service, mock_collection):
        inserted_id = ObjectId(BOOK_ID)
        mock_collection.insert_one.return_value.inserted_id = inserted_id

        book = await book_service.create_book(
            BookCreate(title="Dune", author="Frank Herbert", publicationYear=1965)
        )

        stored = mock_collection.insert_one.call_args.args[0]
        assert stored["title"] == "Dune"
        assert stored["publicationYear"] == 1965
        assert isinstance(stored["createdAt"], datetime)
        assert stored["createdAt"] == stored["updatedAt"]

        assert book.id == BOOK_ID
        assert book.author == "Frank Herbert"
        assert book.created_at is not None

    @pytest.mark.asyncio
    async def test_create_book_storage_failure(self, book_service, mock_collection):
        mock_collection.insert_one.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StorageError) as exc_info:
            await book_service.create_book(
                BookCreate(title="Dune", author="Frank Herbert", publicationYear=1965)
            )

        assert "no servers" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_created_book_reads_back_unchanged(self, book_service, mock_collection):
        mock_collection.insert_one.return_value.inserted_id = ObjectId(BOOK_ID)

        created = await book_service.create_book(
            BookCreate(title="Dune", author="Frank Herbert", publicationYear=1965)
        )
        stored = mock_collection.insert_one.call_args.args[0]
        mock_collection.find_one.return_value = stored

        fetched = await book_service.get_book(created.id)

        mock_collection.find_one.assert_awaited_once_with({"_id": ObjectId(BOOK_ID)})
        assert fetched == created
        assert fetched.title == "Dune"
        assert fetched.author == "Frank Herbert"
        assert fetched.publication_year == 1965
        assert fetched.created_at is not None
        assert fetched.updated_at == fetched.created_at


class TestListBooks:
    """Test cases for paginated listing."""

    @pytest.mark.asyncio
    async def test_first_page_of_fifteen(self, book_service, mock_collection, make_cursor):
        mock_collection.count_documents.return_value = 15
        cursor = make_cursor(make_docs(10))
        mock_collection.find.return_value = cursor

        result = await book_service.list_books(page=1, limit=10)

        cursor.skip.assert_called_once_with(0)
        cursor.limit.assert_called_once_with(10)
        assert result.total_books == 15
        assert result.total_pages == 2
        assert result.count == 10
        assert result.next.page == 2
        assert result.next.limit == 10
        assert result.previous is None

    @pytest.mark.asyncio
    async def test_second_page_of_fifteen(self, book_service, mock_collection, make_cursor):
        mock_collection.count_documents.return_value = 15
        cursor = make_cursor(make_docs(5))
        mock_collection.find.return_value = cursor

        result = await book_service.list_books(page=2, limit=10)

        cursor.skip.assert_called_once_with(10)
        assert result.count == 5
        assert result.next is None
        assert result.previous.page == 1
        assert result.previous.limit == 10

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_next_page(self, book_service, mock_collection, make_cursor):
        mock_collection.count_documents.return_value = 20
        mock_collection.find.return_value = make_cursor(make_docs(10))

        result = await book_service.list_books(page=2, limit=10)

        assert result.total_pages == 2
        assert result.next is None

    @pytest.mark.asyncio
    async def test_empty_collection(self, book_service, mock_collection, make_cursor):
        mock_collection.find.return_value = make_cursor([])

        result = await book_service.list_books()

        assert result.total_books == 0
        assert result.total_pages == 0
        assert result.count == 0
        assert result.next is None
        assert result.previous is None


class TestSearchBooks:
    """Test cases for title/author search."""

    @pytest.mark.asyncio
    async def test_search_matches_title_or_author(self, book_service, mock_collection, make_cursor):
        mock_collection.find.return_value = make_cursor(make_docs(2))

        result = await book_service.search_books("dUnE")

        filter_query = mock_collection.find.call_args.args[0]
        pattern = {"$regex": "dUnE", "$options": "i"}
        assert filter_query == {"$or": [{"title": pattern}, {"author": pattern}]}
        assert result.count == 2
        assert len(result.data) == 2

    @pytest.mark.asyncio
    async def test_search_escapes_regex_characters(self, book_service, mock_collection, make_cursor):
        mock_collection.find.return_value = make_cursor([])

        await book_service.search_books("c++")

        filter_query = mock_collection.find.call_args.args[0]
        assert filter_query["$or"][0]["title"]["$regex"] == r"c\+\+"


class TestGetBook:
    """Test cases for point lookups."""

    @pytest.mark.asyncio
    async def test_get_existing_book(self, book_service, mock_collection, sample_book_doc):
        mock_collection.find_one.return_value = sample_book_doc

        book = await book_service.get_book(BOOK_ID)

        mock_collection.find_one.assert_awaited_once_with({"_id": ObjectId(BOOK_ID)})
        assert book.id == BOOK_ID
        assert book.title == "Dune"
        assert book.publication_year == 1965

    @pytest.mark.asyncio
    async def test_get_missing_book(self, book_service):
        with pytest.raises(BookNotFoundError):
            await book_service.get_book(BOOK_ID)

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, book_service, mock_collection):
        with pytest.raises(BookNotFoundError):
            await book_service.get_book("not-an-object-id")

        mock_collection.find_one.assert_not_called()


class TestUpdateBook:
    """Test cases for partial updates."""

    @pytest.mark.asyncio
    async def test_update_sets_only_supplied_fields(self, book_service, mock_collection, sample_book_doc):
        sample_book_doc["title"] = "Dune Messiah"
        mock_collection.find_one_and_update.return_value = sample_book_doc

        book = await book_service.update_book(BOOK_ID, BookUpdate(title="Dune Messiah"))

        call = mock_collection.find_one_and_update.call_args
        assert call.args[0] == {"_id": ObjectId(BOOK_ID)}
        changes = call.args[1]["$set"]
        assert set(changes) == {"title", "updatedAt"}
        assert changes["title"] == "Dune Messiah"
        assert call.kwargs["return_document"] == ReturnDocument.AFTER

        assert book.title == "Dune Messiah"
        assert book.author == "Frank Herbert"
        assert book.publication_year == 1965

    @pytest.mark.asyncio
    async def test_update_missing_book(self, book_service):
        with pytest.raises(BookNotFoundError):
            await book_service.update_book(BOOK_ID, BookUpdate(title="Dune"))


class TestDeleteBook:
    """Test cases for deletion."""

    @pytest.mark.asyncio
    async def test_delete_then_delete_again(self, book_service, mock_collection, sample_book_doc):
        mock_collection.find_one_and_delete.side_effect = [sample_book_doc, None]

        await book_service.delete_book(BOOK_ID)
        with pytest.raises(BookNotFoundError):
            await book_service.delete_book(BOOK_ID)

    @pytest.mark.asyncio
    async def test_delete_storage_failure(self, book_service, mock_collection):
        mock_collection.find_one_and_delete.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(StorageError):
            await book_service.delete_book(BOOK_ID)


class TestStats:
    """Test cases for collection statistics."""

    @pytest.mark.asyncio
    async def test_stats_runs_single_facet_aggregation(self, book_service, mock_collection, make_cursor):
        mock_collection.aggregate.return_value = make_cursor([{
            "totalBooks": [{"count": 3}],
            "earliestAndLatestYear": [{"earliestPublicationYear": 1951, "latestPublicationYear": 1969}],
            "booksByAuthor": [{"_id": "Frank Herbert", "count": 2}, {"_id": "Isaac Asimov", "count": 1}],
            "booksByYear": [{"_id": 1951, "count": 1}, {"_id": 1965, "count": 1}, {"_id": 1969, "count": 1}],
            "topAuthors": [{"_id": "Frank Herbert", "count": 2}, {"_id": "Isaac Asimov", "count": 1}],
        }])

        stats = await book_service.get_stats()

        mock_collection.aggregate.assert_called_once_with(STATS_PIPELINE)
        assert stats.total_books == 3
        assert stats.earliest_publication_year == 1951
        assert stats.latest_publication_year == 1969
        assert [row.author for row in stats.books_by_author] == ["Frank Herbert", "Isaac Asimov"]
        assert [row.year for row in stats.books_by_year] == [1951, 1965, 1969]
        assert stats.top_authors[0].count == 2

    @pytest.mark.asyncio
    async def test_stats_on_empty_collection(self, book_service, mock_collection, make_cursor):
        mock_collection.aggregate.return_value = make_cursor([{
            "totalBooks": [],
            "earliestAndLatestYear": [],
            "booksByAuthor": [],
            "booksByYear": [],
            "topAuthors": [],
        }])

        stats = await book_service.get_stats()

        assert stats.total_books == 0
        assert stats.earliest_publication_year is None
        assert stats.latest_publication_year is None
        assert stats.books_by_author == []
        assert stats.top_authors == []

    def test_top_authors_branch_is_limited_to_five(self):
        facet = STATS_PIPELINE[0]["$facet"]

        assert facet["topAuthors"][-1] == {"$limit": 5}
        assert facet["booksByYear"][-1] == {"$sort": {"_id": 1}}


class TestHealthCheck:
    """Test cases for the database health check."""

    @pytest.mark.asyncio
    async def test_healthy(self, book_service, mock_collection):
        mock_collection.count_documents.return_value = 7

        health = await book_service.health_check()

        assert health["status"] == "healthy"
        assert health["books_count"] == 7

    @pytest.mark.asyncio
    async def test_unhealthy(self, book_service, mock_collection):
        mock_collection.database.command.side_effect = ServerSelectionTimeoutError("down")

        health = await book_service.health_check()

        assert health["status"] == "unhealthy"
