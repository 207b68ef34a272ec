"""
Database service layer for the FastAPI application.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from api.models import (
    AuthorCount, BookListResponse, BookResponse, BookSearchResponse,
    BookStatsResponse, PageDescriptor, YearCount
)
from books.errors import BookNotFoundError, StorageError
from books.models import BookCreate, BookUpdate

logger = structlog.get_logger(__name__)

TOP_AUTHORS_LIMIT = 5

# One $facet stage runs every branch over a single collection scan
STATS_PIPELINE: List[Dict[str, Any]] = [
    {
        "$facet": {
            "totalBooks": [{"$count": "count"}],
            "earliestAndLatestYear": [
                {"$group": {
                    "_id": None,
                    "minYear": {"$min": "$publicationYear"},
                    "maxYear": {"$max": "$publicationYear"},
                }},
                {"$project": {
                    "_id": 0,
                    "earliestPublicationYear": "$minYear",
                    "latestPublicationYear": "$maxYear",
                }},
            ],
            "booksByAuthor": [
                {"$group": {"_id": "$author", "count": {"$sum": 1}}},
                {"$sort": {"count": -1, "_id": 1}},
            ],
            "booksByYear": [
                {"$group": {"_id": "$publicationYear", "count": {"$sum": 1}}},
                {"$sort": {"_id": 1}},
            ],
            "topAuthors": [
                {"$group": {"_id": "$author", "count": {"$sum": 1}}},
                {"$sort": {"count": -1, "_id": 1}},
                {"$limit": TOP_AUTHORS_LIMIT},
            ],
        },
    },
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_book_response(book_doc: Dict[str, Any]) -> BookResponse:
    """Convert a stored document to its API representation."""
    book_doc = dict(book_doc)
    book_doc["id"] = str(book_doc.pop("_id"))
    return BookResponse(**book_doc)


def _object_id(book_id: str) -> ObjectId:
    # Malformed ids cannot match any stored book
    if not ObjectId.is_valid(book_id):
        raise BookNotFoundError(book_id)
    return ObjectId(book_id)


class BookDatabaseService:
    """Database service for book operations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create_book(self, book: BookCreate) -> BookResponse:
        """
        Insert a validated book.

        Args:
            book: Validated creation payload

        Returns:
            BookResponse for the stored record
        """
        now = _utcnow()
        book_doc = book.to_document()
        book_doc["createdAt"] = now
        book_doc["updatedAt"] = now

        try:
            result = await self.collection.insert_one(book_doc)
        except PyMongoError as e:
            logger.error("Failed to create book", title=book.title, error=str(e))
            raise StorageError(str(e)) from e

        book_doc["_id"] = result.inserted_id
        logger.info("Book created", book_id=str(result.inserted_id), title=book.title)
        return _to_book_response(book_doc)

    async def list_books(self, page: int = 1, limit: int = 10) -> BookListResponse:
        """
        Get one page of books with neighbouring page descriptors.

        Args:
            page: 1-based page number
            limit: Books per page

        Returns:
            BookListResponse with the page window and totals
        """
        start_index = (page - 1) * limit

        try:
            total_books = await self.collection.count_documents({})
            cursor = self.collection.find({}).sort("_id", 1).skip(start_index).limit(limit)
            book_docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error("Failed to list books", page=page, limit=limit, error=str(e))
            raise StorageError(str(e)) from e

        books = [_to_book_response(doc) for doc in book_docs]

        next_page = None
        if start_index + limit < total_books:
            next_page = PageDescriptor(page=page + 1, limit=limit)

        previous_page = None
        if start_index > 0:
            previous_page = PageDescriptor(page=page - 1, limit=limit)

        return BookListResponse(
            total_books=total_books,
            total_pages=math.ceil(total_books / limit),
            count=len(books),
            data=books,
            next=next_page,
            previous=previous_page,
        )

    async def search_books(self, query: str) -> BookSearchResponse:
        """
        Case-insensitive substring search over title and author.

        The query is matched literally, regex metacharacters included.
        """
        pattern = {"$regex": re.escape(query), "$options": "i"}
        filter_query = {"$or": [{"title": pattern}, {"author": pattern}]}

        try:
            book_docs = await self.collection.find(filter_query).to_list(length=None)
        except PyMongoError as e:
            logger.error("Failed to search books", query=query, error=str(e))
            raise StorageError(str(e)) from e

        books = [_to_book_response(doc) for doc in book_docs]
        return BookSearchResponse(count=len(books), data=books)

    async def get_book(self, book_id: str) -> BookResponse:
        """
        Get a single book by ID.

        Raises:
            BookNotFoundError: If no book has this id
        """
        object_id = _object_id(book_id)

        try:
            book_doc = await self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise StorageError(str(e)) from e

        if book_doc is None:
            raise BookNotFoundError(book_id)
        return _to_book_response(book_doc)

    async def update_book(self, book_id: str, update: BookUpdate) -> BookResponse:
        """
        Apply a validated partial update.

        Only the fields supplied in the update are replaced; the stored
        record is untouched when the id does not exist.

        Raises:
            BookNotFoundError: If no book has this id
        """
        object_id = _object_id(book_id)
        changes = update.to_changes()
        changes["updatedAt"] = _utcnow()

        try:
            book_doc = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise StorageError(str(e)) from e

        if book_doc is None:
            raise BookNotFoundError(book_id)

        logger.info("Book updated", book_id=book_id, fields=sorted(changes))
        return _to_book_response(book_doc)

    async def delete_book(self, book_id: str) -> None:
        """
        Delete a book by ID.

        Raises:
            BookNotFoundError: If no book has this id
        """
        object_id = _object_id(book_id)

        try:
            book_doc = await self.collection.find_one_and_delete({"_id": object_id})
        except PyMongoError as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise StorageError(str(e)) from e

        if book_doc is None:
            raise BookNotFoundError(book_id)

        logger.info("Book deleted", book_id=book_id)

    async def get_stats(self) -> BookStatsResponse:
        """
        Compute collection statistics in a single aggregation.

        Returns:
            BookStatsResponse; an empty collection yields zero totals,
            null year bounds and empty groupings
        """
        try:
            results = await self.collection.aggregate(STATS_PIPELINE).to_list(length=1)
        except PyMongoError as e:
            logger.error("Failed to compute book stats", error=str(e))
            raise StorageError(str(e)) from e

        stats = results[0] if results else {}

        total = stats.get("totalBooks") or [{"count": 0}]
        years = stats.get("earliestAndLatestYear") or [{}]

        return BookStatsResponse(
            total_books=total[0]["count"],
            earliest_publication_year=years[0].get("earliestPublicationYear"),
            latest_publication_year=years[0].get("latestPublicationYear"),
            books_by_author=[
                AuthorCount(author=row["_id"], count=row["count"])
                for row in stats.get("booksByAuthor", [])
            ],
            books_by_year=[
                YearCount(year=row["_id"], count=row["count"])
                for row in stats.get("booksByYear", [])
            ],
            top_authors=[
                AuthorCount(author=row["_id"], count=row["count"])
                for row in stats.get("topAuthors", [])
            ],
        )

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.collection.database.command("ping")
            books_count = await self.collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count,
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
