"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.database import BookDatabaseService
from api.dependencies import get_book_service
from api.main import app


BOOK_ID = "650000000000000000000001"


@pytest.fixture
def sample_book_doc():
    """A book document as MongoDB returns it."""
    timestamp = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    return {
        "_id": ObjectId(BOOK_ID),
        "title": "Dune",
        "author": "Frank Herbert",
        "publicationYear": 1965,
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }


@pytest.fixture
def make_cursor():
    """Build a Motor-like cursor that yields the given documents."""
    def _make(docs):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=docs)
        return cursor
    return _make


@pytest.fixture
def mock_collection():
    """Create a mock Motor collection for testing."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.count_documents = AsyncMock(return_value=0)
    collection.database.command = AsyncMock(return_value={"ok": 1})
    return collection


@pytest.fixture
def book_service(mock_collection):
    """Service bound to the mock collection."""
    return BookDatabaseService(mock_collection)


@pytest.fixture
def mock_book_service():
    """Mock book service injected into the application."""
    service = AsyncMock(spec=BookDatabaseService)
    app.dependency_overrides[get_book_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_book_service, None)


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)
