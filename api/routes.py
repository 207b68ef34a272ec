"""
Book endpoints.

Routes under /books:
- POST   /          : create a book
- GET    /          : paginated listing
- GET    /search    : title/author search
- GET    /stats     : collection statistics
- GET    /{book_id} : get one book
- PUT    /{book_id} : partial update
- DELETE /{book_id} : delete a book
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from api.database import BookDatabaseService
from api.dependencies import get_book_service
from api.models import (
    BookListResponse, BookQueryParams, BookResponse, BookSearchResponse,
    BookStatsResponse, BookUpdateResponse, MessageResponse
)
from books.errors import BookValidationError
from books.models import BookCreate, BookUpdate

router = APIRouter(prefix="/books", tags=["Books"])


@router.post("/", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    book: BookCreate,
    service: BookDatabaseService = Depends(get_book_service)
):
    """
    Create a new book.

    - **title**: Book title
    - **author**: Author name, letters and spaces only
    - **publicationYear**: Year of publication, not in the future
    """
    return await service.create_book(book)


@router.get("/", response_model=BookListResponse, response_model_exclude_none=True)
async def list_books(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    service: BookDatabaseService = Depends(get_book_service)
):
    """
    Get books page by page.

    - **page**: Page number (starts from 1, defaults to 1)
    - **limit**: Items per page (defaults to 10)
    """
    params = BookQueryParams(page=page, limit=limit)
    return await service.list_books(page=params.page, limit=params.limit)


@router.get("/search", response_model=BookSearchResponse)
async def search_books(
    q: Optional[str] = None,
    service: BookDatabaseService = Depends(get_book_service)
):
    """
    Search books by title or author.

    - **q**: Text to look for, case-insensitive
    """
    if not q:
        raise BookValidationError("Please provide a search query.")
    return await service.search_books(q)


@router.get("/stats", response_model=BookStatsResponse)
async def get_stats(service: BookDatabaseService = Depends(get_book_service)):
    """Get collection statistics."""
    return await service.get_stats()


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: str,
    service: BookDatabaseService = Depends(get_book_service)
):
    """Get a single book by ID."""
    return await service.get_book(book_id)


@router.put("/{book_id}", response_model=BookUpdateResponse)
async def update_book(
    book_id: str,
    update: BookUpdate,
    service: BookDatabaseService = Depends(get_book_service)
):
    """
    Update some or all fields of a book.

    Only the fields present in the body are changed.
    """
    book = await service.update_book(book_id, update)
    return BookUpdateResponse(message="Book updated successfully", data=book)


@router.delete("/{book_id}", response_model=MessageResponse)
async def delete_book(
    book_id: str,
    service: BookDatabaseService = Depends(get_book_service)
):
    """Delete a book by ID."""
    await service.delete_book(book_id)
    return MessageResponse(message="Book deleted successfully")
