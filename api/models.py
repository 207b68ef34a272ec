"""
API models and schemas for the FastAPI application.
"""

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_positive_int(value: Any, default: int) -> int:
    """Read the leading integer of a query value, or the default when there is none."""
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        match = LEADING_INT.match(str(value))
        if match is None:
            return default
        number = int(match.group(1))
    return number if number > 0 else default


class BookResponse(BaseModel):
    """Book response model for API."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    publication_year: int = Field(..., alias="publicationYear", description="Year of publication")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt", description="Last update timestamp")


class PageDescriptor(BaseModel):
    """Pointer to a neighbouring page."""
    page: int = Field(..., description="Page number")
    limit: int = Field(..., description="Items per page")


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    model_config = ConfigDict(populate_by_name=True)

    total_books: int = Field(..., alias="totalBooks", description="Total number of books")
    total_pages: int = Field(..., alias="totalPages", description="Total number of pages")
    count: int = Field(..., description="Number of books on this page")
    data: List[BookResponse] = Field(..., description="Books on this page")
    next: Optional[PageDescriptor] = Field(None, description="Next page, when one exists")
    previous: Optional[PageDescriptor] = Field(None, description="Previous page, when one exists")


class BookQueryParams(BaseModel):
    """
    Query parameters for book listing.
    Missing, non-numeric or non-positive values fall back to the defaults.
    """
    page: int = Field(DEFAULT_PAGE, description="Page number")
    limit: int = Field(DEFAULT_LIMIT, description="Items per page")

    @field_validator("page", mode="before")
    @classmethod
    def parse_page(cls, v):
        return _parse_positive_int(v, DEFAULT_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def parse_limit(cls, v):
        return _parse_positive_int(v, DEFAULT_LIMIT)


class BookSearchResponse(BaseModel):
    """Response model for title/author search."""
    count: int = Field(..., description="Number of matching books")
    data: List[BookResponse] = Field(..., description="Matching books")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str = Field(..., description="Human-readable outcome")


class BookUpdateResponse(MessageResponse):
    """Response model for a successful update."""
    data: BookResponse = Field(..., description="Updated book")


class AuthorCount(BaseModel):
    """Number of books by one author."""
    author: str
    count: int


class YearCount(BaseModel):
    """Number of books published in one year."""
    year: int
    count: int


class BookStatsResponse(BaseModel):
    """Collection-wide statistics."""
    model_config = ConfigDict(populate_by_name=True)

    total_books: int = Field(..., alias="totalBooks", description="Total number of books")
    earliest_publication_year: Optional[int] = Field(
        None, alias="earliestPublicationYear", description="Oldest publication year"
    )
    latest_publication_year: Optional[int] = Field(
        None, alias="latestPublicationYear", description="Newest publication year"
    )
    books_by_author: List[AuthorCount] = Field(
        default_factory=list, alias="booksByAuthor", description="Counts per author, most books first"
    )
    books_by_year: List[YearCount] = Field(
        default_factory=list, alias="booksByYear", description="Counts per year, oldest first"
    )
    top_authors: List[AuthorCount] = Field(
        default_factory=list, alias="topAuthors", description="The five most published authors"
    )


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
