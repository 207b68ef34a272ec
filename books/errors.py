"""
Error types raised by the book service.
Each error carries the HTTP status code it is surfaced as.
"""


class BookstoreError(Exception):
    """Base class for book service errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BookValidationError(BookstoreError, ValueError):
    """A required field is missing or a field value violates its rule."""

    status_code = 400


class BookNotFoundError(BookstoreError):
    """No book exists for the requested id."""

    status_code = 404

    def __init__(self, book_id: str):
        super().__init__("Book not found")
        self.book_id = book_id


class StorageError(BookstoreError):
    """The underlying store failed to execute an operation."""

    status_code = 500
