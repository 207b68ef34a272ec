"""
Request dependencies for the book endpoints.
"""

from fastapi import HTTPException, Request, status

from api.database import BookDatabaseService


def get_book_service(request: Request) -> BookDatabaseService:
    """Return the service bound to the running application."""
    service = getattr(request.app.state, "book_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return service
