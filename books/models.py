"""
Pydantic models for book record validation.
Implements the Book schema with field-level rules applied before persistence.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import BookValidationError

AUTHOR_PATTERN = re.compile(r"[a-zA-Z\s]+")


def current_year() -> int:
    """Calendar year at the moment of validation."""
    return datetime.now().year


def validate_title(value: Any) -> str:
    """Ensure the title is non-empty text."""
    if not isinstance(value, str) or not value.strip():
        raise BookValidationError("Title must be a non-empty string.")
    return value


def validate_author(value: Any) -> str:
    """
    Ensure the author contains only alphabets and spaces.

    Args:
        value: Candidate author name

    Returns:
        The author name unchanged

    Raises:
        BookValidationError: If the value is not a string of letters and spaces
    """
    if (
        not isinstance(value, str)
        or not value.strip()
        or AUTHOR_PATTERN.fullmatch(value) is None
    ):
        raise BookValidationError(
            f"{value} is not a valid author name! Author must contain only alphabets and spaces."
        )
    return value


def validate_publication_year(value: Any) -> int:
    """
    Ensure the publication year is a number no later than the current year.

    Numeric strings and integral floats are accepted and normalized to int.
    Zero is treated as missing.

    Args:
        value: Candidate publication year

    Returns:
        The year as an int

    Raises:
        BookValidationError: If the value is not numeric, NaN, fractional,
            zero or in the future
    """
    message = f"{value} is not a valid publication year! Year must be in the past."

    if isinstance(value, bool):
        raise BookValidationError(message)

    try:
        year = float(value)
    except (TypeError, ValueError, OverflowError):
        raise BookValidationError(message)

    if math.isnan(year) or not year.is_integer() or year == 0:
        raise BookValidationError(message)

    if year > current_year():
        raise BookValidationError(message)

    return int(year)


class BookCreate(BaseModel):
    """
    Book creation payload.
    All three fields are required.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Title of the book")
    author: str = Field(..., description="Author name, letters and spaces only")
    publication_year: int = Field(..., alias="publicationYear", description="Year of publication")

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v):
        return validate_title(v)

    @field_validator("author", mode="before")
    @classmethod
    def check_author(cls, v):
        return validate_author(v)

    @field_validator("publication_year", mode="before")
    @classmethod
    def check_publication_year(cls, v):
        return validate_publication_year(v)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a MongoDB document using the stored field names."""
        return self.model_dump(by_alias=True)


class BookUpdate(BaseModel):
    """
    Partial book update payload.

    Only fields present in the request are validated and applied. Sending
    an explicit null for a field is rejected, so an update can never leave
    a stored record without one of its required fields.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="New title")
    author: Optional[str] = Field(None, description="New author name")
    publication_year: Optional[int] = Field(None, alias="publicationYear", description="New publication year")

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v):
        return validate_title(v)

    @field_validator("author", mode="before")
    @classmethod
    def check_author(cls, v):
        return validate_author(v)

    @field_validator("publication_year", mode="before")
    @classmethod
    def check_publication_year(cls, v):
        return validate_publication_year(v)

    def to_changes(self) -> Dict[str, Any]:
        """Fields supplied by the caller, keyed by stored field names."""
        return self.model_dump(by_alias=True, exclude_unset=True)
