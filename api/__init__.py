"""
FastAPI RESTful API for the book catalog.

This module provides a REST API for:
- Creating, reading, updating and deleting books
- Paginated listing and title/author search
- Collection statistics
"""
