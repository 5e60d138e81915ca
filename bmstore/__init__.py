"""
bmstore - Bookmark Store

A minimal persistence layer for bookmarks kept in a single SQLite file.

Each bookmark is a URL plus free-form metadata, tags and description,
identified by an integer id assigned by the database.

Example Usage:
    >>> from bmstore import BookmarkStore, Bookmark
    >>> with BookmarkStore("bookmarks.db") as store:
    ...     new_id = store.add_bookmark(Bookmark(url="https://example.com", metadata="Example"))
    ...     store.get_bookmarks_by_id([new_id])
"""

__version__ = "0.1.0"

# Store
from bmstore.store import BookmarkStore, open_store, get_store

# Models
from bmstore.models import Bookmark, BookmarkId, create_schema

# Errors
from bmstore.exceptions import (
    BookmarkStoreError,
    DatabaseConnectionError,
    QueryError,
    WriteError,
    PreconditionError,
    RowMappingError,
)

# Configuration
from bmstore.config import StoreConfig, get_config, init_config, configure_logging

# Interchange
from bmstore.exporters import export_json, import_json, bookmarks_to_json, bookmarks_from_json

__all__ = [
    # Store
    "BookmarkStore",
    "open_store",
    "get_store",
    # Models
    "Bookmark",
    "BookmarkId",
    "create_schema",
    # Errors
    "BookmarkStoreError",
    "DatabaseConnectionError",
    "QueryError",
    "WriteError",
    "PreconditionError",
    "RowMappingError",
    # Config
    "StoreConfig",
    "get_config",
    "init_config",
    "configure_logging",
    # Interchange
    "export_json",
    "import_json",
    "bookmarks_to_json",
    "bookmarks_from_json",
]
