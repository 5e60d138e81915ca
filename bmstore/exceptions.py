"""
Error types raised by the bookmark store.

Every failure coming out of the engine is wrapped in one of these so that
callers only ever need to catch BookmarkStoreError.
"""


class BookmarkStoreError(Exception):
    """Base exception for bookmark store errors."""
    pass


class DatabaseConnectionError(BookmarkStoreError):
    """Raised when the database file cannot be opened."""
    pass


class QueryError(BookmarkStoreError):
    """Raised when a read statement fails to prepare or execute."""
    pass


class WriteError(BookmarkStoreError):
    """Raised when an insert, update or delete fails."""
    pass


class PreconditionError(BookmarkStoreError, ValueError):
    """Raised when an operation is called with a record it cannot accept."""
    pass


class RowMappingError(BookmarkStoreError):
    """Raised when a stored row cannot be turned into a Bookmark."""
    pass
