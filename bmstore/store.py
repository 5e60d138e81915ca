"""
SQLite-backed bookmark store.

Provides create, read, update and delete for Bookmark records kept in the
``bookmarks`` table of a single database file. The table must already
exist; the store never creates or migrates schema.

Thread safety:
    A BookmarkStore holds exactly one connection for its lifetime and is not
    safe for concurrent use. The SQLite driver is opened with
    check_same_thread on, so calls from a thread other than the one that
    opened the store fail with QueryError or WriteError. Use one store per
    thread, or guard a shared store with a lock.
"""
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Union

from sqlalchemy import create_engine, delete, event, insert, select, update
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.expression import Executable

from bmstore.config import StoreConfig, get_config
from bmstore.exceptions import (
    BookmarkStoreError,
    DatabaseConnectionError,
    PreconditionError,
    QueryError,
    RowMappingError,
    WriteError,
)
from bmstore.models import (
    SQLITE_MAX_INT,
    SQLITE_MIN_INT,
    Bookmark,
    BookmarkId,
    bookmarks_table,
    decode_text,
)

logger = logging.getLogger(__name__)


def _check_id(value: Any) -> bool:
    """
    Validate that ``value`` is an integer id.

    Returns:
        True if the id fits SQLite's INTEGER range, False if no row can have it

    Raises:
        TypeError: If ``value`` is not an integer
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"Bookmark ids must be integers, got {value!r}")
    return SQLITE_MIN_INT <= value <= SQLITE_MAX_INT


def _check_ids(ids: Iterable[BookmarkId]) -> List[BookmarkId]:
    """Validate every id and return the storable ones, deduplicated."""
    return sorted({value for value in ids if _check_id(value)})


class BookmarkStore:
    """
    Persistence layer for Bookmark records.

    Every call round-trips to the database file in its own short
    transaction; nothing is cached between calls.
    """

    def __init__(
        self,
        path: Union[str, Path],
        strict_reads: bool = False,
        echo: bool = False,
    ):
        """
        Open a connection to the database file at ``path``.

        A missing file is created empty by SQLite; its parent directory must
        already exist. The database header is read immediately so an
        unreachable path or a file that is not an SQLite database fails here
        rather than on first use. The bookmarks table is not checked.

        Args:
            path: Path to the SQLite database file
            strict_reads: If True, a row that cannot be mapped fails the whole
                read with QueryError. If False, such rows are logged and left
                out of the result.
            echo: Echo SQL statements through SQLAlchemy's logger

        Raises:
            DatabaseConnectionError: If the file cannot be opened as a database
        """
        self.path = Path(path)
        self.url = f"sqlite:///{self.path}"
        self.strict_reads = strict_reads
        self._connection: Optional[Connection] = None

        self.engine = create_engine(
            self.url,
            connect_args={"check_same_thread": True},
            poolclass=NullPool,
            echo=echo,
        )
        event.listen(self.engine, "connect", self._configure_sqlite)
        try:
            connection = self.engine.connect()
        except SQLAlchemyError as e:
            self.engine.dispose()
            logger.error(f"Cannot open database {self.path}: {e}")
            raise DatabaseConnectionError(f"Cannot open database {self.path}: {e}") from e

        try:
            with connection.begin():
                connection.exec_driver_sql("PRAGMA schema_version")
        except SQLAlchemyError as e:
            connection.close()
            self.engine.dispose()
            logger.error(f"{self.path} is not a usable database: {e}")
            raise DatabaseConnectionError(f"{self.path} is not a usable database: {e}") from e

        self._connection = connection
        logger.debug(f"Opened bookmark store at {self.path}")

    @staticmethod
    def _configure_sqlite(dbapi_conn, connection_record):
        """Decode TEXT leniently so invalid UTF-8 reaches row mapping."""
        dbapi_conn.text_factory = decode_text

    @classmethod
    def open(cls, path: Union[str, Path], **kwargs) -> "BookmarkStore":
        """Open a store at ``path``; see BookmarkStore.__init__ for options."""
        return cls(path, **kwargs)

    def __enter__(self) -> "BookmarkStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<BookmarkStore(path='{self.path}', {state})>"

    @property
    def closed(self) -> bool:
        return self._connection is None

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._connection is None:
            return
        self._connection.close()
        self._connection = None
        self.engine.dispose()
        logger.debug(f"Closed bookmark store at {self.path}")

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise BookmarkStoreError(f"Bookmark store at {self.path} is closed")
        return self._connection

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all_bookmarks(self) -> List[Bookmark]:
        """
        Get every bookmark in the table.

        No ordering is imposed; rows come back in whatever order SQLite
        returns them.

        Returns:
            List of bookmarks (rows that cannot be mapped are omitted unless
            the store was opened with strict_reads)

        Raises:
            QueryError: If the select fails, or a row cannot be mapped under
                strict_reads
        """
        logger.debug("Fetching all bookmarks")
        return self._fetch(select(bookmarks_table), "get_all_bookmarks")

    def get_bookmarks_by_id(self, ids: Iterable[BookmarkId]) -> List[Bookmark]:
        """
        Get the bookmarks whose id is in ``ids``.

        Ids that do not exist are simply absent from the result, and
        duplicates in ``ids`` do not produce duplicate records. An empty
        ``ids`` returns an empty list without querying.

        Args:
            ids: Bookmark ids to look up (integers only)

        Returns:
            List of matching bookmarks, in no particular order

        Raises:
            TypeError: If any id is not an integer
            QueryError: If the select fails, or a row cannot be mapped under
                strict_reads
        """
        wanted = _check_ids(ids)
        if not wanted:
            return []

        logger.debug(f"Fetching bookmarks by id: {wanted}")
        stmt = select(bookmarks_table).where(bookmarks_table.c.id.in_(wanted))
        return self._fetch(stmt, "get_bookmarks_by_id")

    def _fetch(self, stmt: Executable, operation: str) -> List[Bookmark]:
        connection = self.connection
        try:
            with connection.begin():
                rows = connection.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}")
            raise QueryError(f"{operation} failed: {e}") from e

        bookmarks = []
        for row in rows:
            try:
                bookmarks.append(Bookmark.from_row(row))
            except RowMappingError as e:
                if self.strict_reads:
                    raise QueryError(f"{operation} failed: {e}") from e
                logger.warning(f"{operation}: skipping unreadable row: {e}")
        return bookmarks

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_bookmark(self, bm: Bookmark) -> BookmarkId:
        """
        Insert a new bookmark.

        ``bm.id`` is ignored; SQLite assigns the id. ``bm`` itself is not
        modified.

        Args:
            bm: Bookmark to insert

        Returns:
            The id assigned to the new row

        Raises:
            WriteError: If the insert fails (missing table, constraint, or a
                value SQLite cannot store)
        """
        stmt = insert(bookmarks_table).values(**bm.write_values())
        new_id = self._write(stmt, "add_bookmark", lambda r: r.inserted_primary_key[0])
        logger.debug(f"Added bookmark {new_id}: {bm.url}")
        return new_id

    def update_bookmark(self, bm: Bookmark) -> int:
        """
        Overwrite url, metadata, tags, desc and flags of the row with ``bm.id``.

        Args:
            bm: Bookmark carrying the id to update and its new values

        Returns:
            Number of rows affected (0 if no row has that id)

        Raises:
            PreconditionError: If ``bm.id`` is None; nothing is written
            TypeError: If ``bm.id`` is not an integer
            WriteError: If the update fails
        """
        if bm.id is None:
            raise PreconditionError("update_bookmark requires a bookmark with an id")
        if not _check_id(bm.id):
            logger.debug(f"update_bookmark: id {bm.id} is out of range, nothing to update")
            return 0

        stmt = (
            update(bookmarks_table)
            .where(bookmarks_table.c.id == bm.id)
            .values(**bm.write_values())
        )
        count = self._write(stmt, "update_bookmark", lambda r: r.rowcount)
        logger.debug(f"Updated bookmark {bm.id}: {count} row(s)")
        return count

    def delete_bookmark(self, bm_id: BookmarkId) -> int:
        """
        Delete the row with ``bm_id``.

        Returns:
            Number of rows affected (0 if no row has that id)

        Raises:
            TypeError: If ``bm_id`` is not an integer
            WriteError: If the delete fails
        """
        if not _check_id(bm_id):
            logger.debug(f"delete_bookmark: id {bm_id} is out of range, nothing to delete")
            return 0

        stmt = delete(bookmarks_table).where(bookmarks_table.c.id == bm_id)
        count = self._write(stmt, "delete_bookmark", lambda r: r.rowcount)
        logger.debug(f"Deleted bookmark {bm_id}: {count} row(s)")
        return count

    def _write(
        self,
        stmt: Executable,
        operation: str,
        extract: Callable[[CursorResult], Any],
    ) -> Any:
        connection = self.connection
        try:
            with connection.begin():
                result = connection.execute(stmt)
                return extract(result)
        except (SQLAlchemyError, OverflowError) as e:
            logger.error(f"{operation} failed: {e}")
            raise WriteError(f"{operation} failed: {e}") from e


def open_store(
    path: Optional[Union[str, Path]] = None,
    config: Optional[StoreConfig] = None,
) -> BookmarkStore:
    """
    Open a store using configuration for anything not given explicitly.

    Args:
        path: Database file path (defaults to the configured database)
        config: Configuration to use (defaults to the global config)

    Returns:
        Open BookmarkStore
    """
    config = config or get_config()
    if path is None:
        path = config.get_database_path()
    return BookmarkStore(
        path,
        strict_reads=config.strict_reads,
        echo=config.database_echo,
    )


# Global store instance
_store: Optional[BookmarkStore] = None


def get_store(path: Optional[Union[str, Path]] = None, reload: bool = False) -> BookmarkStore:
    """
    Get the global store instance.

    Args:
        path: Database file path (opens a new store when it differs from the
            current one)
        reload: Force a new connection

    Returns:
        BookmarkStore instance
    """
    global _store
    if path is not None and _store is not None and Path(path) != _store.path:
        reload = True
    if _store is None or _store.closed or reload:
        if _store is not None:
            _store.close()
        _store = open_store(path)
    return _store
