"""
Bookmark record and table description.

The bookmarks table is owned by whoever provisions the database file; this
module only describes its shape so queries can be built against it. The
column order (id, url, metadata, tags, desc, flags) is the positional order
every read relies on.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from sqlalchemy import Column, Integer, MetaData, Table, Text, create_engine

from bmstore.exceptions import RowMappingError

BookmarkId = int

# SQLite INTEGER range; ids outside it cannot match a row
SQLITE_MIN_INT = -2 ** 63
SQLITE_MAX_INT = 2 ** 63 - 1

metadata_obj = MetaData()

bookmarks_table = Table(
    "bookmarks",
    metadata_obj,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("url", Text, nullable=True),
    Column("metadata", Text, nullable=True),
    Column("tags", Text, nullable=True),
    Column("desc", Text, nullable=True),
    Column("flags", Integer, nullable=True),
)

# Fields written by add/update, in statement order
WRITABLE_FIELDS = ("metadata", "desc", "tags", "url", "flags")

TEXT_FIELDS = ("url", "metadata", "tags", "desc")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str)


class UndecodableText(bytes):
    """Raw bytes of a TEXT value that is not valid UTF-8."""
    pass


def decode_text(raw: bytes) -> Any:
    """
    Decode a TEXT value from SQLite, keeping invalid UTF-8 as UndecodableText.

    Used as the connection text_factory so one bad column degrades to its
    default in from_row instead of failing the whole statement.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return UndecodableText(raw)


def _read_column(row: Sequence[Any], index: int, default: Any, check) -> Any:
    """Read one column, falling back to ``default`` on NULL or a bad value."""
    try:
        value = row[index]
    except (IndexError, KeyError, TypeError):
        return default
    if value is None or not check(value):
        return default
    return value


@dataclass
class Bookmark:
    """
    A saved URL with free-form metadata.

    Attributes:
        id: Store-assigned key, None until the record has been added
        url: The bookmarked URL (not validated)
        metadata: Free-form metadata such as the page title
        tags: Tags in whatever delimiting convention the caller uses
        desc: Free-form description
        flags: Opaque bit field reserved for the caller; persisted but left
            out of repr and of interchange dicts unless asked for
    """
    id: Optional[BookmarkId] = None
    url: str = ""
    metadata: str = ""
    tags: str = ""
    desc: str = ""
    flags: int = field(default=0, repr=False)

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Bookmark":
        """
        Build a bookmark from a positional (id, url, metadata, tags, desc, flags) row.

        Text columns that are NULL or not text become "", a flags column that
        is NULL or not an integer becomes 0. Only the id is load-bearing: a
        missing or non-integer id raises RowMappingError.

        Raises:
            RowMappingError: If the id column cannot be read as an integer
        """
        try:
            raw_id = row[0]
        except (IndexError, KeyError, TypeError) as e:
            raise RowMappingError(f"Row has no id column: {e}") from e

        if raw_id is not None and not _is_int(raw_id):
            raise RowMappingError(f"Row id is not an integer: {raw_id!r}")

        return cls(
            id=raw_id,
            url=_read_column(row, 1, "", _is_text),
            metadata=_read_column(row, 2, "", _is_text),
            tags=_read_column(row, 3, "", _is_text),
            desc=_read_column(row, 4, "", _is_text),
            flags=_read_column(row, 5, 0, _is_int),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Bookmark":
        """Build a bookmark from an interchange mapping, ignoring unknown keys."""
        raw_id = data.get("id")
        values = {name: data.get(name) or "" for name in TEXT_FIELDS}
        for name, value in values.items():
            if not isinstance(value, str):
                values[name] = str(value)
        flags = data.get("flags")
        return cls(
            id=raw_id if _is_int(raw_id) else None,
            flags=flags if _is_int(flags) else 0,
            **values,
        )

    def to_dict(self, include_flags: bool = False) -> Dict[str, Any]:
        """
        Convert to the interchange mapping used for transport and export.

        Args:
            include_flags: Also emit the internal flags field

        Returns:
            Dict with id, url, metadata, tags and desc (plus flags if asked)
        """
        data = {
            "id": self.id,
            "url": self.url,
            "metadata": self.metadata,
            "tags": self.tags,
            "desc": self.desc,
        }
        if include_flags:
            data["flags"] = self.flags
        return data

    def write_values(self) -> Dict[str, Any]:
        """Column values written by add and update (the id is never written)."""
        return {name: getattr(self, name) for name in WRITABLE_FIELDS}


def create_schema(path: Union[str, Path]) -> None:
    """
    Create the bookmarks table in an SQLite file if it does not exist.

    The store never calls this; it is for tooling and tests that need a
    fresh database.

    Args:
        path: Path to the SQLite database file
    """
    engine = create_engine(f"sqlite:///{path}")
    try:
        metadata_obj.create_all(engine)
    finally:
        engine.dispose()


__all__ = [
    "Bookmark",
    "BookmarkId",
    "bookmarks_table",
    "create_schema",
    "decode_text",
    "metadata_obj",
    "UndecodableText",
]
