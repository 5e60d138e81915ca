"""
JSON interchange for bookmark records.

Records are exchanged as a list of mappings with id, url, metadata, tags
and desc. The flags field is internal and only written when asked for.
"""
import json
from pathlib import Path
from typing import Iterable, List, Union

from bmstore.models import Bookmark


def bookmarks_to_json(bookmarks: Iterable[Bookmark], include_flags: bool = False) -> str:
    """Serialize bookmarks to a JSON string."""
    data = [b.to_dict(include_flags=include_flags) for b in bookmarks]
    return json.dumps(data, indent=2, ensure_ascii=False)


def bookmarks_from_json(text: str) -> List[Bookmark]:
    """Parse bookmarks from a JSON string produced by bookmarks_to_json."""
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON list of bookmarks")
    return [Bookmark.from_dict(item) for item in data if isinstance(item, dict)]


def export_json(
    bookmarks: Iterable[Bookmark],
    path: Union[str, Path],
    include_flags: bool = False,
) -> None:
    """
    Export bookmarks to a JSON file.

    Args:
        bookmarks: Bookmarks to export
        path: Output file path (parent directories are created)
        include_flags: Also write the internal flags field
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(bookmarks_to_json(bookmarks, include_flags=include_flags))


def import_json(path: Union[str, Path]) -> List[Bookmark]:
    """
    Read bookmarks from a JSON file.

    Ids are kept on the returned records for reference; add_bookmark
    ignores them and assigns fresh ones.
    """
    with open(path, "r", encoding="utf-8") as f:
        return bookmarks_from_json(f.read())
