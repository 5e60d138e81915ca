import os
import sqlite3
import tempfile

import pytest

import bmstore.config
import bmstore.store
from bmstore.models import create_schema
from bmstore.store import BookmarkStore


@pytest.fixture(autouse=True)
def reset_globals(monkeypatch):
    """Keep the cached config and store from leaking between tests."""
    monkeypatch.setattr(bmstore.config, "_config", None)
    monkeypatch.setattr(bmstore.store, "_store", None)
    yield
    if bmstore.store._store is not None:
        bmstore.store._store.close()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for database files."""
    with tempfile.TemporaryDirectory(prefix="bmstore_test_") as tmpdir:
        yield tmpdir


@pytest.fixture
def db_path(temp_dir):
    """Path to a fresh database with an empty bookmarks table."""
    path = os.path.join(temp_dir, "bookmarks.db")
    create_schema(path)
    return path


@pytest.fixture
def store(db_path):
    """Open store on a fresh database."""
    s = BookmarkStore(db_path)
    yield s
    s.close()


@pytest.fixture
def untyped_db_path(temp_dir):
    """
    Database whose bookmarks table has no column types.

    Lets tests plant rows the typed schema would coerce, such as a text id.
    """
    path = os.path.join(temp_dir, "untyped.db")
    conn = sqlite3.connect(path)
    conn.execute('CREATE TABLE bookmarks (id, url, metadata, tags, "desc", flags)')
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def raw_insert():
    """Insert rows directly with sqlite3, bypassing the store."""
    def _insert(path, *rows):
        conn = sqlite3.connect(path)
        conn.executemany(
            'INSERT INTO bookmarks (id, url, metadata, tags, "desc", flags) VALUES (?, ?, ?, ?, ?, ?)',
            rows,
        )
        conn.commit()
        conn.close()
    return _insert


@pytest.fixture
def raw_count():
    """Count rows in the bookmarks table directly with sqlite3."""
    def _count(path):
        conn = sqlite3.connect(path)
        try:
            return conn.execute("SELECT COUNT(*) FROM bookmarks").fetchone()[0]
        finally:
            conn.close()
    return _count
