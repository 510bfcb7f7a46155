"""SQLite + FTS5 document store."""

from __future__ import annotations

import json
import re
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Sequence

from refdocs.errors import IndexNotFoundError, StorageUnavailableError
from refdocs.models import DocRecord
from refdocs.utils.files import remove_path

STORED_FIELDS = ("id", "path", "title", "category", "source", "content", "entities", "url")
TEXT_FIELDS = ("title", "content", "entities")
FILTER_FIELDS = ("category", "source", "url", "entities")

# Column weights for bm25(): doc_id (unindexed), title, content, entities.
BM25_WEIGHTS = (0.0, 2.0, 1.0, 0.5)

_TERM_RE = re.compile(r"\w+")


def _quote(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


def query_terms(text: str) -> List[str]:
    """Split free text into the word terms handed to FTS5."""
    return _TERM_RE.findall(text)


@dataclass(slots=True)
class SearchQuery:
    """A search request against the document store.

    ``text`` is free text; its terms are OR-combined over ``text_fields``.
    ``title`` must match the title field as a phrase. ``filters`` are exact
    matches on keyword fields and are ANDed with everything else.
    """

    text: str = ""
    text_fields: Sequence[str] = ("title", "content")
    title: str = ""
    filters: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SearchHit:
    id: str
    score: float
    fields: Dict[str, Any]

    def get(self, name: str) -> str:
        value = self.fields.get(name)
        return value if isinstance(value, str) else ""


class SQLiteDocIndex:
    """Persistence and full-text search for reference documents.

    One instance wraps one connection; an internal lock serialises access so
    the same handle can be shared between threads.
    """

    def __init__(self, db_path: Path, conn: sqlite3.Connection) -> None:
        self.db_path = Path(db_path)
        self._conn = conn
        self._lock = threading.RLock()

    @classmethod
    def _connect(cls, db_path: Path) -> "SQLiteDocIndex":
        try:
            conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot open index: {exc}", db_path) from exc
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
        except sqlite3.Error as exc:
            conn.close()
            raise StorageUnavailableError(f"Cannot open index: {exc}", db_path) from exc
        return cls(db_path, conn)

    @classmethod
    def create(cls, db_path: Path) -> "SQLiteDocIndex":
        """Create a new, empty index. Fails if one already exists at ``db_path``."""
        db_path = Path(db_path)
        if db_path.exists():
            raise StorageUnavailableError("Index already exists", db_path)
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot create index directory: {exc}", db_path) from exc
        index = cls._connect(db_path)
        try:
            index._ensure_schema()
        except StorageUnavailableError:
            index.close()
            raise
        return index

    @classmethod
    def open(cls, db_path: Path) -> "SQLiteDocIndex":
        """Open an existing index."""
        db_path = Path(db_path)
        if not db_path.is_file():
            raise IndexNotFoundError("Index not found", db_path)
        index = cls._connect(db_path)
        try:
            index._check_schema()
        except StorageUnavailableError:
            index.close()
            raise
        return index

    @classmethod
    def open_or_create(cls, db_path: Path) -> "SQLiteDocIndex":
        try:
            return cls.open(db_path)
        except IndexNotFoundError:
            return cls.create(db_path)

    @staticmethod
    def remove(db_path: Path) -> None:
        """Delete an index and its WAL side files. Callers must hold it exclusively."""
        db_path = Path(db_path)
        try:
            for suffix in ("", "-wal", "-shm"):
                remove_path(db_path.with_name(db_path.name + suffix))
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot remove index: {exc}", db_path) from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SQLiteDocIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StorageUnavailableError(f"Index write failed: {exc}", self.db_path) from exc
            except Exception:
                self._conn.rollback()
                raise

    @contextmanager
    def _reading(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise StorageUnavailableError(f"Index read failed: {exc}", self.db_path) from exc

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    path TEXT NOT NULL DEFAULT '',
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    source TEXT NOT NULL,
                    content TEXT NOT NULL,
                    entities TEXT NOT NULL DEFAULT '[]',
                    url TEXT NOT NULL DEFAULT '',
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TRIGGER IF NOT EXISTS documents_updated
                AFTER UPDATE ON documents
                BEGIN
                    UPDATE documents SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
                END;
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_source ON documents(source)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS document_entities (
                    doc_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    PRIMARY KEY (doc_id, name)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_document_entities_name ON document_entities(name)"
            )
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
                    doc_id UNINDEXED,
                    title,
                    content,
                    entities,
                    tokenize = 'porter unicode61'
                )
                """
            )

    def _check_schema(self) -> None:
        with self._reading() as conn:
            names = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        missing = {"documents", "document_entities", "documents_fts"} - names
        if missing:
            raise StorageUnavailableError(
                f"Not a refdocs index (missing {', '.join(sorted(missing))})", self.db_path
            )

    def _write(self, conn: sqlite3.Connection, record: DocRecord) -> None:
        conn.execute(
            """
            INSERT INTO documents(id, path, title, category, source, content, entities, url)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                path = excluded.path,
                title = excluded.title,
                category = excluded.category,
                source = excluded.source,
                content = excluded.content,
                entities = excluded.entities,
                url = excluded.url
            """,
            (
                record.id,
                record.path,
                record.title,
                record.category,
                record.source,
                record.content,
                json.dumps(record.entities, ensure_ascii=True),
                record.url,
            ),
        )
        conn.execute("DELETE FROM document_entities WHERE doc_id = ?", (record.id,))
        conn.executemany(
            "INSERT OR IGNORE INTO document_entities(doc_id, position, name) VALUES (?, ?, ?)",
            [(record.id, position, name) for position, name in enumerate(record.entities)],
        )
        conn.execute("DELETE FROM documents_fts WHERE doc_id = ?", (record.id,))
        conn.execute(
            "INSERT INTO documents_fts(doc_id, title, content, entities) VALUES (?, ?, ?, ?)",
            (record.id, record.title, record.content, " ".join(record.entities)),
        )

    def index_one(self, record: DocRecord) -> None:
        """Add or replace a single document."""
        with self.transaction() as conn:
            self._write(conn, record)

    def index_batch(self, records: Iterable[DocRecord]) -> int:
        """Add or replace several documents atomically."""
        count = 0
        with self.transaction() as conn:
            for record in records:
                self._write(conn, record)
                count += 1
        return count

    def count(self) -> int:
        with self._reading() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0])

    def get_stats(self) -> Dict[str, Any]:
        """Document totals per source and per category."""
        with self._reading() as conn:
            by_source = {
                row["source"]: row["n"]
                for row in conn.execute(
                    "SELECT source, COUNT(*) AS n FROM documents GROUP BY source ORDER BY source"
                )
            }
            by_category = {
                row["category"]: row["n"]
                for row in conn.execute(
                    "SELECT category, COUNT(*) AS n FROM documents GROUP BY category ORDER BY category"
                )
            }
        return {
            "document_count": sum(by_source.values()),
            "sources": by_source,
            "categories": by_category,
        }

    def _match_expression(self, query: SearchQuery) -> str | None:
        parts: List[str] = []
        if query.text:
            fields = [name for name in query.text_fields if name in TEXT_FIELDS]
            if not fields:
                raise ValueError(f"No searchable fields in {list(query.text_fields)}")
            terms = query_terms(query.text)
            if not terms:
                return ""
            column_filter = "{" + " ".join(fields) + "}"
            parts.append(f"{column_filter} : ({' OR '.join(_quote(t) for t in terms)})")
        if query.title:
            terms = query_terms(query.title)
            if not terms:
                return ""
            parts.append(f"title : {_quote(' '.join(terms))}")
        if not parts:
            return None
        return " AND ".join(parts)

    def search(
        self,
        query: SearchQuery,
        *,
        size: int = 10,
        fields: Sequence[str] = ("title", "source", "category", "content", "url"),
    ) -> List[SearchHit]:
        """Return up to ``size`` hits ordered by descending relevance."""
        unknown = [name for name in fields if name not in STORED_FIELDS]
        if unknown:
            raise ValueError(f"Unknown fields requested: {unknown}")

        match = self._match_expression(query)
        if match == "":
            return []

        where: List[str] = []
        params: List[Any] = []
        if match is not None:
            where.append("documents_fts MATCH ?")
            params.append(match)

        for name, value in query.filters.items():
            if name not in FILTER_FIELDS:
                raise ValueError(f"Field {name!r} cannot be used as a filter")
            if name == "entities":
                where.append("d.id IN (SELECT doc_id FROM document_entities WHERE name = ?)")
            else:
                where.append(f"d.{name} = ?")
            params.append(value)

        columns = ", ".join(f"d.{name} AS {name}" for name in STORED_FIELDS)
        if match is not None:
            weights = ", ".join(str(w) for w in BM25_WEIGHTS)
            sql = (
                f"SELECT {columns}, -bm25(documents_fts, {weights}) AS score "
                "FROM documents_fts JOIN documents d ON d.id = documents_fts.doc_id"
            )
        else:
            sql = f"SELECT {columns}, 1.0 AS score FROM documents d"
        if where:
            sql += " WHERE " + " AND ".join(where)
        order = ["score DESC"]
        entity = query.filters.get("entities")
        if entity is not None:
            # Ties go to documents that mention the entity earlier.
            order.append(
                "(SELECT e.position FROM document_entities e WHERE e.doc_id = d.id AND e.name = ?)"
            )
            params.append(entity)
        order.append("d.id")
        sql += f" ORDER BY {', '.join(order)} LIMIT ?"
        params.append(size)

        with self._reading() as conn:
            rows = conn.execute(sql, params).fetchall()

        hits: List[SearchHit] = []
        for row in rows:
            values: Dict[str, Any] = {}
            for name in fields:
                value = row[name]
                values[name] = json.loads(value) if name == "entities" else value
            hits.append(SearchHit(id=row["id"], score=float(row["score"]), fields=values))
        return hits
