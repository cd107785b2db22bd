"""SQLite-backed document collections: JSON bodies, expression indexes and FTS5 text search."""

import asyncio
import json
import re
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from functools import partial
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

from common.logging_config import get_logger
from common.types import IndexSpec
from filestore.backend import Document, Filter, SortSpec
from filestore.config import DATABASE_PATH
from filestore.exceptions import BackendError, DuplicateKeyError, IndexConflictError

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUERY_TERM = re.compile(r"\w+")


def _check_identifier(value: str) -> str:
    if not _IDENTIFIER.match(value):
        raise BackendError(f"Invalid identifier: {value!r}")
    return value


def _json_path(field_path: str) -> str:
    return "$." + ".".join(_check_identifier(part) for part in field_path.split("."))


def _field_expr(field_path: str, column: str = "body") -> str:
    return f"json_extract({column}, '{_json_path(field_path)}')"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_param(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return _json_default(value)
    return value


def encode_document(document: Document) -> str:
    return json.dumps(document, default=_json_default, ensure_ascii=False)


def decode_document(body: str) -> Document:
    return json.loads(body)


def set_path(document: Document, field_path: str, value: Any) -> None:
    """Assign value at a dotted path, creating intermediate objects."""
    parts = field_path.split(".")
    target = document
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = value


def build_where(filter: Filter, column: str = "body") -> Tuple[str, List[Any]]:
    """
    Translate a document filter into a SQL condition over a JSON column.

    Args:
        filter: Mapping of dotted field path to value or {"$in": [...]}
        column: Column holding the JSON body

    Returns:
        (condition SQL, bound parameters)
    """
    clauses: List[str] = []
    params: List[Any] = []

    for field_path, condition in filter.items():
        if isinstance(condition, dict):
            if set(condition) != {"$in"}:
                raise BackendError(f"Unsupported filter on {field_path}: {sorted(condition)}")
            values = [_to_param(v) for v in condition["$in"]]
            if not values:
                clauses.append("0")
                continue
            placeholders = ", ".join("?" for _ in values)
            # json_each yields the value itself for scalars and each element for arrays.
            clauses.append(
                f"EXISTS (SELECT 1 FROM json_each({column}, '{_json_path(field_path)}') "
                f"WHERE json_each.value IN ({placeholders}))"
            )
            params.extend(values)
        elif condition is None:
            clauses.append(f"{_field_expr(field_path, column)} IS NULL")
        else:
            clauses.append(f"{_field_expr(field_path, column)} = ?")
            params.append(_to_param(condition))

    return (" AND ".join(clauses) if clauses else "1"), params


def build_order_by(sort: Optional[SortSpec], column: str = "body", id_column: str = "id") -> str:
    if not sort:
        return f"ORDER BY {id_column}"
    terms = [
        f"{_field_expr(field_path, column)} {'DESC' if direction < 0 else 'ASC'}"
        for field_path, direction in sort
    ]
    # Insertion order breaks ties, following the direction of the first key.
    terms.append(f"{id_column} {'DESC' if sort[0][1] < 0 else 'ASC'}")
    return "ORDER BY " + ", ".join(terms)


def build_fts_query(query: str) -> str:
    """Any-term match: every word of the query becomes a quoted OR'd term."""
    return " OR ".join(f'"{term}"' for term in _QUERY_TERM.findall(query))


def index_definition(spec: IndexSpec) -> Dict[str, Any]:
    return {
        "keys": [[field_path, direction] for field_path, direction in spec.keys],
        "unique": spec.unique,
        "weights": dict(spec.weights) if spec.weights else None,
    }


def init_database(database_path: Optional[str] = None) -> None:
    """
    Create the database file and the index catalog if they don't exist.
    """
    db_path = Path(database_path or DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(str(db_path)) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS collection_indexes (
                collection TEXT NOT NULL,
                name TEXT NOT NULL,
                definition TEXT NOT NULL,
                PRIMARY KEY(collection, name)
            )
        """)


@contextmanager
def get_db_connection(database_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Connections run in autocommit mode; multi-statement writes go through transaction().
    """
    conn = sqlite3.connect(database_path or DATABASE_PATH, isolation_level=None, timeout=30)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


class SQLiteCollection:
    """
    A named document collection stored in one SQLite table.

    Every public method is a coroutine; the blocking sqlite3 work runs in the
    loop's default executor on a connection opened for that call.
    """

    def __init__(self, database_path: str, name: str):
        self.database_path = database_path
        self.name = _check_identifier(name)

    def _physical_name(self, index_name: str) -> str:
        return f"{self.name}__{_check_identifier(index_name)}"

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args))
        except sqlite3.Error as e:
            raise BackendError(f"{self.name}: {e}") from e

    def ensure_table(self) -> None:
        with get_db_connection(self.database_path) as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.name} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    body TEXT NOT NULL
                )
            """)

    # Indexes

    def _catalog(self, conn: sqlite3.Connection) -> Dict[str, Dict[str, Any]]:
        rows = conn.execute(
            "SELECT name, definition FROM collection_indexes WHERE collection = ?",
            (self.name,),
        ).fetchall()
        return {row["name"]: json.loads(row["definition"]) for row in rows}

    def _create_index_sync(self, spec: IndexSpec) -> None:
        definition = index_definition(spec)
        with get_db_connection(self.database_path) as conn, transaction(conn):
            existing = self._catalog(conn).get(spec.name)
            if existing is not None:
                if existing == definition:
                    logger.debug(f"Index {spec.name} already present on {self.name}")
                    return
                raise IndexConflictError(
                    f"Index {spec.name} on {self.name} exists with a different definition"
                )

            if spec.is_text:
                self._create_text_index(conn, spec)
            else:
                self._create_field_index(conn, spec)

            conn.execute(
                "INSERT INTO collection_indexes (collection, name, definition) VALUES (?, ?, ?)",
                (self.name, spec.name, json.dumps(definition, sort_keys=True)),
            )

    def _create_field_index(self, conn: sqlite3.Connection, spec: IndexSpec) -> None:
        columns = ", ".join(
            f"{_field_expr(field_path)}{' DESC' if direction == -1 else ''}"
            for field_path, direction in spec.keys
        )
        unique = "UNIQUE " if spec.unique else ""
        conn.execute(f"CREATE {unique}INDEX {self._physical_name(spec.name)} ON {self.name} ({columns})")

    def _create_text_index(self, conn: sqlite3.Connection, spec: IndexSpec) -> None:
        table = self._physical_name(spec.name)
        columns = ", ".join("f_" + field_path.replace(".", "_") for field_path in spec.fields)
        new_values = ", ".join(_field_expr(field_path, "new.body") for field_path in spec.fields)
        body_values = ", ".join(_field_expr(field_path) for field_path in spec.fields)

        conn.execute(f"CREATE VIRTUAL TABLE {table} USING fts5({columns})")
        conn.execute(f"""
            CREATE TRIGGER {table}_ai AFTER INSERT ON {self.name} BEGIN
                INSERT INTO {table}(rowid, {columns}) VALUES (new.id, {new_values});
            END
        """)
        conn.execute(f"""
            CREATE TRIGGER {table}_ad AFTER DELETE ON {self.name} BEGIN
                DELETE FROM {table} WHERE rowid = old.id;
            END
        """)
        conn.execute(f"""
            CREATE TRIGGER {table}_au AFTER UPDATE ON {self.name} BEGIN
                DELETE FROM {table} WHERE rowid = old.id;
                INSERT INTO {table}(rowid, {columns}) VALUES (new.id, {new_values});
            END
        """)
        conn.execute(f"INSERT INTO {table}(rowid, {columns}) SELECT id, {body_values} FROM {self.name}")

        weights = spec.weights or {}
        bm25_args = ", ".join(f"{float(weights.get(field_path, 1))}" for field_path in spec.fields)
        conn.execute(f"INSERT INTO {table}({table}, rank) VALUES ('rank', ?)", (f"bm25({bm25_args})",))

    def _drop_index_sync(self, name: str) -> None:
        with get_db_connection(self.database_path) as conn, transaction(conn):
            definition = self._catalog(conn).get(name)
            if definition is None:
                raise BackendError(f"Index {name} not found on {self.name}")

            physical = self._physical_name(name)
            if any(direction == "text" for _, direction in definition["keys"]):
                for suffix in ("ai", "ad", "au"):
                    conn.execute(f"DROP TRIGGER IF EXISTS {physical}_{suffix}")
                conn.execute(f"DROP TABLE IF EXISTS {physical}")
            else:
                conn.execute(f"DROP INDEX IF EXISTS {physical}")

            conn.execute(
                "DELETE FROM collection_indexes WHERE collection = ? AND name = ?",
                (self.name, name),
            )

    def _list_indexes_sync(self) -> Dict[str, Dict[str, Any]]:
        with get_db_connection(self.database_path) as conn:
            return self._catalog(conn)

    async def create_index(self, spec: IndexSpec) -> None:
        await self._run(self._create_index_sync, spec)

    async def drop_index(self, name: str) -> None:
        await self._run(self._drop_index_sync, name)

    async def list_indexes(self) -> Dict[str, Dict[str, Any]]:
        return await self._run(self._list_indexes_sync)

    # Reads

    def _find_sync(self, filter: Filter, sort: Optional[SortSpec], limit: Optional[int]) -> List[Document]:
        where, params = build_where(filter)
        sql = f"SELECT body FROM {self.name} WHERE {where} {build_order_by(sort)} LIMIT ?"
        with get_db_connection(self.database_path) as conn:
            rows = conn.execute(sql, params + [limit if limit is not None else -1]).fetchall()
        return [decode_document(row["body"]) for row in rows]

    def _text_search_sync(self, filter: Filter, query: str, limit: Optional[int]) -> List[Document]:
        fts_query = build_fts_query(query)
        if not fts_query:
            return []

        with get_db_connection(self.database_path) as conn:
            text_indexes = [
                name for name, definition in self._catalog(conn).items()
                if any(direction == "text" for _, direction in definition["keys"])
            ]
            if not text_indexes:
                raise BackendError(f"No text index on {self.name}")

            table = self._physical_name(text_indexes[0])
            where, params = build_where(filter, column="d.body")
            rows = conn.execute(
                f"""
                SELECT d.body FROM {table}
                JOIN {self.name} AS d ON d.id = {table}.rowid
                WHERE {table} MATCH ? AND {where}
                ORDER BY rank
                LIMIT ?
                """,
                [fts_query] + params + [limit if limit is not None else -1],
            ).fetchall()
        return [decode_document(row["body"]) for row in rows]

    def _aggregate_sync(self, filter: Filter, field: str) -> Tuple[int, int]:
        where, params = build_where(filter)
        with get_db_connection(self.database_path) as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS n, COALESCE(SUM({_field_expr(field)}), 0) AS total FROM {self.name} WHERE {where}",
                params,
            ).fetchone()
        return int(row["n"]), int(row["total"])

    async def find_one(self, filter: Filter) -> Optional[Document]:
        documents = await self._run(self._find_sync, filter, None, 1)
        return documents[0] if documents else None

    async def find(
        self,
        filter: Filter,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        return await self._run(self._find_sync, filter, sort, limit)

    async def text_search(self, filter: Filter, query: str, limit: Optional[int] = None) -> List[Document]:
        return await self._run(self._text_search_sync, filter, query, limit)

    async def aggregate_count_and_sum(self, filter: Filter, field: str) -> Tuple[int, int]:
        return await self._run(self._aggregate_sync, filter, field)

    # Writes

    def _insert_sync(self, document: Document) -> Document:
        with get_db_connection(self.database_path) as conn:
            try:
                conn.execute(f"INSERT INTO {self.name} (body) VALUES (?)", (encode_document(document),))
            except sqlite3.IntegrityError as e:
                raise DuplicateKeyError(f"Duplicate key in {self.name}: {e}") from e
        return decode_document(encode_document(document))

    def _find_one_and_update_sync(self, filter: Filter, fields: Document) -> Optional[Document]:
        where, params = build_where(filter)
        with get_db_connection(self.database_path) as conn, transaction(conn):
            row = conn.execute(
                f"SELECT id, body FROM {self.name} WHERE {where} ORDER BY id LIMIT 1", params
            ).fetchone()
            if row is None:
                return None

            document = decode_document(row["body"])
            for field_path, value in fields.items():
                set_path(document, field_path, value)
            body = encode_document(document)
            try:
                conn.execute(f"UPDATE {self.name} SET body = ? WHERE id = ?", (body, row["id"]))
            except sqlite3.IntegrityError as e:
                raise DuplicateKeyError(f"Duplicate key in {self.name}: {e}") from e
        return decode_document(body)

    def _upsert_sync(self, filter: Filter, fields: Document) -> Document:
        where, params = build_where(filter)
        with get_db_connection(self.database_path) as conn, transaction(conn):
            row = conn.execute(
                f"SELECT id, body FROM {self.name} WHERE {where} ORDER BY id LIMIT 1", params
            ).fetchone()

            if row is None:
                document: Document = {}
                for field_path, value in filter.items():
                    if not isinstance(value, dict):
                        set_path(document, field_path, value)
            else:
                document = decode_document(row["body"])

            for field_path, value in fields.items():
                set_path(document, field_path, value)
            body = encode_document(document)

            if row is None:
                conn.execute(f"INSERT INTO {self.name} (body) VALUES (?)", (body,))
            else:
                conn.execute(f"UPDATE {self.name} SET body = ? WHERE id = ?", (body, row["id"]))
        return decode_document(body)

    def _delete_one_sync(self, filter: Filter) -> int:
        where, params = build_where(filter)
        with get_db_connection(self.database_path) as conn:
            cursor = conn.execute(
                f"DELETE FROM {self.name} WHERE id = (SELECT id FROM {self.name} WHERE {where} ORDER BY id LIMIT 1)",
                params,
            )
            return cursor.rowcount

    def _delete_many_sync(self, filter: Filter) -> int:
        where, params = build_where(filter)
        with get_db_connection(self.database_path) as conn:
            cursor = conn.execute(f"DELETE FROM {self.name} WHERE {where}", params)
            return cursor.rowcount

    async def insert_one(self, document: Document) -> Document:
        return await self._run(self._insert_sync, document)

    async def find_one_and_update(self, filter: Filter, fields: Document) -> Optional[Document]:
        return await self._run(self._find_one_and_update_sync, filter, fields)

    async def upsert_one(self, filter: Filter, fields: Document) -> Document:
        return await self._run(self._upsert_sync, filter, fields)

    async def delete_one(self, filter: Filter) -> int:
        return await self._run(self._delete_one_sync, filter)

    async def delete_many(self, filter: Filter) -> int:
        return await self._run(self._delete_many_sync, filter)


class SQLiteDocumentStore:
    """Opens collections that live in a single SQLite database file."""

    def __init__(self, database_path: Optional[str] = None):
        self.database_path = database_path or DATABASE_PATH
        init_database(self.database_path)
        self._collections: Dict[str, SQLiteCollection] = {}

    def collection(self, name: str) -> SQLiteCollection:
        if name not in self._collections:
            collection = SQLiteCollection(self.database_path, name)
            collection.ensure_table()
            self._collections[name] = collection
        return self._collections[name]
