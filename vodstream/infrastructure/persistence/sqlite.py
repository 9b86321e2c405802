import json
import re
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ...domain.ports.persistence import Document, DocumentStore, Filter, OrderBy

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_COMPARISONS = {"==": "=", "!=": "!=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}


class SQLiteDocumentStore(DocumentStore):
    """SQLite-backed document store keeping each record as a JSON document."""

    def __init__(self, path: Union[Path, str]) -> None:
        if str(path) != ":memory:":
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                );

                CREATE INDEX IF NOT EXISTS idx_documents_collection
                    ON documents(collection);
                """
            )

    def close(self) -> None:
        self._conn.close()

    # Reads ------------------------------------------------------------------
    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            cur = self._conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = cur.fetchone()
        return self._row_to_document(row) if row else None

    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Document]:
        where_sql, params = self._where(collection, filters)
        query = f"SELECT id, data FROM documents WHERE {where_sql}"
        if order_by:
            clauses = [
                f"{self._path(name)} {'DESC' if descending else 'ASC'}" for name, descending in order_by
            ]
            query += " ORDER BY " + ", ".join(clauses)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            query += " LIMIT -1 OFFSET ?"
            params.append(offset)
        with self._lock:
            cur = self._conn.execute(query, params)
            rows = cur.fetchall()
        return [self._row_to_document(row) for row in rows]

    def find_one(self, collection: str, filters: Sequence[Filter]) -> Optional[Document]:
        found = self.find(collection, filters, limit=1)
        return found[0] if found else None

    def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        where_sql, params = self._where(collection, filters)
        with self._lock:
            cur = self._conn.execute(f"SELECT COUNT(*) FROM documents WHERE {where_sql}", params)
            (total,) = cur.fetchone()
        return int(total)

    # Writes -----------------------------------------------------------------
    def insert(self, collection: str, data: Mapping[str, Any], doc_id: Optional[str] = None) -> Document:
        doc_id = doc_id or uuid.uuid4().hex
        body = self._dump(data)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, body),
            )
        return {"id": doc_id, **json.loads(body)}

    def upsert(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> Document:
        body = self._dump(data)
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?) "
                "ON CONFLICT(collection, id) DO UPDATE SET data = excluded.data",
                (collection, doc_id, body),
            )
        return {"id": doc_id, **json.loads(body)}

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Optional[Document]:
        with self._lock, self._conn:
            cur = self._conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = cur.fetchone()
            if not row:
                return None
            merged = {**json.loads(row["data"]), **json.loads(self._dump(changes))}
            body = json.dumps(merged, ensure_ascii=False)
            self._conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (body, collection, doc_id),
            )
        return {"id": doc_id, **merged}

    def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> Optional[Document]:
        path = self._json_path(field)
        with self._lock, self._conn:
            cur = self._conn.execute(
                "UPDATE documents "
                "SET data = json_set(data, ?, COALESCE(json_extract(data, ?), 0) + ?) "
                "WHERE collection = ? AND id = ?",
                (path, path, amount, collection, doc_id),
            )
            if cur.rowcount == 0:
                return None
            row = self._conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        return self._row_to_document(row)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?", (collection, doc_id)
            )
        return cur.rowcount > 0

    def batch_delete(self, collection: str, doc_ids: Iterable[str]) -> int:
        ids = list(doc_ids)
        if not ids:
            return 0
        with self._lock, self._conn:
            cur = self._conn.executemany(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                [(collection, doc_id) for doc_id in ids],
            )
        return cur.rowcount

    def batch_update(self, collection: str, doc_ids: Iterable[str], changes: Mapping[str, Any]) -> int:
        ids = list(doc_ids)
        if not ids:
            return 0
        patch = self._dump(changes)
        with self._lock, self._conn:
            cur = self._conn.executemany(
                "UPDATE documents SET data = json_patch(data, ?) WHERE collection = ? AND id = ?",
                [(patch, collection, doc_id) for doc_id in ids],
            )
        return cur.rowcount

    # Helpers ----------------------------------------------------------------
    def _where(self, collection: str, filters: Sequence[Filter]) -> Tuple[str, List[Any]]:
        clauses = ["collection = ?"]
        params: List[Any] = [collection]
        for item in filters:
            column = self._path(item.field)
            if item.op in ("==", "!=") and item.value is None:
                clauses.append(f"{column} IS {'NOT ' if item.op == '!=' else ''}NULL")
            elif item.op in _COMPARISONS:
                clauses.append(f"{column} {_COMPARISONS[item.op]} ?")
                params.append(self._param(item.value))
            elif item.op == "in":
                values = list(item.value)
                if not values:
                    clauses.append("0")
                    continue
                clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
                params.extend(self._param(value) for value in values)
            elif item.op == "array_contains_any":
                values = list(item.value)
                if not values:
                    clauses.append("0")
                    continue
                clauses.append(
                    "EXISTS (SELECT 1 FROM json_each(data, ?) WHERE value IN "
                    f"({', '.join('?' for _ in values)}))"
                )
                params.append(self._json_path(item.field))
                params.extend(self._param(value) for value in values)
        return " AND ".join(clauses), params

    def _path(self, name: str) -> str:
        if name == "id":
            return "id"
        return f"json_extract(data, '{self._json_path(name)}')"

    @staticmethod
    def _json_path(name: str) -> str:
        if not _FIELD_RE.match(name):
            raise ValueError(f"Invalid document field name: {name!r}")
        return f"$.{name}"

    @staticmethod
    def _param(value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _dump(data: Mapping[str, Any]) -> str:
        body: Dict[str, Any] = {key: value for key, value in data.items() if key != "id"}
        return json.dumps(body, default=str, ensure_ascii=False)

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return {"id": row["id"], **json.loads(row["data"])}
