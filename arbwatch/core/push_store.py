"""Flat-record push store backed by SQLite.

Each push of a tree is persisted as one row per flat-record key ("cell"),
so a stored push reads back as exactly the unordered key/value map the
TreeReconstructor consumes.  Cell values are stored as JSON text, which
round-trips both structured push payloads and raw string payloads
(build JSON text, processed logs) unchanged.

Design:
- ``put_push_stuff`` upserts cells; re-writing a push replaces its cells
  key by key and is not transactional across calls.
- WAL journal mode for concurrent readers.
- No retry: ``sqlite3.Error`` propagates to the caller.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, NamedTuple

from arbwatch.core.hasher import record_digest
from arbwatch.core.keyspace import log_key

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_CELLS = """
CREATE TABLE IF NOT EXISTS push_cells (
    tree_id     TEXT    NOT NULL,
    push_id     INTEGER NOT NULL,
    column_key  TEXT    NOT NULL,
    value_json  TEXT    NOT NULL,
    PRIMARY KEY (tree_id, push_id, column_key)
);
"""

_CREATE_IDX_TREE_PUSH = """
CREATE INDEX IF NOT EXISTS idx_tree_push ON push_cells(tree_id, push_id);
"""

_CREATE_SCRAPES = """
CREATE TABLE IF NOT EXISTS tree_scrapes (
    tree_name         TEXT    PRIMARY KEY,
    is_local          INTEGER NOT NULL DEFAULT 0,
    timestamp_millis  INTEGER NOT NULL,
    rev               INTEGER NOT NULL DEFAULT 0,
    high_push_id      INTEGER NOT NULL
);
"""


class StoredCell(NamedTuple):
    """One persisted flat-record entry."""

    push_id: int
    column_key: str
    value_json: str


FlatRecord = dict[str, Any]


class PushStore:
    """SQLite store of flat push records, keyed by tree and push id.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self.bootstrap()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def bootstrap(self) -> None:
        """Create the schema if needed.  Safe to call repeatedly."""
        with self._connect() as conn:
            conn.execute(_CREATE_CELLS)
            conn.execute(_CREATE_IDX_TREE_PUSH)
            conn.execute(_CREATE_SCRAPES)
            conn.commit()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put_push_stuff(
        self, tree_id: str, push_id: int, record: Mapping[str, Any]
    ) -> str:
        """Persist every entry of *record* under ``(tree_id, push_id)``.

        Returns the digest of the written record.
        """
        rows = [
            (tree_id, int(push_id), key, json.dumps(value))
            for key, value in record.items()
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO push_cells (tree_id, push_id, column_key, value_json)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (tree_id, push_id, column_key)
                DO UPDATE SET value_json = excluded.value_json
                """,
                rows,
            )
            conn.commit()
        digest = record_digest(record)
        logger.debug(
            "PushStore: wrote %d cells for %s push %d (%s)",
            len(rows), tree_id, push_id, digest[:12],
        )
        return digest

    def meta_log_tree_scrape(
        self,
        tree_name: str,
        is_local: bool,
        *,
        timestamp: int,
        rev: int,
        high_push_id: int,
    ) -> None:
        """Record when *tree_name* was last scraped and its highest push id."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tree_scrapes
                    (tree_name, is_local, timestamp_millis, rev, high_push_id)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (tree_name) DO UPDATE SET
                    is_local = excluded.is_local,
                    timestamp_millis = excluded.timestamp_millis,
                    rev = excluded.rev,
                    high_push_id = excluded.high_push_id
                """,
                (tree_name, int(is_local), int(timestamp), int(rev), int(high_push_id)),
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_most_recent_known_push(self, tree_id: str) -> list[StoredCell]:
        """Return the cells of the highest-numbered push of *tree_id*.

        An empty list means the tree has no pushes yet.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT push_id, column_key, value_json FROM push_cells
                WHERE tree_id = ? AND push_id = (
                    SELECT MAX(push_id) FROM push_cells WHERE tree_id = ?
                )
                ORDER BY column_key
                """,
                (tree_id, tree_id),
            ).fetchall()
        return [StoredCell(*row) for row in rows]

    @staticmethod
    def normalize_one_row(rows: list[StoredCell]) -> FlatRecord:
        """Turn the cells of a single push into its flat record."""
        push_ids = {row.push_id for row in rows}
        if len(push_ids) > 1:
            raise ValueError(
                f"normalize_one_row expects cells of one push, got {sorted(push_ids)}"
            )
        return {row.column_key: json.loads(row.value_json) for row in rows}

    def get_push(self, tree_id: str, push_id: int) -> FlatRecord | None:
        """Return the flat record of one push, or ``None`` if unknown."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT push_id, column_key, value_json FROM push_cells "
                "WHERE tree_id = ? AND push_id = ? ORDER BY column_key",
                (tree_id, int(push_id)),
            ).fetchall()
        if not rows:
            return None
        return self.normalize_one_row([StoredCell(*row) for row in rows])

    def get_recent_pushes(
        self,
        tree_id: str,
        *,
        high_push_id: int | None = None,
        limit: int = 10,
    ) -> list[FlatRecord]:
        """Return up to *limit* flat records, newest push id first.

        When *high_push_id* is given only pushes with a lower id are
        returned (paging backwards through history).
        """
        query = "SELECT DISTINCT push_id FROM push_cells WHERE tree_id = ?"
        params: list[Any] = [tree_id]
        if high_push_id is not None:
            query += " AND push_id < ?"
            params.append(int(high_push_id))
        query += " ORDER BY push_id DESC LIMIT ?"
        params.append(int(limit))

        with self._connect() as conn:
            push_ids = [row[0] for row in conn.execute(query, params).fetchall()]

        records: list[FlatRecord] = []
        for push_id in push_ids:
            record = self.get_push(tree_id, push_id)
            if record is not None:
                records.append(record)
        return records

    def get_push_log(
        self,
        tree_id: str,
        push_id: int,
        build_id: str,
        sub_push_path: Sequence[str] = (),
    ) -> Any:
        """Return the processed log of one build, or ``None``.

        *sub_push_path* names the sub-push owning the build; empty means the
        root push (``s:l:<build_id>``).
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json FROM push_cells "
                "WHERE tree_id = ? AND push_id = ? AND column_key = ?",
                (tree_id, int(push_id), log_key(*sub_push_path, build_id)),
            ).fetchone()
        return json.loads(row[0]) if row else None

    def get_tree_scrape(self, tree_name: str) -> dict[str, Any] | None:
        """Return the last scrape metadata recorded for *tree_name*."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT tree_name, is_local, timestamp_millis, rev, high_push_id "
                "FROM tree_scrapes WHERE tree_name = ?",
                (tree_name,),
            ).fetchone()
        if row is None:
            return None
        name, is_local, timestamp_millis, rev, high_push_id = row
        return {
            "tree_name": name,
            "is_local": bool(is_local),
            "timestamp": timestamp_millis,
            "rev": rev,
            "high_push_id": high_push_id,
        }

    def get_all_tree_ids(self) -> list[str]:
        """Return every tree id with at least one stored push."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT tree_id FROM push_cells ORDER BY tree_id"
            ).fetchall()
        return [row[0] for row in rows]
