"""
SQLite persistence for vote records.

Manifesto:
    The store is the only durable state in the system. The watermark is
    not stored separately: it is derived from the persisted votes (max
    parliament, then max number within it), so it can never drift from
    the data it describes.

    - **All-or-nothing inserts:** One transaction per ingestion run
    - **Business-key uniqueness:** ``UNIQUE(parliament, number)``
    - **Surrogate ordering:** ``id`` follows insertion order for "latest N"
    - **Truncate, don't reject:** Text columns are capped at 2048 chars

Architecture:
    ::

        VoteStore
          ├── current_watermark()  SELECT ... ORDER BY parliament DESC, number DESC LIMIT 1
          ├── insert_all(records)  BEGIN; INSERT ...; COMMIT  (ROLLBACK on any error)
          └── latest(n)            SELECT ... ORDER BY id DESC LIMIT n

Examples:
    >>> store = VoteStore.open(":memory:")
    >>> store.current_watermark()
    Watermark(parliament=0, number=0)

Tags:
    storage, sqlite, watermark, transaction, vote-spine
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from vote_spine.errors import PersistenceFailure
from vote_spine.logging import get_logger
from vote_spine.models import VoteRecord, Watermark

logger = get_logger(__name__)

MAX_TEXT_LENGTH = 2048

SCHEMA = """
CREATE TABLE IF NOT EXISTS vote (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    number INTEGER NOT NULL,
    parliament INTEGER NOT NULL,
    session INTEGER NOT NULL DEFAULT 0,
    sitting INTEGER NOT NULL DEFAULT 0,
    date TEXT NOT NULL DEFAULT '',
    description_english TEXT NOT NULL DEFAULT '',
    description_french TEXT NOT NULL DEFAULT '',
    decision TEXT NOT NULL DEFAULT '',
    related_bill TEXT NOT NULL DEFAULT '',
    total_yeas INTEGER NOT NULL DEFAULT 0,
    total_nays INTEGER NOT NULL DEFAULT 0,
    total_paired INTEGER NOT NULL DEFAULT 0,
    UNIQUE (parliament, number)
)
"""

_COLUMNS = (
    "number",
    "parliament",
    "session",
    "sitting",
    "date",
    "description_english",
    "description_french",
    "decision",
    "related_bill",
    "total_yeas",
    "total_nays",
    "total_paired",
)

_TEXT_COLUMNS = {"date", "description_english", "description_french", "decision", "related_bill"}

_INSERT = (
    f"INSERT INTO vote ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM vote"


def truncate(value: str, limit: int = MAX_TEXT_LENGTH) -> str:
    return value if len(value) <= limit else value[:limit]


def connect(database_path: str | Path) -> sqlite3.Connection:
    """Open a connection with explicit transaction control."""
    if str(database_path) != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(database_path),
        check_same_thread=False,
        isolation_level=None,  # autocommit; transactions are managed explicitly
    )
    conn.row_factory = sqlite3.Row
    return conn


def _row_to_record(row: sqlite3.Row) -> VoteRecord:
    return VoteRecord(**{key: row[key] for key in row.keys()})


class VoteStore:
    """Vote persistence over a single sqlite3 connection.

    The store owns *conn* for its lifetime. ``init_schema()`` is called on
    construction so a fresh database is usable immediately.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self.init_schema()

    @classmethod
    def open(cls, database_path: str | Path) -> VoteStore:
        return cls(connect(database_path))

    def init_schema(self) -> None:
        try:
            self._conn.execute(SCHEMA)
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Could not create vote table: {exc}", cause=exc) from exc

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> VoteStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN/COMMIT, with ROLLBACK on any exception."""
        self._conn.execute("BEGIN")
        try:
            yield self._conn
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise

    # -- reads ---------------------------------------------------------------

    def current_watermark(self) -> Watermark:
        """Highest ``(parliament, number)`` persisted, ``(0, 0)`` when empty."""
        try:
            row = self._conn.execute(
                "SELECT parliament, number FROM vote "
                "ORDER BY parliament DESC, number DESC LIMIT 1"
            ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Could not read watermark: {exc}", cause=exc) from exc
        if row is None:
            return Watermark()
        return Watermark(parliament=row["parliament"], number=row["number"])

    def latest(self, n: int = 10) -> list[VoteRecord]:
        """The *n* most recently inserted votes, newest first."""
        try:
            rows = self._conn.execute(f"{_SELECT} ORDER BY id DESC LIMIT ?", (n,)).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Could not read latest votes: {exc}", cause=exc) from exc
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM vote").fetchone()[0]

    # -- writes --------------------------------------------------------------

    def insert_all(self, records: Sequence[VoteRecord]) -> list[VoteRecord]:
        """Insert *records* in the given order inside one transaction.

        Each record gets its surrogate ``id`` once the transaction commits.
        Text values longer than ``MAX_TEXT_LENGTH`` are truncated.

        Raises:
            PersistenceFailure: If any insert fails. Nothing is committed and
                no record keeps an id.
        """
        ids: list[int] = []
        try:
            with self.transaction() as conn:
                for record in records:
                    cursor = conn.execute(_INSERT, self._params(record))
                    ids.append(cursor.lastrowid)
        except (sqlite3.Error, OverflowError) as exc:
            raise PersistenceFailure(
                f"Insert transaction rolled back: {exc}", cause=exc
            ).with_context(records=len(records), attempted=len(ids) + 1) from exc

        for record, record_id in zip(records, ids):
            record.id = record_id
        logger.debug("vote_transaction_committed", count=len(ids))
        return list(records)

    @staticmethod
    def _params(record: VoteRecord) -> tuple:
        values = []
        for column in _COLUMNS:
            value = getattr(record, column)
            if column in _TEXT_COLUMNS:
                value = truncate(value or "")
            values.append(value)
        return tuple(values)
