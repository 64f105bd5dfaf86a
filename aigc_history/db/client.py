"""SQLite-backed storage client, its schema and the statements run against it."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from aigc_history.config.settings import DatabaseConfig

log = logging.getLogger(__name__)


class DbError(Exception):
    """Base class of every storage error."""

    prefix = ""
    default = ""

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = self.default if message is None else message
        super().__init__(f"{self.prefix}{self.message}")


class NotFoundError(DbError):
    """The requested row does not exist."""

    default = "Not found"


class InvalidDataError(DbError):
    """Stored or supplied data could not be interpreted."""

    prefix = "Invalid data: "


class SerializationError(DbError):
    """A value could not be turned into its stored form."""

    prefix = "Serialization error: "


class MigrationError(DbError):
    """Applying schema migrations failed."""

    prefix = "Migration error: "


_SCHEMA = """
CREATE TABLE IF NOT EXISTS conversation_lineage (
    conversation_id TEXT NOT NULL,
    message_id TEXT NOT NULL,
    parent_message_id TEXT,
    role TEXT NOT NULL,
    content_type TEXT NOT NULL,
    content_data TEXT NOT NULL,
    content_metadata TEXT,
    lineage TEXT NOT NULL,
    created_at TEXT NOT NULL,
    created_by TEXT NOT NULL,
    PRIMARY KEY (conversation_id, message_id)
);
CREATE INDEX IF NOT EXISTS conversation_lineage_parent
    ON conversation_lineage (conversation_id, parent_message_id);
CREATE TABLE IF NOT EXISTS conversation_branches (
    conversation_id TEXT NOT NULL,
    branch_id TEXT NOT NULL,
    branch_name TEXT NOT NULL,
    leaf_message_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    last_updated TEXT NOT NULL,
    created_by TEXT NOT NULL,
    is_active INTEGER NOT NULL,
    PRIMARY KEY (conversation_id, branch_id)
);
CREATE TABLE IF NOT EXISTS conversation_shares (
    conversation_id TEXT NOT NULL,
    shared_with TEXT NOT NULL,
    permission TEXT NOT NULL,
    shared_at TEXT NOT NULL,
    shared_by TEXT NOT NULL,
    PRIMARY KEY (conversation_id, shared_with)
);
CREATE TABLE IF NOT EXISTS user_conversations (
    user_id TEXT NOT NULL,
    last_activity TEXT NOT NULL,
    conversation_id TEXT NOT NULL,
    active_branch_id TEXT,
    PRIMARY KEY (user_id, last_activity, conversation_id)
);
CREATE TABLE IF NOT EXISTS branch_by_leaf (
    leaf_message_id TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL,
    branch_id TEXT NOT NULL
);
"""

_MESSAGE_COLUMNS = (
    "conversation_id, message_id, parent_message_id, role, content_type, "
    "content_data, content_metadata, lineage, created_at, created_by"
)
_BRANCH_COLUMNS = (
    "conversation_id, branch_id, branch_name, leaf_message_id, "
    "created_at, last_updated, created_by, is_active"
)
_SHARE_COLUMNS = "conversation_id, shared_with, permission, shared_at, shared_by"
_USER_CONVERSATION_COLUMNS = "user_id, last_activity, conversation_id, active_branch_id"

# conversation_lineage
INSERT_MESSAGE = (
    f"INSERT OR REPLACE INTO conversation_lineage ({_MESSAGE_COLUMNS}) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)
SELECT_MESSAGE = (
    f"SELECT {_MESSAGE_COLUMNS} FROM conversation_lineage "
    "WHERE conversation_id = ? AND message_id = ?"
)
SELECT_MESSAGE_CHILDREN = (
    f"SELECT {_MESSAGE_COLUMNS} FROM conversation_lineage "
    "WHERE conversation_id = ? AND parent_message_id = ?"
)
SELECT_MESSAGES_BY_IDS = (
    f"SELECT {_MESSAGE_COLUMNS} FROM conversation_lineage "
    "WHERE conversation_id = ? AND message_id IN (SELECT value FROM json_each(?))"
)
SELECT_ALL_MESSAGES = (
    f"SELECT {_MESSAGE_COLUMNS} FROM conversation_lineage WHERE conversation_id = ?"
)
DELETE_CONVERSATION = "DELETE FROM conversation_lineage WHERE conversation_id = ?"

# conversation_branches
INSERT_BRANCH = (
    f"INSERT OR REPLACE INTO conversation_branches ({_BRANCH_COLUMNS}) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
)
SELECT_BRANCH = (
    f"SELECT {_BRANCH_COLUMNS} FROM conversation_branches "
    "WHERE conversation_id = ? AND branch_id = ?"
)
SELECT_BRANCHES_BY_CONVERSATION = (
    f"SELECT {_BRANCH_COLUMNS} FROM conversation_branches WHERE conversation_id = ?"
)
UPDATE_BRANCH_LEAF = (
    "UPDATE conversation_branches SET leaf_message_id = ?, last_updated = ? "
    "WHERE conversation_id = ? AND branch_id = ?"
)
UPDATE_BRANCH_NAME = (
    "UPDATE conversation_branches SET branch_name = ?, last_updated = ? "
    "WHERE conversation_id = ? AND branch_id = ?"
)
DELETE_BRANCH = (
    "DELETE FROM conversation_branches WHERE conversation_id = ? AND branch_id = ?"
)

# conversation_shares
INSERT_SHARE = (
    f"INSERT OR REPLACE INTO conversation_shares ({_SHARE_COLUMNS}) VALUES (?, ?, ?, ?, ?)"
)
SELECT_SHARES_BY_CONVERSATION = (
    f"SELECT {_SHARE_COLUMNS} FROM conversation_shares WHERE conversation_id = ?"
)
SELECT_SHARE = (
    f"SELECT {_SHARE_COLUMNS} FROM conversation_shares "
    "WHERE conversation_id = ? AND shared_with = ?"
)
DELETE_SHARE = "DELETE FROM conversation_shares WHERE conversation_id = ? AND shared_with = ?"

# user_conversations
INSERT_USER_CONVERSATION = (
    f"INSERT OR REPLACE INTO user_conversations ({_USER_CONVERSATION_COLUMNS}) "
    "VALUES (?, ?, ?, ?)"
)
SELECT_USER_CONVERSATIONS = (
    f"SELECT {_USER_CONVERSATION_COLUMNS} FROM user_conversations "
    "WHERE user_id = ? ORDER BY last_activity DESC LIMIT ?"
)
UPDATE_USER_CONVERSATION_ACTIVITY = INSERT_USER_CONVERSATION

# branch_by_leaf
INSERT_BRANCH_BY_LEAF = (
    "INSERT OR REPLACE INTO branch_by_leaf (leaf_message_id, conversation_id, branch_id) "
    "VALUES (?, ?, ?)"
)
SELECT_BRANCH_BY_LEAF = (
    "SELECT leaf_message_id, conversation_id, branch_id FROM branch_by_leaf "
    "WHERE leaf_message_id = ?"
)
DELETE_BRANCH_BY_LEAF = "DELETE FROM branch_by_leaf WHERE leaf_message_id = ?"


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "+00:00"


def _json_item(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return _format_timestamp(value)
    return value


def _to_sql(value: Any) -> Any:
    if value is None or isinstance(value, (str, float)):
        return value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return _format_timestamp(value)
    if isinstance(value, dict):
        return json.dumps({str(k): _json_item(v) for k, v in value.items()}, sort_keys=True)
    if isinstance(value, (list, tuple)):
        return json.dumps([_json_item(item) for item in value])
    raise SerializationError(f"unsupported parameter type {type(value).__name__}")


def _decode_lineage(raw: str) -> List[uuid.UUID]:
    return [uuid.UUID(item) for item in json.loads(raw)]


def _decode_mapping(raw: str) -> Dict[str, str]:
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError("expected a JSON object")
    return value


_DECODERS: Dict[str, Callable[[Any], Any]] = {
    **dict.fromkeys(
        (
            "conversation_id",
            "message_id",
            "parent_message_id",
            "branch_id",
            "leaf_message_id",
            "active_branch_id",
        ),
        lambda raw: uuid.UUID(raw),
    ),
    **dict.fromkeys(
        ("created_at", "last_updated", "shared_at", "last_activity"),
        datetime.fromisoformat,
    ),
    "lineage": _decode_lineage,
    "content_metadata": _decode_mapping,
    "is_active": bool,
}


def _decode(name: str, raw: Any) -> Any:
    decoder = _DECODERS.get(name)
    if raw is None or decoder is None:
        return raw
    try:
        return decoder(raw)
    except (ValueError, TypeError) as exc:
        raise InvalidDataError(f"Failed to parse column {name}: {exc}") from exc


def _database_target(keyspace: str) -> str:
    return keyspace if keyspace == ":memory:" else f"{keyspace}.db"


class DbClient:
    """A thread-safe connection to the database holding one keyspace."""

    def __init__(self, connection: sqlite3.Connection, keyspace: str) -> None:
        self._connection = connection
        self._lock = threading.RLock()
        self.keyspace = keyspace

    @classmethod
    def connect(cls, config: DatabaseConfig) -> "DbClient":
        """Open the keyspace's database and make sure its tables exist."""
        target = _database_target(config.keyspace)
        log.info("Opening database for keyspace '%s' at %s", config.keyspace, target)
        try:
            connection = sqlite3.connect(
                target, check_same_thread=False, isolation_level=None
            )
            connection.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise DbError(f"Database connection error: {exc}") from exc
        log.info("Keyspace '%s' ready", config.keyspace)
        return cls(connection, config.keyspace)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the number of rows it changed."""
        values = [_to_sql(value) for value in params]
        with self._lock:
            try:
                return self._connection.execute(sql, values).rowcount
            except sqlite3.Error as exc:
                raise DbError(f"Query error: {exc}") from exc

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a query and return its rows as dicts of decoded values."""
        values = [_to_sql(value) for value in params]
        with self._lock:
            try:
                cursor = self._connection.execute(sql, values)
                names = [column[0] for column in cursor.description or ()]
                rows = cursor.fetchall()
            except sqlite3.Error as exc:
                raise DbError(f"Query error: {exc}") from exc
        return [
            {name: _decode(name, raw) for name, raw in zip(names, row)} for row in rows
        ]

    def close(self) -> None:
        with self._lock:
            self._connection.close()

    def __enter__(self) -> "DbClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()