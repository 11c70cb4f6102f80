"""Database schema — init_db() creates all tables and indexes."""
from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    display_name        TEXT    NOT NULL DEFAULT '',
    inbox_folder        TEXT,
    outbox_folder       TEXT,
    sent_folder         TEXT,
    trash_folder        TEXT,
    drafts_folder       TEXT,
    archive_folder      TEXT,
    spam_folder         TEXT,
    folder_display_mode TEXT    NOT NULL DEFAULT 'NOT_SECOND_CLASS'
);

CREATE TABLE IF NOT EXISTS folders (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    account_id    INTEGER NOT NULL REFERENCES accounts(id) ON DELETE CASCADE,
    server_id     TEXT    NOT NULL,
    name          TEXT    NOT NULL,
    type          TEXT    NOT NULL DEFAULT 'REGULAR',
    local_only    INTEGER NOT NULL DEFAULT 0,
    top_group     INTEGER NOT NULL DEFAULT 0,
    integrate     INTEGER NOT NULL DEFAULT 0,
    poll_class    TEXT,
    display_class TEXT    DEFAULT 'NO_CLASS',
    notify_class  TEXT,
    push_class    TEXT,
    UNIQUE(account_id, server_id)
);

CREATE TABLE IF NOT EXISTS messages (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    uid       INTEGER NOT NULL,
    folder_id INTEGER NOT NULL REFERENCES folders(id) ON DELETE CASCADE,
    subject   TEXT,
    flags     TEXT    NOT NULL DEFAULT '[]',
    empty     INTEGER NOT NULL DEFAULT 0,
    deleted   INTEGER NOT NULL DEFAULT 0,
    read      INTEGER NOT NULL DEFAULT 0,
    UNIQUE(uid, folder_id)
);

CREATE INDEX IF NOT EXISTS idx_messages_folder ON messages(folder_id);
CREATE INDEX IF NOT EXISTS idx_messages_unread ON messages(folder_id) WHERE read=0 AND deleted=0 AND empty=0;
"""

# Columns added after the first release, with their DDL
_FOLDER_MIGRATIONS = {
    "local_only": "ALTER TABLE folders ADD COLUMN local_only INTEGER NOT NULL DEFAULT 0",
    "integrate": "ALTER TABLE folders ADD COLUMN integrate INTEGER NOT NULL DEFAULT 0",
    "notify_class": "ALTER TABLE folders ADD COLUMN notify_class TEXT",
    "push_class": "ALTER TABLE folders ADD COLUMN push_class TEXT",
}


def init_db(path: str | Path = ":memory:") -> sqlite3.Connection:
    """Create (or open) the SQLite database, apply schema, return connection."""
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA_SQL)
    _migrate(conn)
    conn.commit()
    return conn


def _migrate(conn: sqlite3.Connection) -> None:
    """Apply incremental schema migrations for existing databases."""
    cols = {row[1] for row in conn.execute("PRAGMA table_info(folders)").fetchall()}
    for column, ddl in _FOLDER_MIGRATIONS.items():
        if column not in cols:
            conn.execute(ddl)
