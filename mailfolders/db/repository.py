"""Repository — all DB read/write operations for accounts, folders, messages."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Generator

from mailfolders.folders.display import display_class_selection, sort_for_display
from mailfolders.folders.roles import folder_type_of, remote_to_folder_type
from mailfolders.models.account import Account
from mailfolders.models.folder import (
    DisplayFolder,
    Folder,
    FolderClass,
    FolderDetails,
    FolderMode,
    RemoteFolderType,
    folder_class_of,
)
from mailfolders.models.message import Message

logger = logging.getLogger(__name__)


class FolderNotFoundError(LookupError):
    pass


@contextmanager
def _safe_commit(conn: sqlite3.Connection) -> Generator[None, None, None]:
    """Commit on success, rollback on error."""
    try:
        yield
        conn.commit()
    except Exception:
        conn.rollback()
        raise


class AccountRepository:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, account: Account) -> Account:
        values = (
            account.display_name,
            account.inbox_folder, account.outbox_folder, account.sent_folder,
            account.trash_folder, account.drafts_folder, account.archive_folder,
            account.spam_folder, account.folder_display_mode.name,
        )
        with _safe_commit(self._conn):
            if account.id is None:
                cur = self._conn.execute(
                    """
                    INSERT INTO accounts
                        (display_name, inbox_folder, outbox_folder, sent_folder, trash_folder,
                         drafts_folder, archive_folder, spam_folder, folder_display_mode)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values,
                )
                account.id = cur.lastrowid
            else:
                self._conn.execute(
                    """
                    UPDATE accounts SET
                        display_name = ?, inbox_folder = ?, outbox_folder = ?, sent_folder = ?,
                        trash_folder = ?, drafts_folder = ?, archive_folder = ?, spam_folder = ?,
                        folder_display_mode = ?
                    WHERE id = ?
                    """,
                    (*values, account.id),
                )
        return account

    def get_all(self) -> list[Account]:
        rows = self._conn.execute("SELECT * FROM accounts ORDER BY display_name").fetchall()
        return [self._row_to_account(r) for r in rows]

    def get_by_id(self, account_id: int) -> Account | None:
        row = self._conn.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._row_to_account(row) if row else None

    def delete(self, account_id: int) -> None:
        with _safe_commit(self._conn):
            self._conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            display_name=row["display_name"],
            inbox_folder=row["inbox_folder"],
            outbox_folder=row["outbox_folder"],
            sent_folder=row["sent_folder"],
            trash_folder=row["trash_folder"],
            drafts_folder=row["drafts_folder"],
            archive_folder=row["archive_folder"],
            spam_folder=row["spam_folder"],
            folder_display_mode=FolderMode[row["folder_display_mode"]],
        )


class FolderRepository:
    """Folder metadata for one account: display list, classification settings, roles."""

    _DETAILS_COLUMNS = (
        "id, server_id, name, top_group, integrate, "
        "poll_class, display_class, notify_class, push_class"
    )

    def __init__(self, conn: sqlite3.Connection, account: Account) -> None:
        if account.id is None:
            raise ValueError(f"Account {account} has not been saved")
        self._conn = conn
        self._account = account

    # ── Folder rows ───────────────────────────────────────────────────────────

    def upsert(
        self,
        server_id: str,
        name: str,
        remote_type: RemoteFolderType = RemoteFolderType.REGULAR,
        local_only: bool = False,
    ) -> Folder:
        """Create the folder row or refresh its name/type. Classification is left alone."""
        with _safe_commit(self._conn):
            cur = self._conn.execute(
                """
                INSERT INTO folders (account_id, server_id, name, type, local_only)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(account_id, server_id) DO UPDATE SET
                    name       = excluded.name,
                    type       = excluded.type,
                    local_only = excluded.local_only
                RETURNING id
                """,
                (self._account.id, server_id, name, remote_type.name, int(local_only)),
            )
            row = cur.fetchone()
        logger.debug("Upserted folder %r (id=%s) for %s", server_id, row["id"], self._account)
        return Folder(row["id"], server_id, name, folder_type_of(server_id, self._account))

    def get_by_server_id(self, server_id: str) -> Folder | None:
        row = self._conn.execute(
            "SELECT id, server_id, name FROM folders WHERE account_id = ? AND server_id = ?",
            (self._account.id, server_id),
        ).fetchone()
        return self._row_to_folder(row) if row else None

    def get_remote_folders(self) -> list[Folder]:
        """Folders that exist on the server, typed by what the server declared."""
        rows = self._conn.execute(
            "SELECT id, server_id, name, type FROM folders WHERE account_id = ? AND local_only = 0",
            (self._account.id,),
        ).fetchall()
        return [
            Folder(
                id=r["id"],
                server_id=r["server_id"],
                name=r["name"],
                type=remote_to_folder_type(RemoteFolderType[r["type"]]),
            )
            for r in rows
        ]

    # ── Display list ──────────────────────────────────────────────────────────

    def get_display_folders(self, display_mode: FolderMode | None = None) -> list[DisplayFolder]:
        """Folders visible under display_mode (account default if None), sorted for display."""
        mode = display_mode if display_mode is not None else self._account.folder_display_mode
        selection, params = display_class_selection(mode)
        account_clause = "AND f.account_id = ?" if selection else "WHERE f.account_id = ?"
        sql = f"""
            SELECT f.id, f.server_id, f.name, f.top_group, (
                SELECT COUNT(m.id)
                FROM messages m
                WHERE m.folder_id = f.id AND m.empty = 0 AND m.deleted = 0 AND m.read = 0
            ) AS unread_count
            FROM folders f
            {selection} {account_clause}
        """
        rows = self._conn.execute(sql, [*params, self._account.id]).fetchall()
        display_folders = [
            DisplayFolder(
                folder=self._row_to_folder(r),
                is_in_top_group=bool(r["top_group"]),
                unread_count=r["unread_count"],
            )
            for r in rows
        ]
        return sort_for_display(display_folders, self._account)

    # ── Classification settings ───────────────────────────────────────────────

    def get_folder_details(self, folder_id: int) -> FolderDetails | None:
        row = self._conn.execute(
            f"SELECT {self._DETAILS_COLUMNS} FROM folders WHERE account_id = ? AND id = ?",
            (self._account.id, folder_id),
        ).fetchone()
        return self._row_to_details(row) if row else None

    def get_all_folder_details(self) -> list[FolderDetails]:
        """Every folder's settings, in storage order."""
        rows = self._conn.execute(
            f"SELECT {self._DETAILS_COLUMNS} FROM folders WHERE account_id = ?",
            (self._account.id,),
        ).fetchall()
        return [self._row_to_details(r) for r in rows]

    def update_folder_details(self, details: FolderDetails) -> None:
        """Overwrite the six classification fields. Id, server id and name are untouched."""
        with _safe_commit(self._conn):
            cur = self._conn.execute(
                """
                UPDATE folders SET
                    top_group     = ?,
                    integrate     = ?,
                    poll_class    = ?,
                    display_class = ?,
                    notify_class  = ?,
                    push_class    = ?
                WHERE account_id = ? AND id = ?
                """,
                (
                    int(details.is_in_top_group), int(details.is_integrate),
                    details.sync_class.name, details.display_class.name,
                    details.notify_class.name, details.push_class.name,
                    self._account.id, details.folder.id,
                ),
            )
        logger.debug("Updated details of folder id=%s (%d row)", details.folder.id, cur.rowcount)

    # ── Single-field mutators ─────────────────────────────────────────────────

    def set_include_in_unified_inbox(self, server_id: str, include: bool) -> None:
        self._set_folder_column(server_id, "integrate", int(include))

    def set_display_class(self, server_id: str, folder_class: FolderClass) -> None:
        self._set_folder_column(server_id, "display_class", folder_class.name)

    def set_sync_class(self, server_id: str, folder_class: FolderClass) -> None:
        self._set_folder_column(server_id, "poll_class", folder_class.name)

    def set_notification_class(self, server_id: str, folder_class: FolderClass) -> None:
        self._set_folder_column(server_id, "notify_class", folder_class.name)

    def _set_folder_column(self, server_id: str, column: str, value: Any) -> None:
        # column is always one of the literals above, never caller input
        with _safe_commit(self._conn):
            cur = self._conn.execute(
                f"UPDATE folders SET {column} = ? WHERE account_id = ? AND server_id = ?",
                (value, self._account.id, server_id),
            )
            if cur.rowcount == 0:
                logger.warning("No folder %r in %s; %s not changed", server_id, self._account, column)
                raise FolderNotFoundError(f"Folder not found: {server_id}")
        logger.debug("Set %s=%r on folder %r", column, value, server_id)

    # ── Row mapping ───────────────────────────────────────────────────────────

    def _row_to_folder(self, row: sqlite3.Row) -> Folder:
        server_id = row["server_id"]
        return Folder(
            id=row["id"],
            server_id=server_id,
            name=row["name"],
            type=folder_type_of(server_id, self._account),
        )

    def _row_to_details(self, row: sqlite3.Row) -> FolderDetails:
        return FolderDetails(
            folder=self._row_to_folder(row),
            is_in_top_group=bool(row["top_group"]),
            is_integrate=bool(row["integrate"]),
            sync_class=folder_class_of(row["poll_class"]),
            display_class=folder_class_of(row["display_class"]),
            notify_class=folder_class_of(row["notify_class"]),
            push_class=folder_class_of(row["push_class"]),
        )


class MessageRepository:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_batch(self, messages: list[Message]) -> None:
        with _safe_commit(self._conn):
            self._conn.executemany(
                """
                INSERT INTO messages (uid, folder_id, subject, flags, empty, deleted, read)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(uid, folder_id) DO UPDATE SET
                    subject = excluded.subject,
                    flags   = excluded.flags,
                    empty   = excluded.empty,
                    deleted = excluded.deleted,
                    read    = excluded.read
                """,
                [
                    (
                        m.uid, m.folder_id, m.subject, m.flags_json,
                        int(m.empty), int(m.is_deleted), int(m.is_read),
                    )
                    for m in messages
                ],
            )

    def get_by_folder(self, folder_id: int) -> list[Message]:
        rows = self._conn.execute(
            "SELECT * FROM messages WHERE folder_id = ? ORDER BY uid", (folder_id,)
        ).fetchall()
        return [Message.from_row(dict(r)) for r in rows]

