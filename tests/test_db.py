"""Tests for DB schema + repositories (in-memory SQLite)."""
from __future__ import annotations

import itertools
import sqlite3

import pytest

from mailfolders.db.repository import (
    AccountRepository,
    FolderNotFoundError,
    FolderRepository,
    MessageRepository,
)
from mailfolders.db.schema import init_db
from mailfolders.models.account import Account
from mailfolders.models.folder import (
    Folder,
    FolderClass,
    FolderDetails,
    FolderMode,
    FolderType,
    RemoteFolderType,
)
from mailfolders.models.message import Message


@pytest.fixture
def conn():
    c = init_db(":memory:")
    yield c
    c.close()


@pytest.fixture
def account_repo(conn):
    return AccountRepository(conn)


@pytest.fixture
def msg_repo(conn):
    return MessageRepository(conn)


@pytest.fixture
def sample_account(account_repo):
    return account_repo.upsert(Account(
        display_name="Test Account",
        inbox_folder="INBOX",
        outbox_folder="OUTBOX-LOCAL",
        sent_folder="Sent",
        trash_folder="Trash",
        folder_display_mode=FolderMode.ALL,
    ))


@pytest.fixture
def folder_repo(conn, sample_account):
    return FolderRepository(conn, sample_account)


@pytest.fixture
def scenario_folders(folder_repo):
    """INBOX, local outbox, Sent, pinned Zebra, unpinned Apple — ids 1..5."""
    inbox = folder_repo.upsert("INBOX", "INBOX", RemoteFolderType.INBOX)
    outbox = folder_repo.upsert("OUTBOX-LOCAL", "Outbox", RemoteFolderType.OUTBOX, local_only=True)
    sent = folder_repo.upsert("Sent", "Sent", RemoteFolderType.SENT)
    zebra = folder_repo.upsert("Zebra", "Zebra")
    apple = folder_repo.upsert("Apple", "Apple")
    folder_repo.update_folder_details(FolderDetails(folder=zebra, is_in_top_group=True))
    return inbox, outbox, sent, zebra, apple


def _set_display_classes(folder_repo, classes: dict[str, FolderClass]) -> None:
    for server_id, folder_class in classes.items():
        folder_repo.upsert(server_id, server_id)
        folder_repo.set_display_class(server_id, folder_class)


class TestAccountRepository:
    def test_upsert_returns_id(self, account_repo):
        saved = account_repo.upsert(Account(display_name="Alice"))
        assert saved.id is not None
        assert saved.id > 0

    def test_round_trip_special_folders(self, account_repo, sample_account):
        loaded = account_repo.get_by_id(sample_account.id)
        assert loaded == sample_account

    def test_upsert_updates_existing(self, account_repo, sample_account):
        sample_account.spam_folder = "Junk"
        sample_account.folder_display_mode = FolderMode.FIRST_CLASS
        account_repo.upsert(sample_account)
        loaded = account_repo.get_by_id(sample_account.id)
        assert loaded.spam_folder == "Junk"
        assert loaded.folder_display_mode == FolderMode.FIRST_CLASS
        assert len(account_repo.get_all()) == 1

    def test_delete_cascades_to_folders(self, conn, account_repo, sample_account, folder_repo):
        folder_repo.upsert("INBOX", "INBOX")
        account_repo.delete(sample_account.id)
        assert account_repo.get_by_id(sample_account.id) is None
        assert conn.execute("SELECT COUNT(*) FROM folders").fetchone()[0] == 0


class TestFolderRepository:
    def test_requires_saved_account(self, conn):
        with pytest.raises(ValueError):
            FolderRepository(conn, Account(display_name="unsaved"))

    def test_upsert_keeps_id_on_rename(self, folder_repo):
        first = folder_repo.upsert("work", "Work")
        renamed = folder_repo.upsert("work", "Job")
        assert renamed.id == first.id
        assert folder_repo.get_by_server_id("work").name == "Job"

    def test_upsert_preserves_classification(self, folder_repo):
        folder = folder_repo.upsert("work", "Work")
        folder_repo.set_sync_class("work", FolderClass.FIRST_CLASS)
        folder_repo.upsert("work", "Work renamed")
        assert folder_repo.get_folder_details(folder.id).sync_class == FolderClass.FIRST_CLASS

    def test_folders_are_scoped_per_account(self, conn, account_repo, folder_repo):
        other = account_repo.upsert(Account(display_name="Other", inbox_folder="INBOX"))
        other_repo = FolderRepository(conn, other)
        other_repo.upsert("INBOX", "INBOX")
        folder_repo.upsert("INBOX", "INBOX")
        folder_repo.upsert("Sent", "Sent")
        assert len(other_repo.get_all_folder_details()) == 1
        assert len(folder_repo.get_display_folders(FolderMode.ALL)) == 2


class TestRemoteFolders:
    def test_local_only_folders_are_excluded(self, folder_repo, scenario_folders):
        server_ids = {f.server_id for f in folder_repo.get_remote_folders()}
        assert server_ids == {"INBOX", "Sent", "Zebra", "Apple"}

    def test_types_come_from_remote_declaration(self, folder_repo):
        folder_repo.upsert("Papierkorb", "Papierkorb", RemoteFolderType.TRASH)
        folder_repo.upsert("Queue", "Queue", RemoteFolderType.OUTBOX)
        types = {f.server_id: f.type for f in folder_repo.get_remote_folders()}
        assert types == {"Papierkorb": FolderType.TRASH, "Queue": FolderType.REGULAR}


class TestDisplayFolders:
    def test_scenario_order(self, folder_repo, scenario_folders):
        folders = folder_repo.get_display_folders(FolderMode.ALL)
        assert [df.folder.server_id for df in folders] == [
            "INBOX", "OUTBOX-LOCAL", "Sent", "Zebra", "Apple",
        ]
        assert [df.folder.id for df in folders] == [1, 2, 3, 4, 5]
        assert [df.folder.type for df in folders] == [
            FolderType.INBOX, FolderType.OUTBOX, FolderType.SENT,
            FolderType.REGULAR, FolderType.REGULAR,
        ]

    def test_order_independent_of_insert_order(self, conn, sample_account):
        names = ["beta", "Alpha", "Trash", "INBOX", "gamma"]
        orders = set()
        for permutation in itertools.permutations(names):
            conn.execute("DELETE FROM folders")
            repo = FolderRepository(conn, sample_account)
            for name in permutation:
                repo.upsert(name, name)
            orders.add(tuple(df.folder.name for df in repo.get_display_folders(FolderMode.ALL)))
        assert orders == {("INBOX", "Trash", "Alpha", "beta", "gamma")}

    def test_unread_count(self, folder_repo, msg_repo, scenario_folders):
        inbox = scenario_folders[0]
        msg_repo.upsert_batch([
            Message(uid=1, folder_id=inbox.id),
            Message(uid=2, folder_id=inbox.id),
            Message(uid=3, folder_id=inbox.id, flags=["\\Seen"]),
            Message(uid=4, folder_id=inbox.id, flags=["\\Deleted"]),
            Message(uid=5, folder_id=inbox.id, empty=True),
        ])
        counts = {df.folder.server_id: df.unread_count for df in folder_repo.get_display_folders()}
        assert counts["INBOX"] == 2
        assert counts["Apple"] == 0

    def test_unread_count_ignores_flag_case(self, folder_repo, msg_repo, scenario_folders):
        inbox = scenario_folders[0]
        msg_repo.upsert_batch([
            Message.from_imap_flags(1, inbox.id, [b"\\SEEN"]),
            Message.from_imap_flags(2, inbox.id, ["\\deleted"]),
            Message.from_imap_flags(3, inbox.id, []),
        ])
        counts = {df.folder.server_id: df.unread_count for df in folder_repo.get_display_folders()}
        assert counts["INBOX"] == 1

    def test_unread_count_is_live(self, folder_repo, msg_repo, scenario_folders):
        inbox = scenario_folders[0]
        msg_repo.upsert_batch([Message(uid=1, folder_id=inbox.id)])
        assert folder_repo.get_display_folders()[0].unread_count == 1
        msg_repo.upsert_batch([Message.from_imap_flags(1, inbox.id, [b"\\Seen"])])
        assert folder_repo.get_display_folders()[0].unread_count == 0

    def test_first_class_filter(self, folder_repo):
        _set_display_classes(folder_repo, {
            "a": FolderClass.FIRST_CLASS,
            "b": FolderClass.SECOND_CLASS,
            "c": FolderClass.NO_CLASS,
        })
        result = folder_repo.get_display_folders(FolderMode.FIRST_CLASS)
        assert [df.folder.server_id for df in result] == ["a"]

    def test_first_class_filter_empty(self, folder_repo):
        _set_display_classes(folder_repo, {
            "b": FolderClass.SECOND_CLASS,
            "c": FolderClass.NO_CLASS,
        })
        assert folder_repo.get_display_folders(FolderMode.FIRST_CLASS) == []

    def test_first_and_second_class_filter(self, folder_repo):
        _set_display_classes(folder_repo, {
            "a": FolderClass.FIRST_CLASS,
            "b": FolderClass.SECOND_CLASS,
            "c": FolderClass.NO_CLASS,
            "d": FolderClass.INHERITED,
        })
        result = folder_repo.get_display_folders(FolderMode.FIRST_AND_SECOND_CLASS)
        assert [df.folder.server_id for df in result] == ["a", "b"]

    def test_not_second_class_filter(self, folder_repo):
        _set_display_classes(folder_repo, {
            "a": FolderClass.FIRST_CLASS,
            "b": FolderClass.SECOND_CLASS,
            "c": FolderClass.NO_CLASS,
        })
        result = folder_repo.get_display_folders(FolderMode.NOT_SECOND_CLASS)
        assert [df.folder.server_id for df in result] == ["a", "c"]

    def test_not_second_class_includes_unclassified(self, conn, folder_repo):
        _set_display_classes(folder_repo, {"x": FolderClass.FIRST_CLASS, "y": FolderClass.SECOND_CLASS})
        conn.execute("UPDATE folders SET display_class = NULL WHERE server_id = 'x'")
        result = folder_repo.get_display_folders(FolderMode.NOT_SECOND_CLASS)
        assert [df.folder.server_id for df in result] == ["x"]

    def test_all_includes_every_class(self, folder_repo):
        _set_display_classes(folder_repo, {
            "a": FolderClass.FIRST_CLASS,
            "b": FolderClass.SECOND_CLASS,
        })
        assert len(folder_repo.get_display_folders(FolderMode.ALL)) == 2

    def test_defaults_to_account_mode(self, conn, account_repo, sample_account):
        sample_account.folder_display_mode = FolderMode.FIRST_CLASS
        account_repo.upsert(sample_account)
        repo = FolderRepository(conn, sample_account)
        _set_display_classes(repo, {"a": FolderClass.FIRST_CLASS, "b": FolderClass.NO_CLASS})
        assert [df.folder.server_id for df in repo.get_display_folders()] == ["a"]

    def test_none_mode_is_rejected(self, folder_repo, scenario_folders):
        with pytest.raises(AssertionError):
            folder_repo.get_display_folders(FolderMode.NONE)


class TestFolderDetails:
    def test_defaults_for_new_folder(self, folder_repo):
        folder = folder_repo.upsert("INBOX", "INBOX")
        details = folder_repo.get_folder_details(folder.id)
        assert details == FolderDetails(folder=folder)

    def test_missing_id_returns_none(self, folder_repo):
        assert folder_repo.get_folder_details(999) is None

    def test_round_trip(self, folder_repo):
        folder = folder_repo.upsert("Lists", "Lists")
        details = FolderDetails(
            folder=folder,
            is_in_top_group=True,
            is_integrate=True,
            sync_class=FolderClass.SECOND_CLASS,
            display_class=FolderClass.FIRST_CLASS,
            notify_class=FolderClass.INHERITED,
            push_class=FolderClass.FIRST_CLASS,
        )
        folder_repo.update_folder_details(details)
        assert folder_repo.get_folder_details(folder.id) == details

    def test_update_does_not_rename(self, folder_repo):
        folder = folder_repo.upsert("Lists", "Lists")
        stale = FolderDetails(folder=Folder(folder.id, "other", "Other"), is_integrate=True)
        folder_repo.update_folder_details(stale)
        loaded = folder_repo.get_folder_details(folder.id)
        assert loaded.folder == folder
        assert loaded.is_integrate is True

    def test_null_push_class_reads_as_no_class(self, conn, folder_repo):
        folder = folder_repo.upsert("INBOX", "INBOX")
        conn.execute("UPDATE folders SET push_class = NULL WHERE id = ?", (folder.id,))
        assert folder_repo.get_folder_details(folder.id).push_class == FolderClass.NO_CLASS

    def test_unknown_class_text_fails(self, conn, folder_repo):
        folder = folder_repo.upsert("INBOX", "INBOX")
        conn.execute("UPDATE folders SET notify_class = 'THIRD_CLASS' WHERE id = ?", (folder.id,))
        with pytest.raises(ValueError, match="THIRD_CLASS"):
            folder_repo.get_folder_details(folder.id)

    def test_get_all(self, folder_repo, scenario_folders):
        details = folder_repo.get_all_folder_details()
        assert {d.folder.id for d in details} == {1, 2, 3, 4, 5}
        pinned = [d.folder.name for d in details if d.is_in_top_group]
        assert pinned == ["Zebra"]


class TestMutators:
    def test_set_include_in_unified_inbox(self, folder_repo):
        folder = folder_repo.upsert("Lists", "Lists")
        folder_repo.set_include_in_unified_inbox("Lists", True)
        assert folder_repo.get_folder_details(folder.id).is_integrate is True
        folder_repo.set_include_in_unified_inbox("Lists", False)
        assert folder_repo.get_folder_details(folder.id).is_integrate is False

    def test_each_setter_touches_one_field(self, folder_repo):
        folder = folder_repo.upsert("Lists", "Lists")
        folder_repo.set_display_class("Lists", FolderClass.FIRST_CLASS)
        folder_repo.set_sync_class("Lists", FolderClass.SECOND_CLASS)
        folder_repo.set_notification_class("Lists", FolderClass.INHERITED)
        details = folder_repo.get_folder_details(folder.id)
        assert details.display_class == FolderClass.FIRST_CLASS
        assert details.sync_class == FolderClass.SECOND_CLASS
        assert details.notify_class == FolderClass.INHERITED
        assert details.push_class == FolderClass.NO_CLASS
        assert details.is_integrate is False

    def test_unknown_server_id_raises_and_writes_nothing(self, conn, folder_repo):
        folder_repo.upsert("Lists", "Lists")
        before = [tuple(r) for r in conn.execute("SELECT * FROM folders").fetchall()]
        with pytest.raises(FolderNotFoundError):
            folder_repo.set_sync_class("INBOX", FolderClass.FIRST_CLASS)
        after = [tuple(r) for r in conn.execute("SELECT * FROM folders").fetchall()]
        assert after == before

    def test_other_account_folder_is_not_found(self, conn, account_repo, folder_repo):
        other = account_repo.upsert(Account(display_name="Other"))
        FolderRepository(conn, other).upsert("Shared", "Shared")
        with pytest.raises(FolderNotFoundError):
            folder_repo.set_display_class("Shared", FolderClass.FIRST_CLASS)


class TestMessageRepository:
    def test_upsert_batch_derives_read_and_deleted(self, conn, msg_repo, folder_repo):
        folder = folder_repo.upsert("INBOX", "INBOX")
        msg_repo.upsert_batch([
            Message.from_imap_flags(1, folder.id, [b"\\Seen", b"\\Flagged"], subject="Hi"),
            Message.from_imap_flags(2, folder.id, ["\\Deleted"]),
        ])
        rows = conn.execute("SELECT uid, read, deleted FROM messages ORDER BY uid").fetchall()
        assert [tuple(r) for r in rows] == [(1, 1, 0), (2, 0, 1)]
        messages = msg_repo.get_by_folder(folder.id)
        assert messages[0].subject == "Hi"
        assert messages[0].flags == ["\\Seen", "\\Flagged"]

    def test_flags_match_case_insensitively(self):
        message = Message.from_imap_flags(1, 1, [b"\\SEEN", "\\DELETED"])
        assert message.is_read
        assert message.is_deleted
        assert message.has_flag(b"\\Seen")
        assert not Message.from_imap_flags(2, 1, [b"\\Flagged"]).is_read

    def test_storage_errors_propagate(self, msg_repo):
        with pytest.raises(sqlite3.IntegrityError):
            msg_repo.upsert_batch([Message(uid=1, folder_id=12345)])


class TestMigration:
    def test_adds_missing_columns(self, tmp_path):
        path = tmp_path / "old.db"
        old = sqlite3.connect(path)
        old.executescript(
            """
            CREATE TABLE folders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id INTEGER NOT NULL,
                server_id TEXT NOT NULL,
                name TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'REGULAR',
                top_group INTEGER NOT NULL DEFAULT 0,
                poll_class TEXT,
                display_class TEXT
            );
            """
        )
        old.close()
        conn = init_db(path)
        cols = {row[1] for row in conn.execute("PRAGMA table_info(folders)").fetchall()}
        conn.close()
        assert {"local_only", "integrate", "notify_class", "push_class"} <= cols
