"""mailfolders CLI — inspect and classify the folders of a local mail store."""
from __future__ import annotations

import argparse
import getpass
import logging
import sys

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from mailfolders import config
from mailfolders.db.repository import AccountRepository, FolderRepository
from mailfolders.db.schema import init_db
from mailfolders.imap.special_use import import_remote_folders
from mailfolders.models.account import Account
from mailfolders.models.folder import FolderClass, FolderMode, RemoteFolderType

logger = logging.getLogger(__name__)

_CLASS_SETTERS = {
    "display": FolderRepository.set_display_class,
    "sync": FolderRepository.set_sync_class,
    "notify": FolderRepository.set_notification_class,
}


def _setup_logging(verbose: bool) -> None:
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    config.ensure_dirs()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=fmt,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(config.LOG_PATH, encoding="utf-8"),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mailfolders-cli",
        description="Folder lists and folder classes for a local mail store",
    )
    p.add_argument("--db", default=str(config.DB_PATH), help="SQLite DB path")
    p.add_argument("-v", "--verbose", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("accounts", help="List accounts")

    add = sub.add_parser("add-account", help="Create an account")
    add.add_argument("name")
    add.add_argument("--inbox", default=config.DEFAULT_INBOX_FOLDER)
    add.add_argument("--outbox", default=config.DEFAULT_OUTBOX_FOLDER)
    for role in ("sent", "trash", "drafts", "archive", "spam"):
        add.add_argument(f"--{role}", help=f"Server id of the {role} folder")
    add.add_argument(
        "--mode",
        choices=[m.name for m in FolderMode if m != FolderMode.NONE],
        default=config.DEFAULT_FOLDER_DISPLAY_MODE.name,
    )

    add_folder = sub.add_parser("add-folder", help="Register a folder row")
    add_folder.add_argument("account_id", type=int)
    add_folder.add_argument("server_id")
    add_folder.add_argument("name")
    add_folder.add_argument("--type", choices=[t.name for t in RemoteFolderType], default="REGULAR")
    add_folder.add_argument("--local-only", action="store_true")

    folders = sub.add_parser("folders", help="Show the folder list with unread counts")
    folders.add_argument("account_id", type=int)
    folders.add_argument("--mode", choices=[m.name for m in FolderMode if m != FolderMode.NONE])

    imp = sub.add_parser("import-folders", help="Register the server's folders over IMAP")
    imp.add_argument("account_id", type=int)
    imp.add_argument("--host", required=True, help="IMAP server hostname")
    imp.add_argument("--port", type=int, default=993, help="IMAP port (default 993)")
    imp.add_argument("--username", required=True, help="IMAP username / email")
    imp.add_argument("--no-ssl", action="store_true", help="Disable SSL/TLS")

    remote = sub.add_parser("remote", help="Show server folders and their roles")
    remote.add_argument("account_id", type=int)

    details = sub.add_parser("details", help="Show folder classes")
    details.add_argument("account_id", type=int)
    details.add_argument("--id", type=int, dest="folder_id")

    set_class = sub.add_parser("set-class", help="Change one class of a folder")
    set_class.add_argument("account_id", type=int)
    set_class.add_argument("server_id")
    set_class.add_argument("kind", choices=sorted(_CLASS_SETTERS))
    set_class.add_argument("folder_class", choices=[c.name for c in FolderClass])

    integrate = sub.add_parser("integrate", help="Include a folder in the unified inbox")
    integrate.add_argument("account_id", type=int)
    integrate.add_argument("server_id")
    integrate.add_argument("state", choices=["on", "off"])
    return p


def _folder_repo(conn, account_id: int) -> FolderRepository:
    account = AccountRepository(conn).get_by_id(account_id)
    if account is None:
        raise LookupError(f"No account with id {account_id}")
    return FolderRepository(conn, account)


def _connect(args: argparse.Namespace) -> IMAPClient:
    password = getpass.getpass(f"Password for {args.username}@{args.host}: ")
    client = IMAPClient(host=args.host, port=args.port, ssl=not args.no_ssl, timeout=30)
    client.login(args.username, password)
    logger.info("Authenticated %s@%s via password", args.username, args.host)
    return client


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    conn = init_db(args.db)
    try:
        _run(conn, args)
    except (LookupError, IMAPClientError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        conn.close()


def _run(conn, args: argparse.Namespace) -> None:
    if args.command == "accounts":
        for account in AccountRepository(conn).get_all():
            print(f"{account.id:>4}  {account.display_name:<30} {account.folder_display_mode.name}")

    elif args.command == "add-account":
        account = AccountRepository(conn).upsert(Account(
            display_name=args.name,
            inbox_folder=args.inbox,
            outbox_folder=args.outbox,
            sent_folder=args.sent,
            trash_folder=args.trash,
            drafts_folder=args.drafts,
            archive_folder=args.archive,
            spam_folder=args.spam,
            folder_display_mode=FolderMode[args.mode],
        ))
        print(f"Created account {account.id}")

    elif args.command == "add-folder":
        folder = _folder_repo(conn, args.account_id).upsert(
            args.server_id, args.name, RemoteFolderType[args.type], args.local_only,
        )
        print(f"Folder {folder.id}: {folder.server_id} ({folder.type.name})")

    elif args.command == "folders":
        repo = _folder_repo(conn, args.account_id)
        mode = FolderMode[args.mode] if args.mode else None
        print(f"{'FOLDER':<40} {'TYPE':<8} {'UNREAD':>6}")
        print("-" * 56)
        for df in repo.get_display_folders(mode):
            pin = "*" if df.is_in_top_group else " "
            print(f"{pin}{df.folder.name:<39} {df.folder.type.name:<8} {df.unread_count:>6}")

    elif args.command == "import-folders":
        repo = _folder_repo(conn, args.account_id)
        client = _connect(args)
        try:
            folders = import_remote_folders(client, repo)
        finally:
            client.logout()
        print(f"Imported {len(folders)} folder(s)")

    elif args.command == "remote":
        for folder in _folder_repo(conn, args.account_id).get_remote_folders():
            print(f"{folder.id:>4}  {folder.server_id:<40} {folder.type.name}")

    elif args.command == "details":
        repo = _folder_repo(conn, args.account_id)
        if args.folder_id is not None:
            found = repo.get_folder_details(args.folder_id)
            rows = [found] if found else []
        else:
            rows = sorted(repo.get_all_folder_details(), key=lambda d: d.folder.id)
        for d in rows:
            print(
                f"{d.folder.id:>4}  {d.folder.server_id:<30} "
                f"top={int(d.is_in_top_group)} integrate={int(d.is_integrate)} "
                f"sync={d.sync_class.name} display={d.display_class.name} "
                f"notify={d.notify_class.name} push={d.push_class.name}"
            )

    elif args.command == "set-class":
        repo = _folder_repo(conn, args.account_id)
        _CLASS_SETTERS[args.kind](repo, args.server_id, FolderClass[args.folder_class])
        print(f"{args.server_id}: {args.kind} class = {args.folder_class}")

    elif args.command == "integrate":
        repo = _folder_repo(conn, args.account_id)
        repo.set_include_in_unified_inbox(args.server_id, args.state == "on")
        print(f"{args.server_id}: unified inbox {args.state}")


if __name__ == "__main__":
    main()
