"""Folder role resolution — map server ids and remote types to a FolderType."""
from __future__ import annotations

from mailfolders.models.account import Account
from mailfolders.models.folder import FolderType, RemoteFolderType

# Outbox is a purely local folder; a remote folder never takes that role.
_REMOTE_TO_LOCAL: dict[RemoteFolderType, FolderType] = {
    RemoteFolderType.REGULAR: FolderType.REGULAR,
    RemoteFolderType.INBOX: FolderType.INBOX,
    RemoteFolderType.OUTBOX: FolderType.REGULAR,
    RemoteFolderType.DRAFTS: FolderType.DRAFTS,
    RemoteFolderType.SENT: FolderType.SENT,
    RemoteFolderType.TRASH: FolderType.TRASH,
    RemoteFolderType.SPAM: FolderType.SPAM,
    RemoteFolderType.ARCHIVE: FolderType.ARCHIVE,
}


def _special_folders(account: Account) -> list[tuple[str | None, FolderType]]:
    # Order is the tie-break when one server id is configured for two roles.
    return [
        (account.inbox_folder, FolderType.INBOX),
        (account.outbox_folder, FolderType.OUTBOX),
        (account.sent_folder, FolderType.SENT),
        (account.trash_folder, FolderType.TRASH),
        (account.drafts_folder, FolderType.DRAFTS),
        (account.archive_folder, FolderType.ARCHIVE),
        (account.spam_folder, FolderType.SPAM),
    ]


def folder_type_of(server_id: str, account: Account) -> FolderType:
    """Return the role the account assigns to server_id, REGULAR if none."""
    for special_id, folder_type in _special_folders(account):
        if special_id is not None and server_id == special_id:
            return folder_type
    return FolderType.REGULAR


def remote_to_folder_type(remote_type: RemoteFolderType) -> FolderType:
    return _REMOTE_TO_LOCAL[remote_type]
