"""SPECIAL-USE folder detection (RFC 6154) — server LIST flags to RemoteFolderType."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from imapclient import IMAPClient
from imapclient.imapclient import ARCHIVE, DRAFTS, JUNK, SENT, TRASH

from mailfolders.models.folder import Folder, RemoteFolderType

if TYPE_CHECKING:
    from mailfolders.db.repository import FolderRepository

logger = logging.getLogger(__name__)

_SPECIAL_USE_FLAGS: dict[bytes, RemoteFolderType] = {
    SENT.lower(): RemoteFolderType.SENT,
    DRAFTS.lower(): RemoteFolderType.DRAFTS,
    TRASH.lower(): RemoteFolderType.TRASH,
    JUNK.lower(): RemoteFolderType.SPAM,
    ARCHIVE.lower(): RemoteFolderType.ARCHIVE,
}


def remote_type_from_flags(name: str, flags: Iterable[bytes | str]) -> RemoteFolderType:
    """Classify a folder from its LIST response. INBOX is recognised by name."""
    if name.upper() == "INBOX":
        return RemoteFolderType.INBOX
    for flag in flags:
        if isinstance(flag, str):
            flag = flag.encode("ascii", errors="replace")
        remote_type = _SPECIAL_USE_FLAGS.get(flag.lower())
        if remote_type is not None:
            return remote_type
    return RemoteFolderType.REGULAR


def list_remote_folders(client: IMAPClient) -> list[tuple[str, RemoteFolderType]]:
    """Return (name, remote type) for every folder on the server, sorted by name."""
    folders = []
    for flags, delimiter, name in client.list_folders():
        if isinstance(name, bytes):
            name = name.decode("utf-8", errors="replace")
        remote_type = remote_type_from_flags(name, flags)
        logger.debug("Folder %r flags=%r -> %s", name, flags, remote_type.name)
        folders.append((name, remote_type))
    return sorted(folders)


def import_remote_folders(client: IMAPClient, repo: "FolderRepository") -> list[Folder]:
    """Store every server folder under its own name with the role the server declares."""
    folders = [
        repo.upsert(name, name, remote_type)
        for name, remote_type in list_remote_folders(client)
    ]
    logger.info("Imported %d folder(s) from server", len(folders))
    return folders
