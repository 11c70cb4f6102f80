"""Folder dataclasses — identity, classification settings and display projections."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FolderClass(str, Enum):
    """Classification level used for sync, display, notification and push gating."""
    NO_CLASS = "NO_CLASS"
    INHERITED = "INHERITED"
    FIRST_CLASS = "FIRST_CLASS"
    SECOND_CLASS = "SECOND_CLASS"


class FolderMode(str, Enum):
    """Which display classes show up in the folder list."""
    NONE = "NONE"
    ALL = "ALL"
    FIRST_CLASS = "FIRST_CLASS"
    FIRST_AND_SECOND_CLASS = "FIRST_AND_SECOND_CLASS"
    NOT_SECOND_CLASS = "NOT_SECOND_CLASS"


class FolderType(str, Enum):
    """Semantic role of a folder, derived from the account's special folders."""
    REGULAR = "REGULAR"
    INBOX = "INBOX"
    OUTBOX = "OUTBOX"
    SENT = "SENT"
    TRASH = "TRASH"
    DRAFTS = "DRAFTS"
    ARCHIVE = "ARCHIVE"
    SPAM = "SPAM"


class RemoteFolderType(str, Enum):
    """Folder role as declared by the mail server."""
    REGULAR = "REGULAR"
    INBOX = "INBOX"
    OUTBOX = "OUTBOX"
    DRAFTS = "DRAFTS"
    SENT = "SENT"
    TRASH = "TRASH"
    SPAM = "SPAM"
    ARCHIVE = "ARCHIVE"


def folder_class_of(text: str | None) -> FolderClass:
    """Parse a stored class name. Missing means NO_CLASS; anything unknown is corrupt data."""
    if text is None:
        return FolderClass.NO_CLASS
    try:
        return FolderClass[text]
    except KeyError:
        raise ValueError(f"Unknown folder class: {text!r}") from None


@dataclass(frozen=True)
class Folder:
    id: int
    server_id: str
    name: str
    type: FolderType = FolderType.REGULAR


@dataclass(frozen=True)
class FolderDetails:
    folder: Folder
    is_in_top_group: bool = False
    is_integrate: bool = False
    sync_class: FolderClass = FolderClass.NO_CLASS
    display_class: FolderClass = FolderClass.NO_CLASS
    notify_class: FolderClass = FolderClass.NO_CLASS
    push_class: FolderClass = FolderClass.NO_CLASS


@dataclass(frozen=True)
class DisplayFolder:
    folder: Folder
    is_in_top_group: bool = False
    unread_count: int = 0
